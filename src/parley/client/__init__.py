"""Client-side pieces: HTTP client, optimistic timeline and session driver.

Importing this package does not load server settings.
"""

from .api_client import MessagingClient
from .reconcile import (
    Confirmed,
    Draft,
    Failed,
    MessageTimeline,
    Pending,
    ServerMessage,
    TimelineEntry,
)
from .session import ConversationSession

__all__ = [
    "Confirmed",
    "ConversationSession",
    "Draft",
    "Failed",
    "MessageTimeline",
    "MessagingClient",
    "Pending",
    "ServerMessage",
    "TimelineEntry",
]
