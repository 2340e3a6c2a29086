"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .common import ErrorResponse, OkResponse, UnreadCountResponse
from .conversation import (
    ConversationResolveRequest,
    ConversationResolveResponse,
    ConversationSummaryResponse,
    LastMessageResponse,
    UserRefResponse,
)
from .message import MessageCreate, MessageResponse

__all__ = [
    "ConversationResolveRequest", "ConversationResolveResponse",
    "ConversationSummaryResponse", "LastMessageResponse", "UserRefResponse",
    "ErrorResponse", "OkResponse", "UnreadCountResponse",
    "MessageCreate", "MessageResponse",
]
