"""Business logic services for the Parley messaging core."""

from .archive import ArchiveController
from .conversation_list import ConversationListAssembler, ConversationSummary, LastMessage
from .conversations import ConversationResolver, ResolvedConversation
from .display import DisplayNameLookup, UserRef
from .messages import MessagePipeline, MessageView
from .read_state import ReadStateTracker

__all__ = [
    "ArchiveController",
    "ConversationListAssembler",
    "ConversationResolver",
    "ConversationSummary",
    "DisplayNameLookup",
    "LastMessage",
    "MessagePipeline",
    "MessageView",
    "ReadStateTracker",
    "ResolvedConversation",
    "UserRef",
]
