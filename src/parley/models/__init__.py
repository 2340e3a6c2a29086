"""SQLAlchemy models for the Parley messaging service."""

from .conversation import Conversation, ConversationParticipant, pair_key_for
from .message import Message
from .user import User

__all__ = [
    "Conversation", "ConversationParticipant", "pair_key_for",
    "Message",
    "User",
]
