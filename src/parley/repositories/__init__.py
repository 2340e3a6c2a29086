"""Repository layer wrapping SQLAlchemy queries."""

from .conversation_repo import ConversationRepository
from .message_repo import MessageRepository

__all__ = ["ConversationRepository", "MessageRepository"]
