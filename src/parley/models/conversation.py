"""Models describing two-party conversations and their participants."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parley.db.session import Base, new_id
from parley.db.time import UTCDateTime, utcnow


def pair_key_for(user_a: str, user_b: str) -> str:
    """Return the canonical key of an unordered identity pair."""
    low, high = sorted((user_a, user_b))
    return f"{low}:{high}"


class Conversation(Base):
    """A messaging thread between exactly two identities.

    ``pair_key`` is unique, so two concurrent first contacts between the same
    pair can never both insert a conversation.
    """

    __tablename__ = "conversation"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    pair_key: Mapped[str] = mapped_column(String(65), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    # Last activity; bumped by every new message and used for list ordering.
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, index=True
    )

    participants: Mapped[list[ConversationParticipant]] = relationship(
        "ConversationParticipant",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="ConversationParticipant.id",
    )


class ConversationParticipant(Base):
    """Per-identity state within a conversation: read cursor and archive flag."""

    __tablename__ = "conversation_participant"
    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="uq_conversation_participant"),
        Index("ix_conversation_participant_user", "user_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    conversation_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("conversation.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("user_account.id"), nullable=False
    )
    # Messages created at or before this instant count as read.
    last_read_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    # Non-null hides the conversation from this participant's active list only.
    archived_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    conversation: Mapped[Conversation] = relationship(
        "Conversation", back_populates="participants"
    )

    @property
    def is_archived(self) -> bool:
        """Return True when this participant has hidden the conversation."""
        return self.archived_at is not None
