"""Models describing messages exchanged inside a conversation."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from parley.db.session import Base, new_id
from parley.db.time import UTCDateTime, utcnow


class Message(Base):
    """Immutable text message.

    ``created_at`` is stamped by the server and strictly increases within a
    conversation. ``sender_id`` deliberately has no foreign key: the message
    outlives its sender's account. A sender's ``client_message_id`` is unique
    within a conversation, which makes resubmitting a send idempotent.
    """

    __tablename__ = "message"
    __table_args__ = (
        Index("ix_message_conversation_created", "conversation_id", "created_at"),
        # NULLs never collide, so messages without a correlation id are unconstrained.
        UniqueConstraint(
            "conversation_id", "sender_id", "client_message_id", name="uq_message_client_id"
        ),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    conversation_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("conversation.id", ondelete="CASCADE"),
        nullable=False,
    )
    sender_id: Mapped[str] = mapped_column(String(32), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Correlation id chosen by the sending client; repeats of a send reuse it.
    client_message_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
