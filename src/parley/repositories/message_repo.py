"""Data access helpers for messages and the unread-count aggregates."""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import ColumnElement, func, or_, select
from sqlalchemy.orm import Session, aliased

from parley.models import ConversationParticipant, Message

__all__ = ["MessageRepository"]


def _is_unread_for(user_id: str) -> list[ColumnElement[bool]]:
    """Criteria selecting messages unread by the participant row joined in.

    A null cursor means nothing has been read yet. The participant's own
    messages never count.
    """
    return [
        ConversationParticipant.user_id == user_id,
        Message.sender_id != user_id,
        or_(
            ConversationParticipant.last_read_at.is_(None),
            Message.created_at > ConversationParticipant.last_read_at,
        ),
    ]


class MessageRepository:
    """Thin wrapper around database access for message entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def append(
        self,
        *,
        conversation_id: str,
        sender_id: str,
        content: str,
        created_at: datetime,
        client_message_id: str | None = None,
    ) -> Message:
        """Insert a new message and return the persisted ORM instance.

        Args:
            conversation_id: Owning conversation.
            sender_id: Identity of the author.
            content: Validated, trimmed text.
            created_at: Server-assigned ordering timestamp.
            client_message_id: Sender's correlation id, if any.

        Raises:
            sqlalchemy.exc.IntegrityError: If the sender already used ``client_message_id``
                in this conversation.
        """
        message = Message(
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            created_at=created_at,
            client_message_id=client_message_id,
        )
        self.session.add(message)
        self.session.flush()
        return message

    def by_client_id(
        self, conversation_id: str, sender_id: str, client_message_id: str
    ) -> Message | None:
        """Return the message a sender stored under ``client_message_id``, if any."""
        result = self.session.execute(
            select(Message).where(
                Message.conversation_id == conversation_id,
                Message.sender_id == sender_id,
                Message.client_message_id == client_message_id,
            )
        )
        return result.scalars().first()

    def list_for_conversation(self, conversation_id: str) -> list[Message]:
        """Return every message of a conversation, oldest first."""
        result = self.session.execute(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
        )
        return list(result.scalars())

    def newest_created_at(self, conversation_id: str) -> datetime | None:
        """Return the timestamp of the most recent message, if any."""
        return self.session.execute(
            select(func.max(Message.created_at)).where(Message.conversation_id == conversation_id)
        ).scalar()

    def latest_by_conversation(self, conversation_ids: Sequence[str]) -> dict[str, Message]:
        """Return the most recent message of each listed conversation."""
        if not conversation_ids:
            return {}
        ranked = (
            select(
                Message,
                func.row_number()
                .over(
                    partition_by=Message.conversation_id,
                    order_by=(Message.created_at.desc(), Message.id.desc()),
                )
                .label("rn"),
            )
            .where(Message.conversation_id.in_(conversation_ids))
            .subquery()
        )
        latest = aliased(Message, ranked)
        result = self.session.execute(select(latest).where(ranked.c.rn == 1))
        return {message.conversation_id: message for message in result.scalars()}

    def unread_count(self, conversation_id: str, user_id: str) -> int:
        """Count messages in one conversation that ``user_id`` has not read."""
        stmt = (
            select(func.count(Message.id))
            .select_from(ConversationParticipant)
            .join(Message, Message.conversation_id == ConversationParticipant.conversation_id)
            .where(ConversationParticipant.conversation_id == conversation_id, *_is_unread_for(user_id))
        )
        return int(self.session.execute(stmt).scalar() or 0)

    def unread_by_conversation(self, user_id: str, conversation_ids: Sequence[str]) -> dict[str, int]:
        """Count unread messages for ``user_id`` in each listed conversation.

        Conversations without unread messages are absent from the result.
        """
        if not conversation_ids:
            return {}
        stmt = (
            select(Message.conversation_id, func.count(Message.id))
            .select_from(ConversationParticipant)
            .join(Message, Message.conversation_id == ConversationParticipant.conversation_id)
            .where(
                ConversationParticipant.conversation_id.in_(conversation_ids),
                *_is_unread_for(user_id),
            )
            .group_by(Message.conversation_id)
        )
        return {conversation_id: int(count) for conversation_id, count in self.session.execute(stmt)}

    def unread_total(self, user_id: str) -> int:
        """Count unread messages across every non-archived conversation of ``user_id``."""
        stmt = (
            select(func.count(Message.id))
            .select_from(ConversationParticipant)
            .join(Message, Message.conversation_id == ConversationParticipant.conversation_id)
            .where(
                ConversationParticipant.archived_at.is_(None),
                *_is_unread_for(user_id),
            )
        )
        return int(self.session.execute(stmt).scalar() or 0)
