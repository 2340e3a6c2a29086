"""Data access helpers for conversations and their participants."""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from parley.models import Conversation, ConversationParticipant, pair_key_for

__all__ = ["ConversationRepository"]


class ConversationRepository:
    """Thin wrapper around database access for conversation entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get(self, conversation_id: str) -> Conversation | None:
        """Return a conversation by identifier."""
        return self.session.get(Conversation, conversation_id)

    def get_by_pair(self, user_a: str, user_b: str) -> Conversation | None:
        """Return the conversation between two identities, in either order."""
        result = self.session.execute(
            select(Conversation).where(Conversation.pair_key == pair_key_for(user_a, user_b))
        )
        return result.scalars().first()

    def lock(self, conversation_id: str) -> Conversation | None:
        """Return a conversation with its row locked for the current transaction.

        Backends without row locks (SQLite) serialise writers anyway.
        """
        result = self.session.execute(
            select(Conversation)
            .where(Conversation.id == conversation_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    def create_pair(self, user_a: str, user_b: str) -> Conversation:
        """Insert a conversation with both participant rows and flush it.

        Raises:
            sqlalchemy.exc.IntegrityError: If a conversation for the pair already exists.
        """
        conversation = Conversation(pair_key=pair_key_for(user_a, user_b))
        conversation.participants = [
            ConversationParticipant(user_id=user_a),
            ConversationParticipant(user_id=user_b),
        ]
        self.session.add(conversation)
        self.session.flush()
        return conversation

    def participant(self, conversation_id: str, user_id: str) -> ConversationParticipant | None:
        """Return the participant row of ``user_id`` in a conversation, if any."""
        result = self.session.execute(
            select(ConversationParticipant).where(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.user_id == user_id,
            )
        )
        return result.scalars().first()

    def participants_of(self, conversation_id: str) -> list[ConversationParticipant]:
        """Return every participant row of a conversation."""
        result = self.session.execute(
            select(ConversationParticipant)
            .where(ConversationParticipant.conversation_id == conversation_id)
            .order_by(ConversationParticipant.id)
        )
        return list(result.scalars())

    def memberships(
        self, user_id: str, *, include_archived: bool = False
    ) -> list[tuple[ConversationParticipant, Conversation]]:
        """Return ``user_id``'s participant rows with their conversations.

        Rows are ordered by conversation activity, most recent first.
        """
        stmt = (
            select(ConversationParticipant, Conversation)
            .join(Conversation, Conversation.id == ConversationParticipant.conversation_id)
            .where(ConversationParticipant.user_id == user_id)
        )
        if not include_archived:
            stmt = stmt.where(ConversationParticipant.archived_at.is_(None))
        stmt = stmt.order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        return [(row[0], row[1]) for row in self.session.execute(stmt)]

    def counterparts(self, conversation_ids: Sequence[str], user_id: str) -> dict[str, str]:
        """Map each conversation id to the identity of the other participant."""
        if not conversation_ids:
            return {}
        result = self.session.execute(
            select(ConversationParticipant.conversation_id, ConversationParticipant.user_id).where(
                ConversationParticipant.conversation_id.in_(conversation_ids),
                ConversationParticipant.user_id != user_id,
            )
        )
        return {conversation_id: other_id for conversation_id, other_id in result}

    def hide(self, conversation_id: str, user_id: str, at: datetime) -> bool:
        """Set ``archived_at`` for ``user_id`` unless it is already set.

        Returns:
            True if the row changed; an earlier archive timestamp is kept.
        """
        result = self.session.execute(
            update(ConversationParticipant)
            .where(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.user_id == user_id,
                ConversationParticipant.archived_at.is_(None),
            )
            .values(archived_at=at)
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)

    def revive(self, conversation_id: str, user_id: str) -> bool:
        """Clear ``archived_at`` for ``user_id`` if it is set.

        Returns:
            True if the participant row was archived and has been restored.
        """
        result = self.session.execute(
            update(ConversationParticipant)
            .where(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.user_id == user_id,
                ConversationParticipant.archived_at.is_not(None),
            )
            .values(archived_at=None)
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)
