"""Conversation resolution: find or create the thread between two identities."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from parley.core.errors import InvalidOperation, NotFound, Transient
from parley.models import Conversation, User, pair_key_for
from parley.repositories import ConversationRepository
from parley.services.display import UserRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedConversation:
    """Outcome of ``ConversationResolver.find_or_create``."""

    conversation_id: str
    other_user: UserRef
    created: bool


class ConversationResolver:
    """Find or create the unique two-party conversation for an identity pair.

    Creation relies on the unique ``pair_key`` column instead of a lock: when
    two first contacts race, the loser's insert fails, its transaction is
    rolled back and the winner's row is read instead.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.conversations = ConversationRepository(db)

    def find_or_create(self, self_id: str, other_id: str) -> ResolvedConversation:
        """Return the conversation between ``self_id`` and ``other_id``.

        If the requester had archived the conversation it is restored to their
        active list; the other participant's archive state is left alone.

        Raises:
            InvalidOperation: If both identities are the same.
            NotFound: If ``other_id`` is not a known user.
        """
        if self_id == other_id:
            raise InvalidOperation("You cannot start a conversation with yourself")

        other = self.db.get(User, other_id)
        if other is None:
            raise NotFound("User not found")
        other_user = UserRef(id=other.id, username=other.username)

        created = False
        conversation = self.conversations.get_by_pair(self_id, other_id)
        if conversation is None:
            conversation, created = self._create(self_id, other_id)

        if not created and self.conversations.revive(conversation.id, self_id):
            self.db.commit()
            logger.info("Unarchived conversation %s for %s on re-contact", conversation.id, self_id)

        return ResolvedConversation(
            conversation_id=conversation.id,
            other_user=other_user,
            created=created,
        )

    def _create(self, self_id: str, other_id: str) -> tuple[Conversation, bool]:
        try:
            conversation = self.conversations.create_pair(self_id, other_id)
            conversation_id = conversation.id
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(
                "Lost creation race for pair %s; reading the existing conversation",
                pair_key_for(self_id, other_id),
            )
            winner = self.conversations.get_by_pair(self_id, other_id)
            if winner is None:
                # The constraint fired but the row is not visible yet.
                raise Transient("Conversation creation conflicted; retry the request") from None
            return winner, False

        logger.info("Created conversation %s", conversation_id)
        return conversation, True

    def participants(self, conversation_id: str) -> list[str]:
        """Return the identities taking part in a conversation.

        Raises:
            NotFound: If the conversation does not exist.
        """
        if self.conversations.get(conversation_id) is None:
            raise NotFound("Conversation not found")
        return [row.user_id for row in self.conversations.participants_of(conversation_id)]
