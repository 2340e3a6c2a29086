"""Read cursors and derived unread counts."""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from parley.core.errors import NotFound
from parley.db.time import utcnow
from parley.models import ConversationParticipant
from parley.repositories import ConversationRepository, MessageRepository

logger = logging.getLogger(__name__)


class ReadStateTracker:
    """Advance read cursors and compute unread counts.

    Unread counts are never stored. They are recomputed from the cursor and
    the message timestamps on every read, so a message arriving while a cursor
    moves is simply counted (or not) by the next query.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.conversations = ConversationRepository(db)
        self.messages = MessageRepository(db)

    def _participant(self, conversation_id: str, user_id: str) -> ConversationParticipant:
        participant = self.conversations.participant(conversation_id, user_id)
        if participant is None:
            raise NotFound("Conversation not found or you are not a participant")
        return participant

    def mark_read(self, conversation_id: str, user_id: str) -> datetime:
        """Move ``user_id``'s cursor to now and return the resulting cursor.

        The cursor never moves backwards. It also covers the newest message
        already stored, whose server stamp may sit a tick past the wall clock.

        Raises:
            NotFound: If the conversation does not exist or the user is not in it.
        """
        participant = self._participant(conversation_id, user_id)

        cursor = utcnow()
        newest = self.messages.newest_created_at(conversation_id)
        if newest is not None and newest > cursor:
            cursor = newest

        self.db.execute(
            update(ConversationParticipant)
            .where(
                ConversationParticipant.id == participant.id,
                or_(
                    ConversationParticipant.last_read_at.is_(None),
                    ConversationParticipant.last_read_at < cursor,
                ),
            )
            .values(last_read_at=cursor)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        self.db.refresh(participant)
        logger.debug("Read cursor of %s in %s at %s", user_id, conversation_id, participant.last_read_at)
        return participant.last_read_at or cursor

    def unread_count(self, conversation_id: str, user_id: str) -> int:
        """Count the other participant's messages newer than ``user_id``'s cursor.

        Raises:
            NotFound: If the conversation does not exist or the user is not in it.
        """
        self._participant(conversation_id, user_id)
        return self.messages.unread_count(conversation_id, user_id)

    def aggregate_unread_count(self, user_id: str) -> int:
        """Sum unread counts over every non-archived conversation of ``user_id``."""
        return self.messages.unread_total(user_id)
