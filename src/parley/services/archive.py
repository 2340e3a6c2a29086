"""Participant-scoped archiving of conversations."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from parley.core.errors import NotFound
from parley.db.time import utcnow
from parley.repositories import ConversationRepository

logger = logging.getLogger(__name__)


class ArchiveController:
    """Hide or restore a conversation in one participant's list.

    Only the caller's participant row changes; messages and the other
    participant's view are untouched.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.conversations = ConversationRepository(db)

    def _require_participant(self, conversation_id: str, user_id: str) -> None:
        if self.conversations.participant(conversation_id, user_id) is None:
            raise NotFound("Conversation not found or you are not a participant")

    def archive(self, conversation_id: str, user_id: str) -> None:
        """Hide the conversation for ``user_id``; repeating keeps the first timestamp."""
        self._require_participant(conversation_id, user_id)
        if self.conversations.hide(conversation_id, user_id, utcnow()):
            logger.info("Archived conversation %s for %s", conversation_id, user_id)
        self.db.commit()

    def unarchive(self, conversation_id: str, user_id: str) -> None:
        """Restore the conversation to ``user_id``'s active list."""
        self._require_participant(conversation_id, user_id)
        if self.conversations.revive(conversation_id, user_id):
            logger.info("Unarchived conversation %s for %s", conversation_id, user_id)
        self.db.commit()
