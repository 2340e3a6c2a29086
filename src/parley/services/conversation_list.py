"""Conversation summaries for an identity's inbox."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from parley.models import Message
from parley.repositories import ConversationRepository, MessageRepository
from parley.services.display import DisplayNameLookup, UserRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LastMessage:
    """Preview of the most recent message in a conversation."""

    id: str
    content: str
    created_at: datetime
    sender_id: str

    @classmethod
    def from_message(cls, message: Message) -> LastMessage:
        return cls(
            id=message.id,
            content=message.content,
            created_at=message.created_at,
            sender_id=message.sender_id,
        )


@dataclass(frozen=True)
class ConversationSummary:
    """One inbox row."""

    id: str
    other_user: UserRef
    last_message: LastMessage | None
    unread_count: int
    is_archived: bool
    updated_at: datetime


class ConversationListAssembler:
    """Join participant rows, latest messages and unread counts into summaries.

    Holds no state; every call reads the store afresh.
    """

    def __init__(self, db: Session) -> None:
        self.conversations = ConversationRepository(db)
        self.messages = MessageRepository(db)
        self.display = DisplayNameLookup(db)

    def list(self, user_id: str, *, include_archived: bool = False) -> list[ConversationSummary]:
        """Return ``user_id``'s conversations, most recently active first.

        Archived conversations are left out unless ``include_archived`` is set.
        """
        memberships = self.conversations.memberships(user_id, include_archived=include_archived)
        conversation_ids = [conversation.id for _, conversation in memberships]

        counterparts = self.conversations.counterparts(conversation_ids, user_id)
        latest = self.messages.latest_by_conversation(conversation_ids)
        unread = self.messages.unread_by_conversation(user_id, conversation_ids)
        names = self.display.names_for(counterparts.values())

        summaries: list[ConversationSummary] = []
        for participant, conversation in memberships:
            other_id = counterparts.get(conversation.id)
            if other_id is None:
                logger.warning("Conversation %s has no second participant; skipping", conversation.id)
                continue
            last = latest.get(conversation.id)
            summaries.append(
                ConversationSummary(
                    id=conversation.id,
                    other_user=UserRef(id=other_id, username=names[other_id]),
                    last_message=LastMessage.from_message(last) if last is not None else None,
                    unread_count=unread.get(conversation.id, 0),
                    is_archived=participant.is_archived,
                    updated_at=conversation.updated_at,
                )
            )
        return summaries
