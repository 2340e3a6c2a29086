"""Message pipeline: validate, stamp and persist outbound messages."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from parley.core.errors import Forbidden, InvalidInput, NotFound, Transient
from parley.core.settings import settings
from parley.db.time import TICK, utcnow
from parley.models import Conversation, Message
from parley.repositories import ConversationRepository, MessageRepository
from parley.services.display import DisplayNameLookup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MessageView:
    """A persisted message joined with its sender's display name."""

    id: str
    conversation_id: str
    sender_id: str
    sender_username: str
    content: str
    created_at: datetime
    client_message_id: str | None = None

    @classmethod
    def from_message(cls, message: Message, sender_username: str) -> MessageView:
        return cls(
            id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            sender_username=sender_username,
            content=message.content,
            created_at=message.created_at,
            client_message_id=message.client_message_id,
        )


def next_stamp(conversation: Conversation, now: datetime | None = None) -> datetime:
    """Return a creation time strictly after the conversation's last activity.

    The wall clock is used unless it has not moved past the previous message
    (same tick, or a clock step backwards).
    """
    stamp = now or utcnow()
    if stamp <= conversation.updated_at:
        stamp = conversation.updated_at + TICK
    return stamp


class MessagePipeline:
    """Validate and persist messages, and list a conversation's history."""

    def __init__(self, db: Session, max_length: int | None = None) -> None:
        self.db = db
        self.max_length = max_length or settings.message_max_length
        self.conversations = ConversationRepository(db)
        self.messages = MessageRepository(db)
        self.display = DisplayNameLookup(db)

    def validate_content(self, content: str) -> str:
        """Return trimmed content, rejecting empty or oversized text.

        Raises:
            InvalidInput: If the trimmed text is empty or longer than the bound.
        """
        body = (content or "").strip()
        if not body:
            raise InvalidInput("Message content cannot be empty")
        if len(body) > self.max_length:
            raise InvalidInput(f"Message content exceeds {self.max_length} characters")
        return body

    def _require_participant(self, conversation_id: str, user_id: str) -> None:
        if self.conversations.get(conversation_id) is None:
            raise NotFound("Conversation not found")
        if self.conversations.participant(conversation_id, user_id) is None:
            raise Forbidden()

    def send(
        self,
        conversation_id: str,
        sender_id: str,
        content: str,
        client_message_id: str | None = None,
    ) -> MessageView:
        """Persist a message and bump the conversation's last activity.

        Neither participant's read cursor moves; the sender's own messages are
        excluded from their unread count by definition. Repeating a send with
        the same ``client_message_id`` returns the message stored the first
        time instead of adding another.

        Raises:
            NotFound: If the conversation does not exist.
            Forbidden: If the sender is not a participant.
            InvalidInput: If the content is empty or too long.
            Transient: If a concurrent repeat conflicted and its row is not visible yet.
        """
        self._require_participant(conversation_id, sender_id)
        body = self.validate_content(content)

        if client_message_id is not None:
            stored = self.messages.by_client_id(conversation_id, sender_id, client_message_id)
            if stored is not None:
                logger.info("Repeated send %s in conversation %s", client_message_id, conversation_id)
                return MessageView.from_message(stored, self.display.name_for(sender_id))

        conversation = self.conversations.lock(conversation_id)
        if conversation is None:  # pragma: no cover - deleted between checks
            raise NotFound("Conversation not found")

        stamp = next_stamp(conversation)
        try:
            message = self.messages.append(
                conversation_id=conversation_id,
                sender_id=sender_id,
                content=body,
                created_at=stamp,
                client_message_id=client_message_id,
            )
            conversation.updated_at = stamp
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if client_message_id is None:
                raise
            logger.info("Lost race for send %s; reading the stored message", client_message_id)
            stored = self.messages.by_client_id(conversation_id, sender_id, client_message_id)
            if stored is None:
                raise Transient("Message send conflicted; retry the request") from None
            message = stored
        else:
            logger.debug("Stored message %s in conversation %s", message.id, conversation_id)

        return MessageView.from_message(message, self.display.name_for(sender_id))

    def list_messages(self, conversation_id: str, user_id: str) -> list[MessageView]:
        """Return a conversation's messages, oldest first.

        Raises:
            NotFound: If the conversation does not exist.
            Forbidden: If ``user_id`` is not a participant.
        """
        self._require_participant(conversation_id, user_id)
        messages = self.messages.list_for_conversation(conversation_id)
        names = self.display.names_for(message.sender_id for message in messages)
        return [MessageView.from_message(message, names[message.sender_id]) for message in messages]
