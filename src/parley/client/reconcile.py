"""Optimistic message timeline for a single open conversation.

Outgoing messages are shown as ``Pending`` as soon as they are composed. The
server's answer is matched back by correlation id, never by content, so two
identical messages sent in a row stay two messages. Failures are taken out of
the rendered timeline and kept aside as ``Failed`` until the user resubmits or
dismisses them.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServerMessage:
    """A message as persisted and returned by the server."""

    id: str
    conversation_id: str
    sender_id: str
    sender_username: str
    content: str
    created_at: datetime
    client_message_id: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ServerMessage:
        created_at = datetime.fromisoformat(payload["created_at"])
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        return cls(
            id=payload["id"],
            conversation_id=payload["conversation_id"],
            sender_id=payload["sender_id"],
            sender_username=payload.get("sender_username", ""),
            content=payload["content"],
            created_at=created_at,
            client_message_id=payload.get("client_message_id"),
        )


@dataclass(frozen=True)
class Draft:
    """Text composed locally, stamped with the client clock."""

    content: str
    created_at: datetime


@dataclass(frozen=True)
class Confirmed:
    """A message the server has stored."""

    record: ServerMessage

    @property
    def created_at(self) -> datetime:
        return self.record.created_at


@dataclass(frozen=True)
class Pending:
    """An outgoing message awaiting the server's answer."""

    correlation_id: str
    draft: Draft

    @property
    def created_at(self) -> datetime:
        return self.draft.created_at


@dataclass(frozen=True)
class Failed:
    """An outgoing message the server did not accept."""

    correlation_id: str
    draft: Draft
    reason: str


TimelineEntry = Union[Confirmed, Pending]


def new_correlation_id() -> str:
    return uuid.uuid4().hex


class MessageTimeline:
    """Confirmed, pending and failed messages of one conversation.

    Not thread-safe; meant to be driven from a single event loop.
    """

    def __init__(self) -> None:
        self._confirmed: dict[str, ServerMessage] = {}
        self._pending: dict[str, Pending] = {}
        self._failed: dict[str, Failed] = {}
        # Records confirmed by a send response that no refresh has returned yet.
        self._unseen: set[str] = set()

    def begin_send(self, content: str, now: datetime | None = None) -> Pending:
        """Register a new outgoing message and return its pending entry."""
        return self._track(new_correlation_id(), content, now)

    def _track(self, correlation_id: str, content: str, now: datetime | None) -> Pending:
        pending = Pending(
            correlation_id=correlation_id,
            draft=Draft(content=content, created_at=now or datetime.now(UTC)),
        )
        self._pending[correlation_id] = pending
        return pending

    def confirm(self, correlation_id: str, record: ServerMessage) -> Confirmed | None:
        """Replace a pending entry with its durable record.

        Returns None when ``correlation_id`` is not pending, e.g. a duplicate
        or late response.
        """
        if self._pending.pop(correlation_id, None) is None:
            logger.debug("Ignoring confirmation for unknown correlation id %s", correlation_id)
            return None
        if record.id not in self._confirmed:
            self._confirmed[record.id] = record
            self._unseen.add(record.id)
        return Confirmed(self._confirmed[record.id])

    def fail(self, correlation_id: str, reason: str) -> Failed | None:
        """Move a pending entry out of the timeline into the failure list."""
        pending = self._pending.pop(correlation_id, None)
        if pending is None:
            logger.debug("Ignoring failure for unknown correlation id %s", correlation_id)
            return None
        failed = Failed(correlation_id=correlation_id, draft=pending.draft, reason=reason)
        self._failed[correlation_id] = failed
        return failed

    def resubmit(self, correlation_id: str, now: datetime | None = None) -> Pending | None:
        """Turn a failure back into a pending send.

        The correlation id is kept, so a first attempt that reached the server
        but lost its response is answered with the stored record instead of
        being stored twice.
        """
        failed = self._failed.pop(correlation_id, None)
        if failed is None:
            return None
        return self._track(correlation_id, failed.draft.content, now)

    def dismiss(self, correlation_id: str) -> bool:
        """Forget a failure without sending it again."""
        return self._failed.pop(correlation_id, None) is not None

    def apply_refresh(self, messages: list[ServerMessage]) -> None:
        """Replace the confirmed set with a fresh server listing.

        Pending and failed entries whose correlation id is carried by a listed
        record are resolved by it; other pending entries are never evicted.
        Records confirmed locally but missing from the listing are kept, since
        the listing may have been taken before they were stored.
        """
        fresh = {message.id: message for message in messages}
        for message in messages:
            cid = message.client_message_id
            if cid is None:
                continue
            if self._pending.pop(cid, None) is not None:
                logger.debug("Refresh resolved pending send %s as %s", cid, message.id)
            self._failed.pop(cid, None)
        for message_id in self._unseen - fresh.keys():
            fresh[message_id] = self._confirmed[message_id]
        self._unseen.difference_update(message.id for message in messages)
        self._confirmed = fresh

    def merged(self) -> list[TimelineEntry]:
        """Confirmed and pending entries in display order."""
        entries: list[TimelineEntry] = [Confirmed(record) for record in self._confirmed.values()]
        entries.extend(self._pending.values())
        return sorted(entries, key=_display_key)

    def failures(self) -> list[Failed]:
        return list(self._failed.values())

    def has_pending(self, correlation_id: str) -> bool:
        return correlation_id in self._pending


def _display_key(entry: TimelineEntry) -> tuple[datetime, int, str]:
    if isinstance(entry, Confirmed):
        return (entry.created_at, 0, entry.record.id)
    return (entry.created_at, 1, entry.correlation_id)
