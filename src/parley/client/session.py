"""Async driver tying an open conversation view to the API."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from parley.client.api_client import MessagingClient
from parley.client.reconcile import MessageTimeline, Pending, ServerMessage, TimelineEntry
from parley.core.errors import MessagingError

logger = logging.getLogger(__name__)


class ConversationSession:
    """One conversation as seen by ``self_id`` while it is open on screen.

    Sends return immediately with a ``Pending`` entry and complete in the
    background. Opening the conversation, and any refresh that brings new
    incoming messages while it is open, mark it read.
    """

    def __init__(
        self,
        client: MessagingClient,
        conversation_id: str,
        self_id: str,
        timeline: MessageTimeline | None = None,
    ) -> None:
        self.client = client
        self.conversation_id = conversation_id
        self.self_id = self_id
        self.timeline = timeline or MessageTimeline()
        self.is_open = False
        self._last_incoming_at: datetime | None = None
        self._inflight: set[asyncio.Task[None]] = set()

    def _newest_incoming(self, messages: list[ServerMessage]) -> datetime | None:
        stamps = [message.created_at for message in messages if message.sender_id != self.self_id]
        return max(stamps, default=None)

    async def open(self) -> list[TimelineEntry]:
        """Load the history and mark the conversation read."""
        messages = await self.client.list_messages(self.conversation_id)
        self.timeline.apply_refresh(messages)
        self._last_incoming_at = self._newest_incoming(messages)
        self.is_open = True
        await self.client.mark_read(self.conversation_id)
        return self.timeline.merged()

    def close(self) -> None:
        self.is_open = False

    def send(self, content: str) -> Pending:
        """Show ``content`` as pending right away and deliver it in the background."""
        pending = self.timeline.begin_send(content)
        self._schedule(pending)
        return pending

    def resubmit(self, correlation_id: str) -> Pending | None:
        """Send a failed message again under its original correlation id."""
        pending = self.timeline.resubmit(correlation_id)
        if pending is not None:
            self._schedule(pending)
        return pending

    def _schedule(self, pending: Pending) -> None:
        task = asyncio.create_task(self._deliver(pending))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _deliver(self, pending: Pending) -> None:
        try:
            record = await self.client.send_message(
                self.conversation_id,
                pending.draft.content,
                client_message_id=pending.correlation_id,
            )
        except MessagingError as exc:
            logger.warning("Send %s failed: %s", pending.correlation_id, exc.detail)
            self.timeline.fail(pending.correlation_id, exc.detail)
        except Exception as exc:
            logger.exception("Send %s failed unexpectedly", pending.correlation_id)
            self.timeline.fail(pending.correlation_id, str(exc) or type(exc).__name__)
        else:
            self.timeline.confirm(pending.correlation_id, record)

    async def refresh(self) -> list[TimelineEntry]:
        """Poll the history; mark read if new incoming messages arrived while open."""
        messages = await self.client.list_messages(self.conversation_id)
        self.timeline.apply_refresh(messages)

        newest = self._newest_incoming(messages)
        arrived = newest is not None and (
            self._last_incoming_at is None or newest > self._last_incoming_at
        )
        if arrived:
            self._last_incoming_at = newest
            if self.is_open:
                await self.client.mark_read(self.conversation_id)
        return self.timeline.merged()

    async def drain(self) -> None:
        """Wait for every in-flight send to settle."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight))
