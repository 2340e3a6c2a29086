# tests/client/conftest.py
from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any

import httpx
import pytest

from parley.client import MessagingClient

SELF_ID = "alice-id"
OTHER_ID = "bob-id"
CONVERSATION_ID = "conv-1"


class FakeApi:
    """In-memory stand-in for the HTTP API, served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []
        self.queued: list[httpx.Response | Exception] = []
        self.hold_sends: asyncio.Event | None = None
        # Store the next sent message but fail the request as if the response was lost.
        self.drop_next_send_response = False
        self._ids = count(1)
        self._clock = datetime(2026, 1, 1, tzinfo=UTC)

    def add_message(
        self, sender_id: str, content: str, client_message_id: str | None = None
    ) -> dict[str, Any]:
        self._clock += timedelta(seconds=1)
        message = {
            "id": f"m{next(self._ids)}",
            "conversation_id": CONVERSATION_ID,
            "sender_id": sender_id,
            "sender_username": sender_id.removesuffix("-id"),
            "content": content,
            "created_at": self._clock.isoformat().replace("+00:00", "Z"),
            "client_message_id": client_message_id,
        }
        self.messages.append(message)
        return message

    def calls(self, method: str, suffix: str) -> int:
        return sum(
            1 for r in self.requests if r.method == method and r.url.path.endswith(suffix)
        )

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.queued:
            queued = self.queued.pop(0)
            if isinstance(queued, Exception):
                raise queued
            return queued

        path = request.url.path.removeprefix("/api/v1")
        base = f"/conversations/{CONVERSATION_ID}"
        if path == f"{base}/messages" and request.method == "GET":
            return httpx.Response(200, json=list(self.messages))
        if path == f"{base}/messages" and request.method == "POST":
            body = json.loads(request.content)
            cid = body.get("client_message_id")
            stored = [
                m for m in self.messages
                if cid is not None and m["sender_id"] == SELF_ID and m["client_message_id"] == cid
            ]
            if stored:
                return httpx.Response(201, json=stored[0])
            message = self.add_message(SELF_ID, body["content"].strip(), cid)
            if self.drop_next_send_response:
                self.drop_next_send_response = False
                raise httpx.ReadError("connection reset", request=request)
            if self.hold_sends is not None:
                await self.hold_sends.wait()
            return httpx.Response(201, json=message)
        if path == f"{base}/read":
            return httpx.Response(200, json={"ok": True})
        if path == f"{base}/archive":
            return httpx.Response(200, json={"ok": True})
        if path == "/conversations/unread-count":
            return httpx.Response(200, json={"count": 7})
        if path == f"{base}/unread-count":
            return httpx.Response(200, json={"count": 2})
        if path == "/conversations" and request.method == "POST":
            return httpx.Response(
                200,
                json={
                    "conversation_id": CONVERSATION_ID,
                    "other_user": {"id": OTHER_ID, "username": "bob"},
                    "created": False,
                },
            )
        if path == "/conversations" and request.method == "GET":
            return httpx.Response(200, json=[])
        return httpx.Response(404, json={"detail": "Not found", "code": "not_found"})


@pytest.fixture()
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture()
def make_client(fake_api: FakeApi):
    """Return a factory for clients wired to the fake API."""

    def _make(**kwargs: Any) -> MessagingClient:
        kwargs.setdefault("retry_delay", 0)
        return MessagingClient(
            "http://parley.test",
            "token-123",
            transport=httpx.MockTransport(fake_api.handler),
            **kwargs,
        )

    return _make
