"""Async HTTP client for the Parley v1 API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from types import TracebackType
from typing import Any

import httpx

from parley.client.reconcile import ServerMessage
from parley.core.errors import MessagingError, Transient, error_from_response

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_DELAY = 0.25


class MessagingClient:
    """Thin wrapper over ``httpx.AsyncClient`` with one method per endpoint.

    Error responses are turned back into ``MessagingError`` subclasses.
    Transient failures are retried with a linear backoff, except for
    ``send_message``: a send whose outcome is unknown must be resubmitted by
    the user, not replayed.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        timeout: float = DEFAULT_TIMEOUT,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.max_retries = max(0, max_retries)
        self.retry_delay = retry_delay
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/api/v1",
            headers={"Authorization": f"Bearer {token}"},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def __aenter__(self) -> MessagingClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _error_for(response: httpx.Response) -> MessagingError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, Mapping):
            body = {}
        detail = body.get("detail")
        if detail is not None and not isinstance(detail, str):
            # Request validation errors carry a list of problems
            detail = str(detail)
        return error_from_response(response.status_code, body.get("code"), detail)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any | None = None,
        params: Mapping[str, Any] | None = None,
        retry: bool = True,
    ) -> Any:
        attempts = 1 + (self.max_retries if retry else 0)
        for attempt in range(1, attempts + 1):
            try:
                response = await self._client.request(method, path, json=json, params=params)
            except httpx.TransportError as exc:
                error: MessagingError = Transient(f"{method} {path} failed: {exc}")
            else:
                if response.is_success:
                    return response.json()
                error = self._error_for(response)

            if not error.retryable or attempt >= attempts:
                raise error
            logger.warning(
                "%s %s failed (%s), retrying (%d/%d)",
                method, path, error.detail, attempt, attempts - 1,
            )
            await asyncio.sleep(self.retry_delay * attempt)
        raise AssertionError("unreachable")  # pragma: no cover

    async def resolve_conversation(self, other_user_id: str) -> dict[str, Any]:
        """Find or start the conversation with ``other_user_id``."""
        result: dict[str, Any] = await self._request(
            "POST", "/conversations", json={"other_user_id": other_user_id}
        )
        return result

    async def list_conversations(self, *, include_archived: bool = False) -> list[dict[str, Any]]:
        params = {"include_archived": "true"} if include_archived else None
        result: list[dict[str, Any]] = await self._request("GET", "/conversations", params=params)
        return result

    async def list_messages(self, conversation_id: str) -> list[ServerMessage]:
        payload = await self._request("GET", f"/conversations/{conversation_id}/messages")
        return [ServerMessage.from_payload(item) for item in payload]

    async def send_message(
        self,
        conversation_id: str,
        content: str,
        *,
        client_message_id: str | None = None,
    ) -> ServerMessage:
        """Send a message. Never retried."""
        body: dict[str, Any] = {"content": content}
        if client_message_id is not None:
            body["client_message_id"] = client_message_id
        payload = await self._request(
            "POST", f"/conversations/{conversation_id}/messages", json=body, retry=False
        )
        return ServerMessage.from_payload(payload)

    async def mark_read(self, conversation_id: str) -> None:
        await self._request("POST", f"/conversations/{conversation_id}/read")

    async def archive(self, conversation_id: str) -> None:
        await self._request("POST", f"/conversations/{conversation_id}/archive")

    async def unarchive(self, conversation_id: str) -> None:
        await self._request("DELETE", f"/conversations/{conversation_id}/archive")

    async def unread_count(self, conversation_id: str | None = None) -> int:
        """Unread messages in one conversation, or across all active ones."""
        path = (
            f"/conversations/{conversation_id}/unread-count"
            if conversation_id
            else "/conversations/unread-count"
        )
        payload = await self._request("GET", path)
        return int(payload["count"])
