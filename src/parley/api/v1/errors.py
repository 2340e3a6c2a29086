"""Render messaging errors as JSON responses."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, OperationalError

from parley.core.errors import MessagingError, Transient, Unauthorized
from parley.schemas import ErrorResponse

logger = logging.getLogger(__name__)

# OpenAPI documentation for the error bodies every router can return
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status_code: {"model": ErrorResponse} for status_code in (401, 403, 404, 422, 503)
}


def _render(exc: MessagingError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    if exc.retryable:
        headers = {"Retry-After": "1"}
    return JSONResponse(
        status_code=int(exc.status_code),
        content={"detail": exc.detail, "code": exc.code},
        headers=headers,
    )


async def messaging_error_handler(request: Request, exc: MessagingError) -> JSONResponse:
    """Map a ``MessagingError`` onto its HTTP status."""
    if int(exc.status_code) >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return _render(exc)


async def store_unavailable_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    """Report a lost or locked database as a retryable failure."""
    logger.warning("Store unavailable during %s %s: %s", request.method, request.url.path, exc)
    return _render(Transient())


def register_error_handlers(app: FastAPI) -> None:
    """Install the messaging exception handlers on ``app``."""
    app.add_exception_handler(MessagingError, messaging_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(OperationalError, store_unavailable_handler)  # type: ignore[arg-type]
