"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field


class OkResponse(BaseModel):
    """Acknowledgement for state-changing calls without a payload."""

    ok: bool = True


class UnreadCountResponse(BaseModel):
    """Derived unread message count."""

    count: int = Field(..., ge=0)


class ErrorResponse(BaseModel):
    """Body of every error response."""

    detail: str
    code: str
