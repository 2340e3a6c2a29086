# src/parley/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import conversations_router, messages_router
from .errors import register_error_handlers

__all__ = [
    "conversations_router",
    "messages_router",
    "register_error_handlers",
]
