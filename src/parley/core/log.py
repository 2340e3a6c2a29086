"""Logging setup for the service process."""
from __future__ import annotations

import logging

from parley.core.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Apply the configured log level to the ``parley`` logger tree.

    Handlers are only installed when the root logger has none, so uvicorn's or
    pytest's own logging configuration is left untouched.
    """
    resolved = (level or settings.log_level).upper()
    if not logging.getLogger().handlers:
        logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("parley").setLevel(resolved)
    if settings.sql_debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
