"""Display-name lookup used when assembling messages and summaries."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from parley.core.settings import settings
from parley.models import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserRef:
    """Identity plus the name to show for it."""

    id: str
    username: str


class DisplayNameLookup:
    """Resolve user ids to display names, degrading to a placeholder.

    Lookup failures are logged and never propagate: a missing name must not
    block listing or sending messages.
    """

    def __init__(self, db: Session, placeholder: str | None = None) -> None:
        self.db = db
        self.placeholder = placeholder or settings.unknown_display_name

    def names_for(self, user_ids: Iterable[str]) -> dict[str, str]:
        """Return a name for every requested id."""
        wanted = set(user_ids)
        if not wanted:
            return {}
        try:
            rows = self.db.execute(select(User.id, User.username).where(User.id.in_(wanted))).all()
        except SQLAlchemyError as exc:
            logger.warning("Display name lookup failed for %d users: %s", len(wanted), exc)
            return dict.fromkeys(wanted, self.placeholder)
        found = {user_id: username for user_id, username in rows}
        return {user_id: found.get(user_id, self.placeholder) for user_id in wanted}

    def name_for(self, user_id: str) -> str:
        """Return a single display name."""
        return self.names_for([user_id])[user_id]
