"""Identity rows owned by the account system."""

from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from parley.db.session import Base, new_id


class User(Base):
    """Minimal user identity.

    Accounts, credentials and profiles are managed elsewhere; messaging only
    needs the identifier and a display name.
    """

    __tablename__ = "user_account"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
