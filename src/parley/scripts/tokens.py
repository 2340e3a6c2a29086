# src/parley/scripts/tokens.py
"""
Mint bearer tokens for existing users.

Identity issuance lives outside this service; this script covers local
development and operations, where a token for a known user id is needed to
call the API by hand:

    python -m parley.scripts.tokens <user_id> [--create USERNAME]
"""

from __future__ import annotations

import argparse
import sys

from sqlalchemy.orm import Session

from parley.core.security import create_access_token
from parley.db.session import SessionLocal
from parley.models import User


def ensure_user(db: Session, user_id: str, username: str | None) -> User | None:
    """Return the user, creating it first when ``username`` is given.

    Args:
        db: Database session
        user_id: Identity to mint a token for
        username: Display name to create the user with, if missing

    Returns:
        The user row, or None if it does not exist and was not created
    """
    user = db.get(User, user_id)
    if user is None and username:
        user = User(id=user_id, username=username)
        db.add(user)
        db.commit()
        print(f"Created user {user_id} ({username})")
    return user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Mint a bearer token for a Parley user.")
    parser.add_argument("user_id", help="id of the user the token is issued for")
    parser.add_argument("--create", metavar="USERNAME", help="create the user if it does not exist")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        user = ensure_user(db, args.user_id, args.create)
    finally:
        db.close()

    if user is None:
        print(f"Unknown user {args.user_id}", file=sys.stderr)
        return 1

    print(create_access_token(user.id))
    return 0


if __name__ == "__main__":
    sys.exit(main())
