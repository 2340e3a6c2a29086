# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "parley-test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from parley.core.security import create_access_token  # noqa: E402
from parley.core.settings import Settings, settings  # noqa: E402
from parley.db.session import Base  # noqa: E402
from parley.db.session import get_db as app_get_session  # noqa: E402
from parley.main import app as fastapi_app  # noqa: E402
from parley.models import User  # noqa: E402
from parley.services import ConversationResolver  # noqa: E402

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    # Services commit, so isolation comes from wiping the tables afterwards.
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def _make_user(db_session: Session, username: str) -> User:
    user = User(id=f"{username}-id", username=username)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def alice(db_session: Session) -> User:
    """Create and return a persisted user named alice."""
    return _make_user(db_session, "alice")


@pytest.fixture()
def bob(db_session: Session) -> User:
    """Create and return a persisted user named bob."""
    return _make_user(db_session, "bob")


@pytest.fixture()
def carol(db_session: Session) -> User:
    """Create and return a persisted user named carol."""
    return _make_user(db_session, "carol")


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a factory building authorization headers for a user."""

    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(user.id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def alice_bob(db_session: Session, alice: User, bob: User) -> str:
    """Return the id of the conversation between alice and bob."""
    return ConversationResolver(db_session).find_or_create(alice.id, bob.id).conversation_id


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide the Settings instance the application runs with."""
    return settings
