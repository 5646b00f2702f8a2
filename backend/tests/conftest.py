"""Shared pytest fixtures for backend tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from passlib.context import CryptContext
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from chatlink import database
from chatlink.core import security
from chatlink.core.session import SessionContext
from chatlink.database import get_db
from chatlink.main import app
from chatlink.models import Base, User

security.pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@pytest.fixture()
def test_engine() -> Iterator[Engine]:
    """Provide an in-memory SQLite engine for isolated tests."""

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(test_engine) -> sessionmaker[Session]:
    """Return a session factory bound to the test engine."""

    return sessionmaker(bind=test_engine, future=True)


@pytest.fixture()
def db_session(session_factory) -> Iterator[Session]:
    """Yield a SQLAlchemy session for unit tests."""

    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_user(db_session) -> Callable[..., User]:
    """Create and persist users for service-level tests."""

    counter = {"value": 0}

    def _make(display_name: str | None = None, email: str | None = None) -> User:
        counter["value"] += 1
        index = counter["value"]
        user = User(
            email=email or f"user{index}@example.com",
            hashed_password="hashed",
            display_name=display_name or f"User {index}",
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture()
def ctx_for() -> Callable[[User], SessionContext]:
    return SessionContext.for_user


@pytest.fixture()
def client(session_factory, monkeypatch) -> Iterator[TestClient]:
    """Yield a FastAPI TestClient with the database dependency overridden.

    WebSocket handlers open their own sessions, so the session factory is
    swapped as well.
    """

    def override_get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    monkeypatch.setattr(database, "SessionLocal", session_factory)
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def anyio_backend() -> str:
    """Run anyio-marked tests on asyncio, the backend their markers name."""

    return "asyncio"
