"""Engine and session factories shared by the HTTP and WebSocket layers."""

from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from chatlink.config import get_settings

settings = get_settings()


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    # MySQL closes idle connections after wait_timeout (8h by default).
    return {"pool_size": 10, "max_overflow": 20, "pool_pre_ping": True, "pool_recycle": 3600}


engine = create_engine(
    settings.database_url,
    echo=settings.debug,
    future=True,
    **_engine_options(settings.database_url),
)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def get_db() -> Iterator[Session]:
    """Request-scoped session dependency."""
    with get_db_session() as db:
        yield db


@contextmanager
def get_db_session() -> Iterator[Session]:
    """Open a short-lived session.

    WebSocket handlers use this around each unit of work so a socket never
    pins a pooled connection for its whole lifetime.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
