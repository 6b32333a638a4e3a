"""Database session configuration."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from townsquare.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Import the models so Base.metadata is complete for Alembic and the test schema.
import townsquare.models  # noqa: E402,F401


def engine_options(url: str, timeout_seconds: float) -> dict[str, Any]:
    """Return driver options that bound every store round trip by ``timeout_seconds``."""
    if url.startswith("sqlite"):
        # Busy timeout: how long a writer waits on a locked database.
        return {"connect_args": {"timeout": timeout_seconds, "check_same_thread": False}}
    options: dict[str, Any] = {"pool_timeout": timeout_seconds}
    if url.startswith("postgresql"):
        options["connect_args"] = {
            "connect_timeout": max(1, int(timeout_seconds)),
            "options": f"-c statement_timeout={int(timeout_seconds * 1000)}",
        }
    return options


def build_engine(url: str | None = None) -> Engine:
    url = url or settings.effective_database_url
    return create_engine(
        url,
        pool_pre_ping=True,
        echo=settings.sql_debug,
        **engine_options(url, settings.store_timeout_seconds),
    )


engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
