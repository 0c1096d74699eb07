"""Database configuration and session management."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from portal.config import Settings, get_settings


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


def _build_engine(settings: Settings) -> Engine:
    """Create the SQLAlchemy engine for the configured ``DATABASE_URL``."""

    connect_args: dict[str, object] = {}
    if settings.database_url.startswith("sqlite"):
        # Requests are served from a thread pool; SQLite must accept that.
        connect_args["check_same_thread"] = False
    return create_engine(
        settings.database_url, pool_pre_ping=True, connect_args=connect_args
    )


settings = get_settings()
engine = _build_engine(settings)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def initialize_database() -> None:
    """Ensure all ORM models have corresponding database tables."""

    from portal.infrastructure import models  # noqa: F401  # ensure models are imported

    Base.metadata.create_all(bind=engine, checkfirst=True)


def get_db() -> Generator:
    """Yield a database session and close it afterwards."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "get_db",
    "initialize_database",
]
