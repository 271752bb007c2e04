"""Engine and session management for the document store."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from contractflow.core.config import get_config

logger = logging.getLogger(__name__)

config = get_config()
DATABASE_URL = config.DATABASE_URL


def enable_sqlite_foreign_keys(target: Engine) -> None:
    """SQLite leaves FK enforcement off per connection unless asked."""

    @event.listens_for(target, "connect")
    def _set_pragma(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        built = create_engine(database_url, echo=config.DEBUG and not config.is_production)
        enable_sqlite_foreign_keys(built)
        return built
    # Row locks are held across a whole unit of work, so stale pooled connections must be recycled.
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=1800,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW,
    )


def _configure_engine(database_url: str) -> None:
    global DATABASE_URL, engine, SessionLocal
    DATABASE_URL = database_url
    engine = _build_engine(database_url)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


_configure_engine(DATABASE_URL)


def get_engine() -> Engine:
    return engine


def get_active_database_url() -> str:
    return DATABASE_URL


def reset_engine(database_url: str | None = None) -> None:
    """Rebind the engine and session factory, disposing the old pool."""
    engine.dispose()
    _configure_engine(database_url or DATABASE_URL)


def new_session() -> Session:
    """Open a session on the currently bound engine."""
    return SessionLocal()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    db = new_session()
    try:
        yield db
    finally:
        db.close()


def verify_database_connection() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error(
            "database.connection_failed",
            extra={"event": "database.connection_failed", "database_url": engine.url.render_as_string()},
        )
        logger.debug("database.connection_failed.details: %s", exc)
        return False
    return True
