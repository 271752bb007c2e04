"""Startup validation and bootstrap helpers."""

from __future__ import annotations

import logging

from sqlalchemy import inspect

from contractflow.core.config import get_config
from contractflow.core.exceptions import DatabaseError
from contractflow.core.logging_config import configure_logging
from contractflow.database.db import get_active_database_url, get_engine, verify_database_connection
from contractflow.database.init_db import init_db
from contractflow.models import Base

logger = logging.getLogger(__name__)


def missing_tables() -> list[str]:
    """Document tables the bound database does not have yet."""
    existing = set(inspect(get_engine()).get_table_names())
    return sorted(set(Base.metadata.tables) - existing)


def validate_startup_config() -> bool:
    """Check connectivity; raise when the database is required and unreachable."""
    config = get_config()
    database_ok = verify_database_connection()
    scheme = get_active_database_url().split("://", 1)[0]

    if not database_ok:
        if config.DB_CONNECTIVITY_REQUIRED:
            raise DatabaseError("Database connectivity check failed.", database_url_scheme=scheme)
        logger.warning(
            "startup.database.unreachable",
            extra={"event": "startup.database.unreachable", "database_url_scheme": scheme},
        )

    # SQLite has no row-level locks, so concurrent writers serialize on the whole file.
    if config.is_production and scheme.startswith("sqlite"):
        logger.warning(
            "startup.production.sqlite_detected",
            extra={"event": "startup.production.sqlite_detected"},
        )

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "database_url_scheme": scheme,
            "db_connectivity_required": config.DB_CONNECTIVITY_REQUIRED,
        },
    )
    return database_ok


def bootstrap(create_schema: bool = False) -> None:
    configure_logging()
    if not validate_startup_config():
        return
    if create_schema:
        init_db()
        return
    missing = missing_tables()
    if missing:
        logger.warning(
            "startup.schema.incomplete",
            extra={"event": "startup.schema.incomplete", "tables": missing},
        )
