"""Schema bootstrap for development and test databases."""

from __future__ import annotations

import logging

from sqlalchemy import inspect

import contractflow.database.db as db_module
from contractflow.models import Base

logger = logging.getLogger(__name__)


def init_db(engine=None) -> list[str]:
    """Create any missing tables and return the names that were created."""
    target = engine or db_module.get_engine()
    existing = set(inspect(target).get_table_names())
    Base.metadata.create_all(bind=target)
    created = sorted(set(Base.metadata.tables) - existing)
    if created:
        logger.info(
            "database.schema.created",
            extra={"event": "database.schema.created", "tables": created},
        )
    return created
