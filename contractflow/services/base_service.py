"""Shared service base with robust session lifecycle behavior."""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from contractflow.core.exceptions import NotFoundError, ValidationError
from contractflow.database.db import new_session

T = TypeVar("T")
S = TypeVar("S", bound=BaseModel)

_DEPTH_KEY = "contractflow.atomic_depth"


class BaseService:
    """Base class for services that operate on a SQLAlchemy session.

    Services constructed on the same session share one unit of work: only the
    outermost ``atomic()`` block commits, inner blocks flush.
    """

    def __init__(self, db: Session | None = None) -> None:
        self.db = db or new_session()

    def commit(self) -> None:
        """Commit current transaction and rollback on failure."""
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def rollback(self) -> None:
        self.db.rollback()

    def close(self) -> None:
        self.db.close()

    @contextmanager
    def atomic(self) -> Generator[Session, None, None]:
        """Run a block as one transaction: commit on success, roll back on any error."""
        depth = self.db.info.get(_DEPTH_KEY, 0)
        self.db.info[_DEPTH_KEY] = depth + 1
        try:
            yield self.db
            if depth == 0:
                self.commit()
            else:
                self.db.flush()
        except Exception:
            if depth == 0:
                self.rollback()
            raise
        finally:
            self.db.info[_DEPTH_KEY] = depth

    def _get_or_404(self, model: type[T], document_id: str, document_type: str, for_update: bool = False) -> T:
        stmt = select(model).where(model.id == document_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        document = self.db.execute(stmt).scalar_one_or_none()
        if document is None:
            raise NotFoundError(document_type, document_id)
        return document

    @staticmethod
    def _changes(patch: Any) -> dict[str, Any]:
        """Normalize a pydantic patch or mapping into the fields that were actually set."""
        if patch is None:
            return {}
        if hasattr(patch, "model_dump"):
            return patch.model_dump(exclude_unset=True)
        return dict(patch)

    @staticmethod
    def _parse(schema: type[S], payload: Any) -> S:
        """Validate a mapping into ``schema``; pydantic errors surface as ``ValidationError``."""
        if isinstance(payload, schema):
            return payload
        try:
            return schema.model_validate(payload or {})
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Invalid {schema.__name__}",
                errors=exc.errors(include_url=False, include_context=False),
            ) from exc

    def __enter__(self) -> "BaseService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()
        self.close()
