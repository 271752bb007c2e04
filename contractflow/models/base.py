"""Shared SQLAlchemy base, column helpers and common mixins."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, Enum, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Currency amounts keep two decimals, rates and percents keep four.
MONEY = Numeric(15, 2)
RATE = Numeric(9, 4)
QUANTITY = Numeric(12, 2)

ZERO = Decimal("0")


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp helper."""
    return datetime.now(timezone.utc)


def status_enum(enum_cls: type[enum.Enum]) -> Enum:
    """Persist an enum by value (``CTR_ACTIVE``) rather than by member name."""
    return Enum(
        enum_cls,
        values_callable=lambda members: [member.value for member in members],
        native_enum=False,
        length=30,
        validate_strings=True,
    )


class Base(DeclarativeBase):
    """Declarative base class for the document schema."""


class AuditMixin:
    """Standard audit fields for all document tables."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(36))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    updated_by: Mapped[str | None] = mapped_column(String(36))


class LockableMixin:
    """Lock stamp set at the lifecycle event that freezes a document."""

    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    locked_by: Mapped[str | None] = mapped_column(String(36))

    @property
    def is_locked(self) -> bool:
        return self.locked_at is not None
