"""Cost entry model module."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from contractflow.models.base import MONEY, AuditMixin, Base


class CostEntry(Base, AuditMixin):
    __tablename__ = "cost_entries"
    __table_args__ = (
        Index("idx_cost_entries_project_paid", "project_id", "is_paid"),
    )

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    project_id: Mapped[str] = mapped_column(String(36), nullable=False)
    contract_id: Mapped[str | None] = mapped_column(ForeignKey("contracts.id", ondelete="SET NULL"))
    category: Mapped[str] = mapped_column(String(50), default="MATERIAL", nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    payment_method: Mapped[str | None] = mapped_column(String(30))
    source_reference: Mapped[str | None] = mapped_column(String(60))
