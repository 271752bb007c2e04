"""Finance transaction model module."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from contractflow.models.base import MONEY, AuditMixin, Base, status_enum
from contractflow.models.enums import TransactionType


class FinanceTransaction(Base, AuditMixin):
    __tablename__ = "finance_transactions"
    __table_args__ = (
        UniqueConstraint("reference_type", "reference_id", name="uq_finance_transactions_reference"),
        Index("idx_finance_transactions_project", "project_id"),
    )

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    transaction_type: Mapped[TransactionType] = mapped_column(status_enum(TransactionType), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    category: Mapped[str | None] = mapped_column(String(50))
    description: Mapped[str | None] = mapped_column(Text)
    project_id: Mapped[str | None] = mapped_column(String(36))
    reference_type: Mapped[str] = mapped_column(String(30), nullable=False)
    reference_id: Mapped[str] = mapped_column(String(40), nullable=False)
