"""Contract model module."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contractflow.models.base import MONEY, RATE, ZERO, AuditMixin, Base, LockableMixin, status_enum
from contractflow.models.enums import ContractStatus


class Contract(Base, AuditMixin, LockableMixin):
    __tablename__ = "contracts"
    __table_args__ = (
        UniqueConstraint("quotation_id", name="uq_contracts_quotation_id"),
        Index("idx_contracts_project_status", "project_id", "status"),
    )

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    project_id: Mapped[str] = mapped_column(String(36), nullable=False)
    quotation_id: Mapped[str | None] = mapped_column(ForeignKey("quotations.id", ondelete="RESTRICT"))
    contract_no: Mapped[str | None] = mapped_column(String(50))
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    contract_type: Mapped[str] = mapped_column(String(30), default="FIXED_PRICE", nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="TWD", nullable=False)
    original_amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    change_amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    current_amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    retention_rate: Mapped[Decimal] = mapped_column(RATE, default=ZERO, nullable=False)
    retention_amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    payment_terms: Mapped[str] = mapped_column(String(30), default="PROGRESS", nullable=False)
    sign_date: Mapped[date | None] = mapped_column(Date)
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)
    warranty_months: Mapped[int] = mapped_column(Integer, default=12, nullable=False)
    warranty_end: Mapped[date | None] = mapped_column(Date)
    status: Mapped[ContractStatus] = mapped_column(
        status_enum(ContractStatus), default=ContractStatus.DRAFT, nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text)

    quotation = relationship("Quotation")
