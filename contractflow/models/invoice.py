"""Invoice model module."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from contractflow.models.base import MONEY, AuditMixin, Base, status_enum
from contractflow.models.enums import InvoiceStatus


class Invoice(Base, AuditMixin):
    __tablename__ = "invoices"
    __table_args__ = (
        Index("idx_invoices_project_status", "project_id", "status"),
    )

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    project_id: Mapped[str] = mapped_column(String(36), nullable=False)
    application_id: Mapped[str | None] = mapped_column(ForeignKey("payment_applications.id", ondelete="SET NULL"))
    invoice_number: Mapped[str | None] = mapped_column(String(20))
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(
        status_enum(InvoiceStatus), default=InvoiceStatus.ISSUED, nullable=False
    )
    voided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    void_reason: Mapped[str | None] = mapped_column(Text)
