"""Payment application and receipt model module."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contractflow.core.exceptions import DocumentLockedError
from contractflow.models.base import MONEY, RATE, ZERO, AuditMixin, Base, LockableMixin, status_enum, utcnow
from contractflow.models.enums import PaymentStatus


class PaymentApplication(Base, AuditMixin, LockableMixin):
    __tablename__ = "payment_applications"
    __table_args__ = (
        UniqueConstraint("contract_id", "period_no", name="uq_payment_applications_contract_period"),
        Index("idx_payment_applications_project_status", "project_id", "status"),
    )

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    contract_id: Mapped[str] = mapped_column(ForeignKey("contracts.id", ondelete="RESTRICT"), nullable=False, index=True)
    project_id: Mapped[str] = mapped_column(String(36), nullable=False)
    period_no: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    application_date: Mapped[date] = mapped_column(Date, nullable=False)
    progress_percent: Mapped[Decimal] = mapped_column(RATE, default=ZERO, nullable=False)
    cumulative_percent: Mapped[Decimal] = mapped_column(RATE, default=ZERO, nullable=False)
    request_amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    retention_amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    net_amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    received_amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        status_enum(PaymentStatus), default=PaymentStatus.DRAFT, nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text)

    contract = relationship("Contract")
    receipts: Mapped[list["PaymentReceipt"]] = relationship(
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="PaymentReceipt.id",
    )


class PaymentReceipt(Base):
    """Funds received against an application. Rows are never updated."""

    __tablename__ = "payment_receipts"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    application_id: Mapped[str] = mapped_column(
        ForeignKey("payment_applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    receipt_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(30), default="BANK_TRANSFER", nullable=False)
    reference_no: Mapped[str | None] = mapped_column(String(50))
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(36))

    application: Mapped[PaymentApplication] = relationship(back_populates="receipts")


@event.listens_for(PaymentReceipt, "before_update")
def _reject_receipt_update(mapper, connection, target: PaymentReceipt) -> None:
    raise DocumentLockedError("PaymentReceipt", target.id, ["*"])
