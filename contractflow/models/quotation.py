"""Quotation model module."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contractflow.models.base import MONEY, QUANTITY, RATE, ZERO, AuditMixin, Base, LockableMixin, status_enum
from contractflow.models.enums import QuotationStatus


class Quotation(Base, AuditMixin, LockableMixin):
    __tablename__ = "quotations"
    __table_args__ = (
        Index("idx_quotations_project_current", "project_id", "is_current"),
        Index("idx_quotations_parent", "parent_id"),
    )

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    project_id: Mapped[str] = mapped_column(String(36), nullable=False)
    version_no: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    parent_id: Mapped[str | None] = mapped_column(String(20))
    is_current: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    title: Mapped[str | None] = mapped_column(String(200))
    currency: Mapped[str] = mapped_column(String(3), default="TWD", nullable=False)
    exchange_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("1"), nullable=False)
    is_tax_included: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("5"), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    valid_until: Mapped[date | None] = mapped_column(Date)
    status: Mapped[QuotationStatus] = mapped_column(
        status_enum(QuotationStatus), default=QuotationStatus.DRAFT, nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text)

    items: Mapped[list["QuotationItem"]] = relationship(
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationItem.item_order",
    )


class QuotationItem(Base):
    __tablename__ = "quotation_items"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    quotation_id: Mapped[str] = mapped_column(ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True)
    item_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    category: Mapped[str | None] = mapped_column(String(50))
    item_name: Mapped[str] = mapped_column(String(200), nullable=False)
    spec: Mapped[str | None] = mapped_column(Text)
    unit: Mapped[str] = mapped_column(String(20), default="式", nullable=False)
    quantity: Mapped[Decimal] = mapped_column(QUANTITY, default=Decimal("1"), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    remark: Mapped[str | None] = mapped_column(Text)

    quotation: Mapped[Quotation] = relationship(back_populates="items")
