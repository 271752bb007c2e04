"""Change order model module."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contractflow.models.base import MONEY, QUANTITY, ZERO, AuditMixin, Base, status_enum
from contractflow.models.enums import ChangeOrderStatus


class ChangeOrder(Base, AuditMixin):
    __tablename__ = "change_orders"
    __table_args__ = (
        UniqueConstraint("contract_id", "co_number", name="uq_change_orders_contract_number"),
        Index("idx_change_orders_project_status", "project_id", "status"),
    )

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    contract_id: Mapped[str] = mapped_column(ForeignKey("contracts.id", ondelete="RESTRICT"), nullable=False, index=True)
    project_id: Mapped[str] = mapped_column(String(36), nullable=False)
    co_number: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
    amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    days_impact: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[ChangeOrderStatus] = mapped_column(
        status_enum(ChangeOrderStatus), default=ChangeOrderStatus.DRAFT, nullable=False
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    approved_by: Mapped[str | None] = mapped_column(String(36))
    notes: Mapped[str | None] = mapped_column(Text)

    contract = relationship("Contract")
    items: Mapped[list["ChangeOrderItem"]] = relationship(
        back_populates="change_order",
        cascade="all, delete-orphan",
        order_by="ChangeOrderItem.item_order",
    )

    @property
    def is_locked(self) -> bool:
        return self.status != ChangeOrderStatus.DRAFT


class ChangeOrderItem(Base):
    __tablename__ = "change_order_items"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    change_order_id: Mapped[str] = mapped_column(
        ForeignKey("change_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    item_name: Mapped[str] = mapped_column(String(200), nullable=False)
    spec: Mapped[str | None] = mapped_column(Text)
    unit: Mapped[str] = mapped_column(String(20), default="式", nullable=False)
    quantity: Mapped[Decimal] = mapped_column(QUANTITY, default=ZERO, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    remark: Mapped[str | None] = mapped_column(Text)

    change_order: Mapped[ChangeOrder] = relationship(back_populates="items")
