"""Cost entry service for project costs and payables."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from contractflow.core.exceptions import DatabaseError
from contractflow.core.logging import DocumentLogContext, build_log_event
from contractflow.models import CostEntry, DocumentPrefix, ReferenceType, TransactionType
from contractflow.services.base_service import BaseService
from contractflow.services.finance_service import FinanceGateway, FinanceService, SourceTransaction
from contractflow.services.id_generator import SequentialIdGenerator
from contractflow.utils import money
from contractflow.utils.dates import to_date

logger = logging.getLogger(__name__)

DEFAULT_EXPENSE_CATEGORY = "專案成本"


def work_order_cost_id(wo_number: str) -> str:
    return f"CE-{wo_number}-01"


class CostEntryService(BaseService):
    """Service for cost entries; paying an entry posts an EXPENSE to finance."""

    def __init__(self, db: Session | None = None, finance: FinanceGateway | None = None) -> None:
        super().__init__(db)
        self.finance = finance or FinanceService(self.db)

    def create_cost_entry(
        self,
        project_id: str,
        amount: Any,
        entry_date: str | date | None = None,
        category: str = "MATERIAL",
        description: str | None = None,
        contract_id: str | None = None,
        source_reference: str | None = None,
        entry_id: str | None = None,
        user_id: str | None = None,
    ) -> CostEntry:
        with self.atomic():
            entry = CostEntry(
                id=entry_id or SequentialIdGenerator(self.db).next_id(DocumentPrefix.COST_ENTRY.value, CostEntry.id),
                project_id=project_id,
                contract_id=contract_id,
                category=category,
                description=description,
                amount=money.round2(amount),
                entry_date=to_date(entry_date, default=datetime.now(timezone.utc).date()),
                is_paid=False,
                source_reference=source_reference,
                created_by=user_id,
                updated_by=user_id,
            )
            self.db.add(entry)
            self.db.flush()
        return entry

    def get_cost_entry(self, entry_id: str) -> CostEntry:
        return self._get_or_404(CostEntry, entry_id, "CostEntry")

    def list_by_project(self, project_id: str, is_paid: bool | None = None) -> list[CostEntry]:
        stmt = select(CostEntry).where(CostEntry.project_id == project_id)
        if is_paid is not None:
            stmt = stmt.where(CostEntry.is_paid.is_(is_paid))
        return list(self.db.execute(stmt.order_by(CostEntry.entry_date, CostEntry.id)).scalars())

    def mark_paid(
        self,
        entry_id: str,
        payment_method: str | None = None,
        paid_at: datetime | None = None,
        user_id: str | None = None,
    ) -> CostEntry:
        with self.atomic():
            entry = self._get_or_404(CostEntry, entry_id, "CostEntry", for_update=True)
            if not entry.is_paid:
                entry.is_paid = True
                entry.paid_at = paid_at or datetime.now(timezone.utc)
                entry.payment_method = payment_method
                entry.updated_by = user_id
            self.finance.create_transaction_from_source(
                SourceTransaction(
                    transaction_type=TransactionType.EXPENSE,
                    amount=entry.amount,
                    transaction_date=entry.paid_at.date(),
                    category=entry.category or DEFAULT_EXPENSE_CATEGORY,
                    description=f"成本 {entry.id}: {entry.description}" if entry.description else f"成本 {entry.id}",
                    project_id=entry.project_id,
                    reference_type=ReferenceType.COST_ENTRY.value,
                    reference_id=entry.id,
                    created_by=user_id,
                )
            )
        return entry

    def summary(self, project_id: str) -> dict[str, Any]:
        """Totals for a project: all, paid, unpaid and per category."""
        rows = self.db.execute(
            select(CostEntry.category, CostEntry.is_paid, func.coalesce(func.sum(CostEntry.amount), 0))
            .where(CostEntry.project_id == project_id)
            .group_by(CostEntry.category, CostEntry.is_paid)
        ).all()

        by_category: dict[str, Decimal] = {}
        paid = unpaid = money.round2(0)
        for category, is_paid, amount in rows:
            amount = money.round2(amount)
            by_category[category] = money.round2(by_category.get(category, money.ZERO) + amount)
            if is_paid:
                paid += amount
            else:
                unpaid += amount
        return {
            "project_id": project_id,
            "total": money.round2(paid + unpaid),
            "paid": money.round2(paid),
            "unpaid": money.round2(unpaid),
            "by_category": dict(sorted(by_category.items())),
        }

    def record_work_order_cost(
        self,
        wo_number: str,
        project_id: str,
        amount: Any,
        description: str | None = None,
        category: str = "LABOR",
        contract_id: str | None = None,
        entry_date: str | date | None = None,
        user_id: str | None = None,
    ) -> CostEntry:
        """Create the cost entry for a completed work order; a redelivered call returns the first row."""
        entry_id = work_order_cost_id(wo_number)
        with self.atomic():
            existing = self.db.get(CostEntry, entry_id)
            if existing is not None:
                logger.info(
                    "cost_entry.deduplicated",
                    extra=build_log_event(
                        "cost_entry.deduplicated",
                        DocumentLogContext(document_type="CostEntry", document_id=entry_id, user_id=user_id),
                        reference_id=wo_number,
                    ),
                )
                return existing
            try:
                entry = self.create_cost_entry(
                    project_id=project_id,
                    amount=amount,
                    entry_date=entry_date,
                    category=category,
                    description=description or f"工單 {wo_number} 完工成本",
                    contract_id=contract_id,
                    source_reference=wo_number,
                    entry_id=entry_id,
                    user_id=user_id,
                )
            except IntegrityError as exc:
                raise DatabaseError(
                    "Work order cost entry was created concurrently",
                    document_type="CostEntry",
                    document_id=entry_id,
                ) from exc
        return entry
