"""Finance collaborator: ledger rows created from source documents."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from contractflow.core.exceptions import DatabaseError
from contractflow.core.logging import DocumentLogContext, build_log_event
from contractflow.models import DocumentPrefix, FinanceTransaction, TransactionType
from contractflow.services.base_service import BaseService
from contractflow.services.id_generator import SequentialIdGenerator
from contractflow.utils import money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceTransaction:
    """Ledger request keyed by the document that caused it."""

    transaction_type: TransactionType
    amount: Decimal
    transaction_date: date
    reference_type: str
    reference_id: str
    category: str | None = None
    description: str | None = None
    project_id: str | None = None
    created_by: str | None = None


class FinanceGateway(Protocol):
    def create_transaction_from_source(self, source: SourceTransaction) -> FinanceTransaction:
        ...


class FinanceService(BaseService):
    """Creates at most one transaction per ``(reference_type, reference_id)``."""

    def find_by_reference(self, reference_type: str, reference_id: str) -> FinanceTransaction | None:
        stmt = select(FinanceTransaction).where(
            FinanceTransaction.reference_type == reference_type,
            FinanceTransaction.reference_id == reference_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def create_transaction_from_source(self, source: SourceTransaction) -> FinanceTransaction:
        with self.atomic():
            existing = self.find_by_reference(source.reference_type, source.reference_id)
            if existing is not None:
                logger.info(
                    "finance.transaction.deduplicated",
                    extra=build_log_event(
                        "finance.transaction.deduplicated",
                        DocumentLogContext(
                            document_type="FinanceTransaction",
                            document_id=existing.id,
                            user_id=source.created_by,
                        ),
                        reference_type=source.reference_type,
                        reference_id=source.reference_id,
                    ),
                )
                return existing

            transaction = FinanceTransaction(
                id=SequentialIdGenerator(self.db).next_id(DocumentPrefix.TRANSACTION.value, FinanceTransaction.id),
                transaction_type=source.transaction_type,
                amount=money.round2(source.amount),
                transaction_date=source.transaction_date,
                category=source.category,
                description=source.description,
                project_id=source.project_id,
                reference_type=source.reference_type,
                reference_id=source.reference_id,
                created_by=source.created_by,
                updated_by=source.created_by,
            )
            self.db.add(transaction)
            try:
                self.db.flush()
            except IntegrityError as exc:
                # A concurrent writer inserted the same reference; rerunning the unit returns that row.
                raise DatabaseError(
                    "Finance transaction for this reference was created concurrently",
                    reference_type=source.reference_type,
                    reference_id=source.reference_id,
                ) from exc
        return transaction

    def list_by_project(self, project_id: str) -> list[FinanceTransaction]:
        stmt = (
            select(FinanceTransaction)
            .where(FinanceTransaction.project_id == project_id)
            .order_by(FinanceTransaction.transaction_date, FinanceTransaction.id)
        )
        return list(self.db.execute(stmt).scalars())
