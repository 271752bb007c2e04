"""Payment application engine.

Applications are numbered per contract (period 1, 2, ...). Each carries its
own progress percent and the running cumulative percent, which never passes
100. Retention and net amount follow the contract's retention rate at the time
the application is created or its request amount changes. Receipts settle an
approved application incrementally and move it to PAID once the net amount is
covered; every receipt is mirrored into the finance ledger under the key
``(PAYMENT_RECEIPT, receipt id)``.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from contractflow.core.exceptions import (
    CumulativeExceededError,
    DatabaseError,
    InvalidApplicationStateError,
    InvalidContractStateError,
    ValidationError,
)
from contractflow.models import (
    Contract,
    ContractStatus,
    DocumentPrefix,
    PaymentApplication,
    PaymentReceipt,
    PaymentStatus,
    ReferenceType,
    TransactionType,
)
from contractflow.orchestration.lifecycles import PAYMENT_LIFECYCLE, PAYMENT_LOCK
from contractflow.schemas.payments import (
    PaymentApplicationCreateRequest,
    PaymentApplicationUpdateRequest,
    ReceiptCreateRequest,
)
from contractflow.services.base_service import BaseService
from contractflow.services.finance_service import FinanceGateway, FinanceService, SourceTransaction
from contractflow.services.id_generator import SequentialIdGenerator
from contractflow.utils import money

logger = logging.getLogger(__name__)

MAX_CUMULATIVE = Decimal("100")
RECEIPT_CATEGORY = "專案收款"


class PaymentApplicationService(BaseService):
    """Service for payment applications and their receipts."""

    def __init__(self, db: Session | None = None, finance: FinanceGateway | None = None) -> None:
        super().__init__(db)
        self.finance = finance or FinanceService(self.db)

    def _latest_application(self, contract_id: str) -> PaymentApplication | None:
        stmt = (
            select(PaymentApplication)
            .where(PaymentApplication.contract_id == contract_id)
            .order_by(PaymentApplication.period_no.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def _cumulative_before(self, contract_id: str, period_no: int) -> Decimal:
        stmt = select(PaymentApplication.cumulative_percent).where(
            PaymentApplication.contract_id == contract_id,
            PaymentApplication.period_no == period_no - 1,
        )
        return money.to_decimal(self.db.execute(stmt).scalar_one_or_none())

    @staticmethod
    def _cumulative(contract_id: str, previous: Decimal, progress: Any) -> Decimal:
        cumulative = money.round_rate(previous + money.to_decimal(progress))
        if cumulative > MAX_CUMULATIVE:
            raise CumulativeExceededError(contract_id, previous, money.to_decimal(progress))
        return cumulative

    @staticmethod
    def _apply_amounts(application: PaymentApplication, request_amount: Any, retention_rate: Any) -> None:
        application.request_amount = money.round2(request_amount)
        application.retention_amount = money.retention(application.request_amount, retention_rate)
        application.net_amount = money.round2(application.request_amount - application.retention_amount)

    def create_application(
        self,
        payload: PaymentApplicationCreateRequest | dict[str, Any],
        user_id: str | None = None,
    ) -> PaymentApplication:
        request = self._parse(PaymentApplicationCreateRequest, payload)
        with self.atomic():
            # Serializes "read previous cumulative, assign next period" per contract.
            contract = self._get_or_404(Contract, request.contract_id, "Contract", for_update=True)
            if contract.status != ContractStatus.ACTIVE:
                raise InvalidContractStateError(contract.id, contract.status.value, [ContractStatus.ACTIVE.value])

            previous = self._latest_application(contract.id)
            previous_cumulative = money.to_decimal(previous.cumulative_percent if previous else None)
            cumulative = self._cumulative(contract.id, previous_cumulative, request.progress_percent)
            period_no = self.db.execute(
                select(func.count(PaymentApplication.id)).where(PaymentApplication.contract_id == contract.id)
            ).scalar_one() + 1

            application = PaymentApplication(
                id=SequentialIdGenerator(self.db).next_id(DocumentPrefix.PAYMENT.value, PaymentApplication.id),
                contract_id=contract.id,
                project_id=contract.project_id,
                period_no=period_no,
                application_date=request.application_date,
                progress_percent=money.round_rate(request.progress_percent),
                cumulative_percent=cumulative,
                received_amount=money.round2(0),
                status=PaymentStatus.DRAFT,
                notes=request.notes,
                created_by=user_id,
                updated_by=user_id,
            )
            self._apply_amounts(application, request.request_amount, contract.retention_rate)
            self.db.add(application)
            try:
                self.db.flush()
            except IntegrityError as exc:
                raise DatabaseError(
                    "Payment period was allocated concurrently",
                    document_type="Contract",
                    document_id=contract.id,
                    period_no=period_no,
                ) from exc
        return application

    def get_application(self, application_id: str) -> PaymentApplication:
        return self._get_or_404(PaymentApplication, application_id, "PaymentApplication")

    def list_applications(
        self,
        contract_id: str | None = None,
        project_id: str | None = None,
        status: PaymentStatus | None = None,
    ) -> list[PaymentApplication]:
        stmt = select(PaymentApplication)
        if contract_id is not None:
            stmt = stmt.where(PaymentApplication.contract_id == contract_id)
        if project_id is not None:
            stmt = stmt.where(PaymentApplication.project_id == project_id)
        if status is not None:
            stmt = stmt.where(PaymentApplication.status == status)
        stmt = stmt.order_by(PaymentApplication.contract_id, PaymentApplication.period_no)
        return list(self.db.execute(stmt).scalars())

    def update_application(
        self,
        application_id: str,
        patch: PaymentApplicationUpdateRequest | dict[str, Any],
        user_id: str | None = None,
    ) -> PaymentApplication:
        changes = self._changes(self._parse(PaymentApplicationUpdateRequest, patch))
        with self.atomic():
            application = self._get_or_404(PaymentApplication, application_id, "PaymentApplication", for_update=True)
            PAYMENT_LOCK.check(application, changes)

            if changes.get("progress_percent") is not None:
                latest = self._latest_application(application.contract_id)
                if latest is not None and latest.id != application.id:
                    raise ValidationError(
                        "Progress can only change on the latest application of a contract",
                        document_type="PaymentApplication",
                        document_id=application.id,
                        latest_application_id=latest.id,
                    )
                previous = self._cumulative_before(application.contract_id, application.period_no)
                application.cumulative_percent = self._cumulative(
                    application.contract_id, previous, changes["progress_percent"]
                )
                application.progress_percent = money.round_rate(changes["progress_percent"])

            if changes.get("request_amount") is not None:
                # Re-read so a retention rate changed since creation is used.
                contract = self._get_or_404(Contract, application.contract_id, "Contract", for_update=True)
                self._apply_amounts(application, changes["request_amount"], contract.retention_rate)

            if changes.get("application_date") is not None:
                application.application_date = changes["application_date"]
            if "notes" in changes:
                application.notes = changes["notes"]
            application.updated_by = user_id
        return application

    def _fire(self, application_id: str, event: str, user_id: str | None, **context: Any) -> PaymentApplication:
        with self.atomic():
            application = self._get_or_404(PaymentApplication, application_id, "PaymentApplication", for_update=True)
            PAYMENT_LIFECYCLE.fire(application, event, user_id=user_id, **context)
            application.updated_by = user_id
        return application

    def submit(self, application_id: str, user_id: str | None = None) -> PaymentApplication:
        return self._fire(application_id, "submit", user_id)

    def approve(self, application_id: str, user_id: str | None = None) -> PaymentApplication:
        return self._fire(application_id, "approve", user_id)

    def reject(self, application_id: str, reason: str | None = None, user_id: str | None = None) -> PaymentApplication:
        return self._fire(application_id, "reject", user_id, reason=reason)

    def add_receipt(self, payload: ReceiptCreateRequest | dict[str, Any], user_id: str | None = None) -> PaymentReceipt:
        request = self._parse(ReceiptCreateRequest, payload)
        with self.atomic():
            application = self._get_or_404(
                PaymentApplication, request.application_id, "PaymentApplication", for_update=True
            )
            if application.status != PaymentStatus.APPROVED:
                raise InvalidApplicationStateError(
                    application.id, application.status.value, PaymentStatus.APPROVED.value
                )

            count = self.db.execute(
                select(func.count(PaymentReceipt.id)).where(PaymentReceipt.application_id == application.id)
            ).scalar_one()
            receipt = PaymentReceipt(
                id=f"{application.id}-R{count + 1:02d}",
                receipt_date=request.receipt_date,
                amount=money.round2(request.amount),
                payment_method=request.payment_method,
                reference_no=request.reference_no,
                notes=request.notes,
                created_by=user_id,
            )
            application.receipts.append(receipt)
            application.received_amount = money.round2(
                money.to_decimal(application.received_amount) + receipt.amount
            )
            application.updated_by = user_id
            if application.received_amount >= money.to_decimal(application.net_amount):
                PAYMENT_LIFECYCLE.fire(application, "settle", user_id=user_id)
            self.db.flush()

            self.finance.create_transaction_from_source(
                SourceTransaction(
                    transaction_type=TransactionType.INCOME,
                    amount=receipt.amount,
                    transaction_date=receipt.receipt_date,
                    category=RECEIPT_CATEGORY,
                    description=f"請款單 {application.id} 期別 {application.period_no} 收款",
                    project_id=application.project_id,
                    reference_type=ReferenceType.PAYMENT_RECEIPT.value,
                    reference_id=receipt.id,
                    created_by=user_id,
                )
            )
        return receipt

    def get_receipts(self, application_id: str) -> list[PaymentReceipt]:
        application = self.get_application(application_id)
        stmt = select(PaymentReceipt).where(PaymentReceipt.application_id == application.id).order_by(PaymentReceipt.id)
        return list(self.db.execute(stmt).scalars())
