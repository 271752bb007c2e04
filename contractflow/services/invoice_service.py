"""Invoice service for the receivables side of profit analysis."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import select

from contractflow.core.exceptions import InvalidTransitionError
from contractflow.models import DocumentPrefix, Invoice, InvoiceStatus
from contractflow.services.base_service import BaseService
from contractflow.services.id_generator import SequentialIdGenerator
from contractflow.utils import money
from contractflow.utils.dates import to_date
from contractflow.utils.validators import sanitize_text


class InvoiceService(BaseService):
    """Service for issuing and voiding invoices."""

    def issue_invoice(
        self,
        project_id: str,
        amount: Any,
        invoice_date: str | date | None = None,
        application_id: str | None = None,
        invoice_number: str | None = None,
        user_id: str | None = None,
    ) -> Invoice:
        with self.atomic():
            invoice = Invoice(
                id=SequentialIdGenerator(self.db).next_id(DocumentPrefix.INVOICE.value, Invoice.id),
                project_id=project_id,
                application_id=application_id,
                invoice_number=invoice_number,
                amount=money.round2(amount),
                invoice_date=to_date(invoice_date, default=datetime.now(timezone.utc).date()),
                status=InvoiceStatus.ISSUED,
                created_by=user_id,
                updated_by=user_id,
            )
            self.db.add(invoice)
        return invoice

    def get_invoice(self, invoice_id: str) -> Invoice:
        return self._get_or_404(Invoice, invoice_id, "Invoice")

    def list_by_project(self, project_id: str, status: InvoiceStatus | None = None) -> list[Invoice]:
        stmt = select(Invoice).where(Invoice.project_id == project_id)
        if status is not None:
            stmt = stmt.where(Invoice.status == status)
        return list(self.db.execute(stmt.order_by(Invoice.invoice_date, Invoice.id)).scalars())

    def void_invoice(self, invoice_id: str, reason: str | None = None, user_id: str | None = None) -> Invoice:
        with self.atomic():
            invoice = self._get_or_404(Invoice, invoice_id, "Invoice", for_update=True)
            if invoice.status != InvoiceStatus.ISSUED:
                raise InvalidTransitionError(
                    "Invoice", invoice.id, invoice.status.value, InvoiceStatus.VOID.value, event="void"
                )
            invoice.status = InvoiceStatus.VOID
            invoice.voided_at = datetime.now(timezone.utc)
            invoice.void_reason = sanitize_text(reason, max_len=2000) or None
            invoice.updated_by = user_id
        return invoice
