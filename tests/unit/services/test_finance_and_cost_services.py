from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from contractflow.core.exceptions import InvalidTransitionError, NotFoundError
from contractflow.models import FinanceTransaction, InvoiceStatus, ReferenceType, TransactionType
from contractflow.services.cost_entry_service import CostEntryService
from contractflow.services.finance_service import FinanceService, SourceTransaction
from contractflow.services.invoice_service import InvoiceService


def _source(reference_id="PAY-202604-0001-R01", amount="5700"):
    return SourceTransaction(
        transaction_type=TransactionType.INCOME,
        amount=Decimal(amount),
        transaction_date=date(2026, 4, 10),
        reference_type=ReferenceType.PAYMENT_RECEIPT.value,
        reference_id=reference_id,
        project_id="P-001",
        category="專案收款",
    )


def test_create_transaction_from_source_is_idempotent(session):
    service = FinanceService(session)
    first = service.create_transaction_from_source(_source())
    again = service.create_transaction_from_source(_source(amount="9999"))

    assert again.id == first.id
    assert again.amount == Decimal("5700.00")
    assert session.query(FinanceTransaction).count() == 1


def test_distinct_references_create_distinct_rows(session):
    service = FinanceService(session)
    service.create_transaction_from_source(_source("A-R01"))
    service.create_transaction_from_source(_source("A-R02"))
    assert [t.reference_id for t in service.list_by_project("P-001")] == ["A-R01", "A-R02"]


def test_mark_paid_posts_expense_once(session):
    service = CostEntryService(session)
    entry = service.create_cost_entry("P-001", "4000", entry_date="2026-03-01", category="MATERIAL", description="cement")
    paid_at = datetime(2026, 3, 5, 10, 0, tzinfo=timezone.utc)

    paid = service.mark_paid(entry.id, payment_method="TRANSFER", paid_at=paid_at, user_id="u-fin")
    service.mark_paid(entry.id)

    assert paid.is_paid is True
    transaction = session.query(FinanceTransaction).one()
    assert transaction.transaction_type == TransactionType.EXPENSE
    assert transaction.reference_type == ReferenceType.COST_ENTRY.value
    assert transaction.reference_id == entry.id
    assert transaction.transaction_date == date(2026, 3, 5)
    assert transaction.category == "MATERIAL"
    assert transaction.description == f"成本 {entry.id}: cement"


def test_cost_summary_groups_by_category(session):
    service = CostEntryService(session)
    first = service.create_cost_entry("P-001", "4000", category="MATERIAL")
    service.create_cost_entry("P-001", "1500.50", category="MATERIAL")
    service.create_cost_entry("P-001", "3000", category="LABOR")
    service.create_cost_entry("P-002", "999", category="LABOR")
    service.mark_paid(first.id)

    summary = service.summary("P-001")
    assert summary["total"] == Decimal("8500.50")
    assert summary["paid"] == Decimal("4000.00")
    assert summary["unpaid"] == Decimal("4500.50")
    assert summary["by_category"] == {"LABOR": Decimal("3000.00"), "MATERIAL": Decimal("5500.50")}


def test_work_order_cost_is_idempotent(session):
    service = CostEntryService(session)
    first = service.record_work_order_cost("WO-77", "P-001", "12000", contract_id=None)
    again = service.record_work_order_cost("WO-77", "P-001", "12000")

    assert first.id == "CE-WO-77-01"
    assert again.id == first.id
    assert first.source_reference == "WO-77"
    assert len(service.list_by_project("P-001")) == 1


def test_invoice_issue_and_void(session):
    service = InvoiceService(session)
    invoice = service.issue_invoice("P-001", "6000", invoice_date="2026-04-01", invoice_number="AB12345678")
    assert invoice.status == InvoiceStatus.ISSUED

    voided = service.void_invoice(invoice.id, reason="wrong buyer id")
    assert voided.status == InvoiceStatus.VOID
    assert voided.void_reason == "wrong buyer id"
    assert voided.voided_at is not None

    with pytest.raises(InvalidTransitionError):
        service.void_invoice(invoice.id)


def test_missing_cost_entry(session):
    with pytest.raises(NotFoundError):
        CostEntryService(session).mark_paid("COST-209901-0001")
