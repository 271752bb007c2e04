"""SQLAlchemy model package for the contract-financial document schema."""

from contractflow.models.base import Base
from contractflow.models.change_order import ChangeOrder, ChangeOrderItem
from contractflow.models.contract import Contract
from contractflow.models.cost_entry import CostEntry
from contractflow.models.enums import (
    ChangeOrderStatus,
    ContractStatus,
    DocumentPrefix,
    InvoiceStatus,
    PaymentStatus,
    QuotationStatus,
    ReferenceType,
    TransactionType,
)
from contractflow.models.finance import FinanceTransaction
from contractflow.models.invoice import Invoice
from contractflow.models.payment import PaymentApplication, PaymentReceipt
from contractflow.models.quotation import Quotation, QuotationItem
from contractflow.models.sequence import DocumentSequence

__all__ = [
    "Base",
    "ChangeOrder",
    "ChangeOrderItem",
    "ChangeOrderStatus",
    "Contract",
    "ContractStatus",
    "CostEntry",
    "DocumentPrefix",
    "DocumentSequence",
    "FinanceTransaction",
    "Invoice",
    "InvoiceStatus",
    "PaymentApplication",
    "PaymentReceipt",
    "PaymentStatus",
    "Quotation",
    "QuotationItem",
    "QuotationStatus",
    "ReferenceType",
    "TransactionType",
]
