"""Canonical status values for every document type."""

from __future__ import annotations

import enum


class QuotationStatus(str, enum.Enum):
    DRAFT = "QUO_DRAFT"
    PENDING = "QUO_PENDING"
    APPROVED = "QUO_APPROVED"
    REJECTED = "QUO_REJECTED"


class ContractStatus(str, enum.Enum):
    DRAFT = "CTR_DRAFT"
    ACTIVE = "CTR_ACTIVE"
    COMPLETED = "CTR_COMPLETED"
    WARRANTY = "CTR_WARRANTY"
    CLOSED = "CTR_CLOSED"


class ChangeOrderStatus(str, enum.Enum):
    DRAFT = "CO_DRAFT"
    PENDING = "CO_PENDING"
    APPROVED = "CO_APPROVED"


class PaymentStatus(str, enum.Enum):
    DRAFT = "PAY_DRAFT"
    PENDING = "PAY_PENDING"
    APPROVED = "PAY_APPROVED"
    PAID = "PAY_PAID"


class InvoiceStatus(str, enum.Enum):
    ISSUED = "INV_ISSUED"
    VOID = "INV_VOIDED"


class TransactionType(str, enum.Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class ReferenceType(str, enum.Enum):
    PAYMENT_RECEIPT = "PAYMENT_RECEIPT"
    COST_ENTRY = "COST_ENTRY"


class DocumentPrefix(str, enum.Enum):
    QUOTATION = "QUO"
    CONTRACT = "CTR"
    CHANGE_ORDER = "CO"
    PAYMENT = "PAY"
    COST_ENTRY = "COST"
    INVOICE = "INV"
    TRANSACTION = "TXN"
