"""Payment application and receipt schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from contractflow.models.enums import PaymentStatus
from contractflow.schemas.common import PatchRequest


class PaymentApplicationCreateRequest(BaseModel):
    contract_id: str = Field(min_length=1, max_length=20)
    progress_percent: Decimal = Field(ge=0, le=100)
    request_amount: Decimal
    application_date: date
    notes: str | None = None


class PaymentApplicationUpdateRequest(PatchRequest):
    required_fields = frozenset({"progress_percent", "request_amount", "application_date"})

    progress_percent: Decimal | None = Field(default=None, ge=0, le=100)
    request_amount: Decimal | None = None
    application_date: date | None = None
    notes: str | None = None


class ReceiptCreateRequest(BaseModel):
    application_id: str = Field(min_length=1, max_length=20)
    amount: Decimal = Field(gt=0, decimal_places=2)
    receipt_date: date
    payment_method: str = Field(default="BANK_TRANSFER", max_length=30)
    reference_no: str | None = Field(default=None, max_length=50)
    notes: str | None = None


class ReceiptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    application_id: str
    receipt_date: date
    amount: Decimal
    payment_method: str
    reference_no: str | None = None
    notes: str | None = None


class PaymentApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    contract_id: str
    project_id: str
    period_no: int
    application_date: date
    progress_percent: Decimal
    cumulative_percent: Decimal
    request_amount: Decimal
    retention_amount: Decimal
    net_amount: Decimal
    received_amount: Decimal
    status: PaymentStatus
    locked_at: datetime | None = None
    locked_by: str | None = None
    notes: str | None = None
    receipts: list[ReceiptResponse] = Field(default_factory=list)
