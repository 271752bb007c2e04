"""Contract request/response schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from contractflow.models.enums import ContractStatus
from contractflow.schemas.common import PatchRequest


class ContractCreateRequest(BaseModel):
    project_id: str | None = Field(default=None, max_length=36)
    quotation_id: str | None = Field(default=None, max_length=20)
    title: str | None = Field(default=None, max_length=200)
    original_amount: Decimal | None = None
    retention_rate: Decimal | None = Field(default=None, ge=0, le=100)
    contract_no: str | None = Field(default=None, max_length=50)
    contract_type: str = Field(default="FIXED_PRICE", max_length=30)
    payment_terms: str = Field(default="PROGRESS", max_length=30)
    warranty_months: int | None = Field(default=None, ge=0, le=240)
    start_date: date | None = None
    end_date: date | None = None
    notes: str | None = None


class ContractUpdateRequest(PatchRequest):
    required_fields = frozenset(
        {"title", "contract_type", "original_amount", "retention_rate", "payment_terms", "warranty_months"}
    )

    title: str | None = Field(default=None, max_length=200)
    contract_no: str | None = Field(default=None, max_length=50)
    contract_type: str | None = Field(default=None, max_length=30)
    original_amount: Decimal | None = None
    retention_rate: Decimal | None = Field(default=None, ge=0, le=100)
    payment_terms: str | None = Field(default=None, max_length=30)
    start_date: date | None = None
    end_date: date | None = None
    warranty_months: int | None = Field(default=None, ge=0, le=240)
    notes: str | None = None


class ContractResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    quotation_id: str | None = None
    contract_no: str | None = None
    title: str
    original_amount: Decimal
    change_amount: Decimal
    current_amount: Decimal
    retention_rate: Decimal
    retention_amount: Decimal
    status: ContractStatus
    sign_date: date | None = None
    warranty_months: int
    warranty_end: date | None = None
    locked_at: datetime | None = None
    locked_by: str | None = None
    notes: str | None = None
