"""Quotation request/response schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from contractflow.models.enums import QuotationStatus
from contractflow.schemas.common import PatchRequest
from contractflow.schemas.items import LineItemInput, LineItemResponse


class QuotationCreateRequest(BaseModel):
    project_id: str = Field(min_length=1, max_length=36)
    title: str | None = Field(default=None, max_length=200)
    items: list[LineItemInput] = Field(default_factory=list)
    tax_rate: Decimal | None = Field(default=None, ge=0, le=100)
    is_tax_included: bool = False
    currency: str = Field(default="TWD", min_length=3, max_length=3)
    exchange_rate: Decimal = Field(default=Decimal("1"), gt=0)
    valid_until: date | None = None
    notes: str | None = None


class QuotationUpdateRequest(PatchRequest):
    required_fields = frozenset({"items", "tax_rate", "is_tax_included", "currency", "exchange_rate"})

    title: str | None = Field(default=None, max_length=200)
    items: list[LineItemInput] | None = None
    tax_rate: Decimal | None = Field(default=None, ge=0, le=100)
    is_tax_included: bool | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    exchange_rate: Decimal | None = Field(default=None, gt=0)
    valid_until: date | None = None
    notes: str | None = None


class QuotationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    version_no: int
    parent_id: str | None = None
    is_current: bool
    title: str | None = None
    currency: str
    tax_rate: Decimal
    is_tax_included: bool
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    valid_until: date | None = None
    status: QuotationStatus
    locked_at: datetime | None = None
    locked_by: str | None = None
    notes: str | None = None
    items: list[LineItemResponse] = Field(default_factory=list)
