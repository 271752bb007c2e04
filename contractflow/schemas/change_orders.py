"""Change order request/response schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from contractflow.models.enums import ChangeOrderStatus
from contractflow.schemas.common import PatchRequest
from contractflow.schemas.items import LineItemInput, LineItemResponse


class ChangeOrderCreateRequest(BaseModel):
    contract_id: str = Field(min_length=1, max_length=20)
    title: str = Field(min_length=1, max_length=200)
    items: list[LineItemInput] = Field(default_factory=list)
    reason: str | None = None
    days_impact: int = 0
    notes: str | None = None


class ChangeOrderUpdateRequest(PatchRequest):
    required_fields = frozenset({"title", "items", "days_impact"})

    title: str | None = Field(default=None, max_length=200)
    items: list[LineItemInput] | None = None
    reason: str | None = None
    days_impact: int | None = None
    notes: str | None = None


class ChangeOrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    contract_id: str
    project_id: str
    co_number: str
    title: str
    reason: str | None = None
    amount: Decimal
    days_impact: int
    status: ChangeOrderStatus
    approved_at: datetime | None = None
    approved_by: str | None = None
    notes: str | None = None
    items: list[LineItemResponse] = Field(default_factory=list)
