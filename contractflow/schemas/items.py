"""Line item schemas shared by quotations and change orders."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class LineItemInput(BaseModel):
    """One priced line. Negative quantity or price is a deduction line."""

    item_name: str = Field(min_length=1, max_length=200)
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")
    unit: str = Field(default="式", max_length=20)
    spec: str | None = None
    remark: str | None = None
    category: str | None = Field(default=None, max_length=50)


class LineItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    item_order: int
    item_name: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal
    unit: str
    spec: str | None = None
    remark: str | None = None
