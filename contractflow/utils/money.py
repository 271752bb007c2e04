"""Fixed-point money routines shared by every document type.

All currency amounts are rounded half-up to two decimals and all rates to
four decimals. Floats are converted through ``str`` so binary representation
errors never reach a stored amount. Negative quantities and prices are valid:
deduction lines on quotations and change orders rely on them.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Union

from contractflow.core.exceptions import ValidationError

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
RATE_QUANTUM = Decimal("0.0001")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


def to_decimal(value: Number | None) -> Decimal:
    """Convert a numeric value to Decimal without rounding."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"Cannot use boolean {value!r} as an amount")
    try:
        if isinstance(value, (int, float)):
            return Decimal(str(value))
        if isinstance(value, str):
            return Decimal(value.strip())
    except InvalidOperation as exc:
        raise ValidationError(f"Invalid numeric value {value!r}") from exc
    raise ValidationError(f"Cannot convert {type(value).__name__} to Decimal")


def round2(value: Number) -> Decimal:
    """Round to currency precision, half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_rate(value: Number) -> Decimal:
    """Round a rate or percent to four decimals, half-up."""
    return to_decimal(value).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)


def line_amount(quantity: Number, unit_price: Number) -> Decimal:
    return round2(to_decimal(quantity) * to_decimal(unit_price))


def _item_value(item: Any, field: str) -> Any:
    if isinstance(item, Mapping):
        return item[field]
    return getattr(item, field)


def subtotal(items: Iterable[Any]) -> Decimal:
    """Sum of extended line amounts. Items expose ``quantity`` and ``unit_price``."""
    total = ZERO
    for item in items:
        total += line_amount(_item_value(item, "quantity"), _item_value(item, "unit_price"))
    return round2(total)


def tax_amount(amount: Number, rate: Number, is_tax_included: bool) -> Decimal:
    if is_tax_included:
        return round2(ZERO)
    return round2(to_decimal(amount) * to_decimal(rate) / HUNDRED)


def retention(amount: Number, rate: Number) -> Decimal:
    return round2(to_decimal(amount) * to_decimal(rate) / HUNDRED)


def percent_of(part: Number, whole: Number) -> Decimal:
    """``part / whole`` as a two-decimal percent; ``0.00`` when ``whole`` is zero."""
    denominator = to_decimal(whole)
    if denominator == ZERO:
        return round2(ZERO)
    return round2(to_decimal(part) / denominator * HUNDRED)
