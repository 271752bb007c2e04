from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

from contractflow.core.exceptions import ValidationError
from contractflow.utils import money


def test_line_amount_rounds_half_up_to_cents():
    assert money.line_amount("0.5", "0.01") == Decimal("0.01")
    assert money.line_amount("3", "33.335") == Decimal("100.01")


def test_floats_are_converted_through_str():
    assert money.to_decimal(0.1) == Decimal("0.1")
    assert money.line_amount(0.1, 3) == Decimal("0.30")


def test_negative_lines_are_allowed_for_deductions():
    assert money.line_amount(-2, 1500) == Decimal("-3000.00")
    assert money.subtotal([{"quantity": 1, "unit_price": 5000}, {"quantity": -1, "unit_price": 800}]) == Decimal(
        "4200.00"
    )


def test_subtotal_accepts_objects_and_mappings():
    items = [
        SimpleNamespace(quantity=Decimal("10"), unit_price=Decimal("1000")),
        {"quantity": 5, "unit_price": 2000},
    ]
    assert money.subtotal(items) == Decimal("20000.00")


def test_tax_amount_is_zero_when_tax_included():
    assert money.tax_amount(20000, 5, is_tax_included=False) == Decimal("1000.00")
    assert money.tax_amount(20000, 5, is_tax_included=True) == Decimal("0.00")


def test_retention_uses_four_decimal_rates():
    assert money.retention(21000, 5) == Decimal("1050.00")
    assert money.retention(10000, "2.5555") == Decimal("255.55")
    assert money.round_rate("2.55555") == Decimal("2.5556")


def test_percent_of_guards_zero_denominator():
    assert money.percent_of(16000, 26000) == Decimal("61.54")
    assert money.percent_of(100, 0) == Decimal("0.00")


@pytest.mark.parametrize("value", [True, "abc", object()])
def test_to_decimal_rejects_non_numeric(value):
    with pytest.raises(ValidationError):
        money.to_decimal(value)


def test_to_decimal_treats_none_as_zero():
    assert money.to_decimal(None) == Decimal("0")
