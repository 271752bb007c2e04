"""Builders for priced child lines shared by quotations and change orders."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from contractflow.utils import money
from contractflow.utils.validators import sanitize_text

_TEXT_FIELDS = ("spec", "remark")


def _as_mapping(item: Any) -> dict[str, Any]:
    if hasattr(item, "model_dump"):
        return item.model_dump()
    return dict(item)


def build_lines(model: type, parent_id: str, items: Iterable[Any], *, with_category: bool = False) -> list[Any]:
    """Create ``model`` rows numbered ``{parent_id}-001`` upward with extended amounts."""
    lines = []
    for order, item in enumerate(items, start=1):
        data = _as_mapping(item)
        quantity = money.round2(data.get("quantity", 1))
        unit_price = money.round2(data.get("unit_price", 0))
        fields: dict[str, Any] = {
            "id": f"{parent_id}-{order:03d}",
            "item_order": order,
            "item_name": sanitize_text(data["item_name"], max_len=200),
            "unit": data.get("unit") or "式",
            "quantity": quantity,
            "unit_price": unit_price,
            "amount": money.line_amount(quantity, unit_price),
        }
        for name in _TEXT_FIELDS:
            if data.get(name) is not None:
                fields[name] = sanitize_text(data[name])
        if with_category:
            fields["category"] = data.get("category")
        lines.append(model(**fields))
    return lines


def clone_lines(model: type, parent_id: str, source: Iterable[Any], *, with_category: bool = False) -> list[Any]:
    """Copy persisted lines onto a new parent, keeping order and amounts."""
    copied = []
    for order, line in enumerate(source, start=1):
        fields = {
            "id": f"{parent_id}-{order:03d}",
            "item_order": order,
            "item_name": line.item_name,
            "spec": line.spec,
            "unit": line.unit,
            "quantity": line.quantity,
            "unit_price": line.unit_price,
            "amount": line.amount,
            "remark": line.remark,
        }
        if with_category:
            fields["category"] = line.category
        copied.append(model(**fields))
    return copied
