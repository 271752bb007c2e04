"""Calendar helpers."""

from __future__ import annotations

import calendar
from datetime import date, datetime


def add_months(start: date, months: int) -> date:
    """Shift ``start`` by whole months, clamping to the last day of the target month."""
    if isinstance(start, datetime):
        start = start.date()
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def to_date(value: str | date | datetime | None, default: date | None = None) -> date | None:
    """Accept ISO strings, dates or datetimes."""
    if value is None:
        return default
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, "%Y-%m-%d").date()
