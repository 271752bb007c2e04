from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from contractflow.utils.dates import add_months, to_date
from contractflow.utils.frames import records_to_df
from contractflow.utils.validators import prepend_note, sanitize_text


def test_add_months_clamps_to_month_end():
    assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)
    assert add_months(date(2026, 3, 15), 12) == date(2027, 3, 15)
    assert add_months(datetime(2026, 11, 30, 8, 0), 3) == date(2027, 2, 28)


def test_to_date_accepts_iso_strings_and_datetimes():
    assert to_date("2026-02-01") == date(2026, 2, 1)
    assert to_date(datetime(2026, 2, 1, 12, 30)) == date(2026, 2, 1)
    assert to_date(None, default=date(2026, 1, 1)) == date(2026, 1, 1)


def test_prepend_note_keeps_previous_notes_below():
    assert prepend_note(None, "[駁回]", "missing photos") == "[駁回] missing photos"
    assert prepend_note("site visit done", "[駁回]", "wrong unit") == "[駁回] wrong unit\nsite visit done"


def test_sanitize_text_strips_null_bytes():
    assert sanitize_text(" a\x00b ") == "ab"
    assert sanitize_text(None) == ""


@dataclass(frozen=True)
class _Row:
    project_id: str
    amount: Decimal


def test_records_to_df_converts_decimals_and_sets_index():
    df = records_to_df([_Row("P-1", Decimal("10.50")), _Row("P-2", Decimal("2.25"))], index="project_id")
    assert list(df.index) == ["P-1", "P-2"]
    assert df.loc["P-1", "amount"] == 10.5
    assert df["amount"].dtype == float


def test_records_to_df_empty():
    assert records_to_df([]).empty
