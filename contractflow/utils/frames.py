"""Tabular conversion helpers."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from decimal import Decimal
from typing import Any

import pandas as pd


def _as_row(record: Any) -> dict[str, Any]:
    if dataclasses.is_dataclass(record):
        return dataclasses.asdict(record)
    return {k: v for k, v in vars(record).items() if not k.startswith("_")}


def records_to_df(records: Iterable[Any], index: str | None = None) -> pd.DataFrame:
    """Convert dataclass or ORM rows to a DataFrame; Decimal columns become floats."""
    rows = [_as_row(record) for record in records]
    if not rows:
        return pd.DataFrame()

    df = pd.DataFrame(rows)
    for column in df.columns:
        if df[column].map(lambda value: isinstance(value, Decimal)).any():
            df[column] = df[column].astype(float)
    if index and index in df.columns:
        df = df.set_index(index)
    return df
