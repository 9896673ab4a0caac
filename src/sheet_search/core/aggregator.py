from __future__ import annotations

from typing import Iterable

import pandas as pd

from sheet_search.core.records import HOURS_COL, Record


def total(records: Iterable[Record], column: str = HOURS_COL) -> float:
    """
    Sum of `column` over `records`.

    Values are coerced with pandas; anything that does not parse as a number
    (blank, missing, 'n/a', ...) counts as 0 instead of failing the sum.
    """
    values = pd.Series([r.get(column) for r in records], dtype=object)
    if values.empty:
        return 0.0

    # Sheet cells often carry stray spaces around numbers
    values = values.map(lambda v: v.strip() if isinstance(v, str) else v)
    # Checkbox cells are not hours
    values = values.map(lambda v: None if isinstance(v, bool) else v)
    numeric = pd.to_numeric(values, errors="coerce").fillna(0)
    return float(numeric.sum())


def format_total(value: float) -> str:
    return f"{value:.2f}"
