from __future__ import annotations

from typing import Any, Iterable, List

from sheet_search.core.records import Record, cell_text


def normalize_term(term: Any) -> str:
    if term is None:
        return ""
    return str(term).strip().casefold()


def filter_records(records: Iterable[Record], term: Any) -> List[Record]:
    """
    Records whose employee code or employee name contains `term`
    (case-insensitive substring), in their original order.

    An empty term matches nothing: results only appear once the user
    has typed something.
    """
    needle = normalize_term(term)
    if not needle:
        return []

    return [
        r for r in records
        if needle in cell_text(r.code).casefold() or needle in cell_text(r.name).casefold()
    ]
