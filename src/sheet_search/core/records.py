from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

# Column names the search page depends on. Any other column is carried along
# for display only.
CODE_COL = "Employee Code"
NAME_COL = "Employee Name"
HOURS_COL = "Hours"

_NAMED_COLS = (CODE_COL, NAME_COL, HOURS_COL)


def cell_text(value: Any) -> str:
    """
    Text form of a cell, used both for matching and for display.

    gviz hands every number back as a float, so an employee code typed as
    1001 arrives as 1001.0; integral floats are shown without the '.0'.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class Record:
    """
    One sheet row.

    The three columns the app works with are lifted into named fields
    (None when the sheet has no such column); everything else stays in
    `extra`, keyed by header, in sheet order.
    """
    code: Any = None
    name: Any = None
    hours: Any = None
    extra: Dict[str, Any] = field(default_factory=dict)
    columns: Tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "Record":
        return cls(
            code=row.get(CODE_COL),
            name=row.get(NAME_COL),
            hours=row.get(HOURS_COL),
            extra={k: v for k, v in row.items() if k not in _NAMED_COLS},
            columns=tuple(row.keys()),
        )

    def get(self, column: str, default: Any = None) -> Any:
        if column == CODE_COL:
            return default if self.code is None else self.code
        if column == NAME_COL:
            return default if self.name is None else self.name
        if column == HOURS_COL:
            return default if self.hours is None else self.hours
        return self.extra.get(column, default)

    def keys(self) -> List[str]:
        if self.columns:
            return list(self.columns)
        named = [c for c in _NAMED_COLS if self.get(c) is not None]
        return named + list(self.extra.keys())

    def as_dict(self, columns: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        cols = list(columns) if columns is not None else self.keys()
        return {c: self.get(c, "") for c in cols}


@dataclass(frozen=True)
class Dataset:
    """Records loaded once per session, plus the header order they came with."""
    columns: Tuple[str, ...] = ()
    records: Tuple[Record, ...] = ()

    @classmethod
    def from_rows(cls, columns: Iterable[str], rows: Iterable[Mapping[str, Any]]) -> "Dataset":
        return cls(
            columns=tuple(columns),
            records=tuple(Record.from_mapping(r) for r in rows),
        )

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records
