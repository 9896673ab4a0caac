from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from html import escape
from typing import List, Optional, Sequence

from sheet_search.core.aggregator import format_total, total
from sheet_search.core.records import HOURS_COL, Record, cell_text

LOADING_TEXT = "Loading data from Google Sheet..."
READY_TEXT = "Search to see your data."
NO_RESULTS_TEXT = "No data found for your search term."
EMPTY_DATASET_TEXT = "The sheet loaded, but it contains no usable records."
LOAD_FAILED_TEXT = (
    "Error loading live data. Please check the Spreadsheet ID, GID, "
    "and ensure the sheet is published to the web."
)


class ViewKind(str, Enum):
    LOADING = "loading"
    READY = "ready"
    LOAD_FAILED = "load_failed"
    EMPTY_DATASET = "empty_dataset"
    NO_RESULTS = "no_results"
    RESULTS = "results"


@dataclass(frozen=True)
class TableView:
    headers: List[str]
    rows: List[List[str]]


@dataclass(frozen=True)
class ResultView:
    """
    Everything the page shows in the results region.

    Exactly one kind is displayed at a time. `table`, `total` and
    `total_text` are only set for RESULTS; `detail` only for LOAD_FAILED.
    """
    kind: ViewKind
    message: str = ""
    table: Optional[TableView] = None
    total: Optional[float] = None
    total_text: str = ""
    detail: str = ""
    match_count: int = 0


def build_table(records: Sequence[Record], columns: Optional[Sequence[str]] = None) -> TableView:
    """
    Table structure for `records`.

    Headers are the dataset's columns as captured at load. Without them we
    fall back to the first record's own keys, which hides columns a later
    record may have and the first one does not.
    """
    if columns is not None:
        headers = list(columns)
    elif records:
        headers = records[0].keys()
    else:
        headers = []

    rows = [[cell_text(r.get(h, "")) for h in headers] for r in records]
    return TableView(headers=headers, rows=rows)


def render_results(
    records: Sequence[Record],
    columns: Optional[Sequence[str]] = None,
    total_column: str = HOURS_COL,
) -> ResultView:
    if not records:
        return ResultView(kind=ViewKind.NO_RESULTS, message=NO_RESULTS_TEXT)

    value = total(records, total_column)
    return ResultView(
        kind=ViewKind.RESULTS,
        table=build_table(records, columns),
        total=value,
        total_text=f"Total {total_column} Found: {format_total(value)}",
        match_count=len(records),
    )


def loading_view() -> ResultView:
    return ResultView(kind=ViewKind.LOADING, message=LOADING_TEXT)


def ready_view() -> ResultView:
    return ResultView(kind=ViewKind.READY, message=READY_TEXT)


def empty_dataset_view() -> ResultView:
    return ResultView(kind=ViewKind.EMPTY_DATASET, message=EMPTY_DATASET_TEXT)


def load_failed_view(detail: str = "") -> ResultView:
    return ResultView(kind=ViewKind.LOAD_FAILED, message=LOAD_FAILED_TEXT, detail=detail)


# ---------------------------------------------------------------------------
# Markup
# ---------------------------------------------------------------------------

def table_to_html(table: TableView) -> str:
    head = "".join(f"<th>{escape(h)}</th>" for h in table.headers)
    body = "".join(
        "<tr>" + "".join(f"<td>{escape(c)}</td>" for c in row) + "</tr>"
        for row in table.rows
    )
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def to_html(view: ResultView) -> str:
    """
    Markup for the results container (plus the total line for RESULTS).

    The Streamlit page draws views with its own widgets; this is the renderer
    for plain HTML outputs such as embedding the results in another page.
    """
    if view.kind is ViewKind.RESULTS and view.table is not None:
        total_html = ""
        if view.total is not None:
            label = escape(view.total_text.rsplit(":", 1)[0])
            total_html = f"<p>{label}: <strong>{format_total(view.total)}</strong></p>"
        return table_to_html(view.table) + total_html

    if view.kind is ViewKind.LOAD_FAILED:
        return f'<p style="color: red;">{escape(view.message)}</p>'

    if view.kind is ViewKind.READY:
        return f'<p class="placeholder">{escape(view.message)}</p>'

    return f"<p>{escape(view.message)}</p>"
