from __future__ import annotations

import csv
import io
import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

import requests

from sheet_search.config import GVIZ_PREFIX_LENGTH, GVIZ_SUFFIX_LENGTH, HTTP_TIMEOUT_SECONDS
from sheet_search.core.data_loader import fetch_text
from sheet_search.core.errors import ParseError
from sheet_search.core.records import Dataset, cell_text

logger = logging.getLogger(__name__)


class SourceFormat(str, Enum):
    GVIZ_JSON = "json"
    CSV = "csv"


# ---------------------------------------------------------------------------
# Visualization API (gviz) JSON
# ---------------------------------------------------------------------------

def strip_envelope(
    text: str,
    prefix_len: int = GVIZ_PREFIX_LENGTH,
    suffix_len: int = GVIZ_SUFFIX_LENGTH,
) -> str:
    """
    Remove the fixed `setResponse(` wrapper around a gviz response.

    Exactly `prefix_len` characters are dropped from the front and
    `suffix_len` from the back.
    """
    if text is None:
        raise ParseError("Empty response; nothing to strip.")
    if prefix_len < 0 or suffix_len < 0:
        raise ParseError(f"Invalid envelope lengths prefix={prefix_len}, suffix={suffix_len}.")
    if len(text) < prefix_len + suffix_len:
        raise ParseError(
            f"Response is {len(text)} characters, shorter than the expected "
            f"{prefix_len}+{suffix_len} character envelope."
        )
    return text[prefix_len:len(text) - suffix_len]


def _gviz_error_messages(payload: Dict[str, Any]) -> List[str]:
    out: List[str] = []
    for err in payload.get("errors") or []:
        if isinstance(err, dict):
            msg = err.get("detailed_message") or err.get("message") or err.get("reason")
            out.append(str(msg))
        else:
            out.append(str(err))
    return out


def _cell_value(cells: Any, idx: int) -> Any:
    """Value of cell `idx`, or '' for a missing list, short list, null cell or null value."""
    if not isinstance(cells, list) or idx >= len(cells):
        return ""
    cell = cells[idx]
    if not isinstance(cell, dict):
        return ""
    value = cell.get("v")
    return "" if value is None else value


def parse_gviz_json(payload: Dict[str, Any]) -> Dataset:
    """
    Build a Dataset from an already-decoded gviz payload.

    Columns with an empty or missing label are not part of the header set;
    every retained header is paired with the cell at its own column position.
    """
    if not isinstance(payload, dict):
        raise ParseError(f"Unexpected gviz payload type: {type(payload).__name__}")

    if payload.get("status") == "error":
        errors = _gviz_error_messages(payload)
        raise ParseError("The sheet query returned status=error.", errors=errors)

    table = payload.get("table")
    if not isinstance(table, dict):
        raise ParseError("gviz payload has no 'table' object.")

    cols = table.get("cols")
    rows = table.get("rows")
    if not isinstance(cols, list) or not isinstance(rows, list):
        raise ParseError("gviz payload is missing 'table.cols' or 'table.rows'.")

    # (column position, header label) for each labelled column
    retained: List[tuple] = []
    for pos, col in enumerate(cols):
        label = col.get("label") if isinstance(col, dict) else None
        if label is None:
            continue
        label = str(label).strip()
        if label:
            retained.append((pos, label))

    headers = [label for _, label in retained]
    if len(retained) < len(cols):
        logger.debug("Dropped %d unlabelled gviz column(s).", len(cols) - len(retained))

    records: List[Dict[str, Any]] = []
    for row in rows:
        cells = row.get("c") if isinstance(row, dict) else None
        records.append({label: _cell_value(cells, pos) for pos, label in retained})

    return Dataset.from_rows(headers, records)


def parse_gviz_response(
    text: str,
    prefix_len: int = GVIZ_PREFIX_LENGTH,
    suffix_len: int = GVIZ_SUFFIX_LENGTH,
) -> Dataset:
    json_text = strip_envelope(text, prefix_len=prefix_len, suffix_len=suffix_len)
    try:
        payload = json.loads(json_text)
    except json.JSONDecodeError as exc:
        preview = json_text[:120]
        raise ParseError(f"gviz response is not valid JSON after stripping the wrapper: {exc}. Preview: {preview}") from exc
    return parse_gviz_json(payload)


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

def _is_blank_line(row: List[str]) -> bool:
    return not row or (len(row) == 1 and not row[0].strip())


def parse_csv_text(text: str) -> Dataset:
    """
    Parse CSV text with a header row.

    Cells are kept as literal strings (no numeric coercion here). Blank lines
    are skipped. Rows whose field count differs from the header and quoting
    errors are collected and raised together as one ParseError.
    """
    # Servers may keep the BOM that local reads drop via utf-8-sig
    reader = csv.reader(io.StringIO((text or "").lstrip("\ufeff"), newline=""), strict=True)

    header: Optional[List[str]] = None
    body: List[tuple] = []
    errors: List[str] = []

    try:
        for row in reader:
            if _is_blank_line(row):
                continue
            if header is None:
                header = row
                continue
            if len(row) != len(header):
                errors.append(
                    f"Row {reader.line_num}: expected {len(header)} fields but found {len(row)}"
                )
                continue
            body.append((reader.line_num, row))
    except csv.Error as exc:
        errors.append(f"Row {reader.line_num}: {exc}")

    if errors:
        raise ParseError(f"Malformed CSV ({len(errors)} problem(s)).", errors=errors)

    if header is None:
        return Dataset()

    # Blank header cells are dropped, like unlabelled gviz columns
    retained = [(pos, h.strip()) for pos, h in enumerate(header) if h.strip()]
    headers = [h for _, h in retained]

    records = [{h: row[pos] for pos, h in retained} for _, row in body]
    return Dataset.from_rows(headers, records)


def drop_blank_records(dataset: Dataset) -> Dataset:
    """
    Remove rows that have neither an employee code nor a name.
    These are usually trailing ',,,' lines from the sheet export.
    """
    kept = tuple(
        r for r in dataset.records
        if cell_text(r.code).strip() or cell_text(r.name).strip()
    )
    dropped = len(dataset.records) - len(kept)
    if dropped:
        logger.info("Dropped %d CSV row(s) with no code and no name.", dropped)
    return Dataset(columns=dataset.columns, records=kept)


def load_csv(
    url: str,
    *,
    timeout_seconds: int = HTTP_TIMEOUT_SECONDS,
    session: Optional[requests.Session] = None,
) -> Dataset:
    """Fetch a CSV (URL or local path) and parse it."""
    text = fetch_text(url, timeout_seconds=timeout_seconds, session=session)
    return drop_blank_records(parse_csv_text(text))


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def parse_records(
    text: str,
    fmt: SourceFormat | str,
    *,
    prefix_len: int = GVIZ_PREFIX_LENGTH,
    suffix_len: int = GVIZ_SUFFIX_LENGTH,
) -> Dataset:
    try:
        fmt = SourceFormat(fmt)
    except ValueError as exc:
        raise ParseError(f"Unknown source format: {fmt!r}") from exc

    if fmt is SourceFormat.GVIZ_JSON:
        return parse_gviz_response(text, prefix_len=prefix_len, suffix_len=suffix_len)
    return drop_blank_records(parse_csv_text(text))
