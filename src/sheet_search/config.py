from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

# Root of the project (repo root)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Local CSV exports can be dropped here and pointed at with SHEET_SOURCE_URL
DATA_DIR = PROJECT_ROOT / "data"

# ---------------------------------------------------------------------------
# App identity
# ---------------------------------------------------------------------------

APP_NAME = "Employee Hours Search"
APP_VERSION = "0.1.0"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

# ---------------------------------------------------------------------------
# Google Sheet source
#
# The sheet must be published to the web ("File > Share > Publish to web").
#   - SHEET_SPREADSHEET_ID: the long id in the sheet URL
#       https://docs.google.com/spreadsheets/d/<SPREADSHEET_ID>/edit#gid=<GID>
#   - SHEET_GID: the tab id ('0' for the first tab)
#   - SHEET_SOURCE_FORMAT: 'json' (Visualization API) or 'csv'
#   - SHEET_SOURCE_URL: explicit URL or local CSV path; wins over id/gid
# ---------------------------------------------------------------------------

SHEET_SPREADSHEET_ID = os.getenv("SHEET_SPREADSHEET_ID", "").strip()
SHEET_GID = os.getenv("SHEET_GID", "0").strip() or "0"
SHEET_SOURCE_FORMAT = os.getenv("SHEET_SOURCE_FORMAT", "json").strip().lower() or "json"
SHEET_SOURCE_URL = os.getenv("SHEET_SOURCE_URL", "").strip()

GOOGLE_SHEETS_BASE_URL = "https://docs.google.com/spreadsheets/d"

HTTP_TIMEOUT_SECONDS = int(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

# The gviz endpoint wraps its JSON as
#   /*O_o*/\ngoogle.visualization.Query.setResponse(<json>);
# which is 47 characters in front and 2 behind.
GVIZ_PREFIX_LENGTH = int(os.getenv("GVIZ_PREFIX_LENGTH", "47"))
GVIZ_SUFFIX_LENGTH = int(os.getenv("GVIZ_SUFFIX_LENGTH", "2"))

SUPPORTED_FORMATS = ("json", "csv")


class ConfigError(Exception):
    """Raised when the sheet source cannot be resolved from configuration."""


@dataclass(frozen=True)
class SourceConfig:
    """Where the dataset comes from and how to read it."""
    url: str
    fmt: str
    timeout_seconds: int = HTTP_TIMEOUT_SECONDS
    prefix_len: int = GVIZ_PREFIX_LENGTH
    suffix_len: int = GVIZ_SUFFIX_LENGTH


def build_gviz_url(spreadsheet_id: str, gid: str = "0") -> str:
    return f"{GOOGLE_SHEETS_BASE_URL}/{spreadsheet_id}/gviz/tq?tqx=out:json&gid={gid}"


def build_csv_export_url(spreadsheet_id: str, gid: str = "0") -> str:
    return f"{GOOGLE_SHEETS_BASE_URL}/{spreadsheet_id}/export?format=csv&gid={gid}"


def load_source_config(
    *,
    url: str | None = None,
    fmt: str | None = None,
    spreadsheet_id: str | None = None,
    gid: str | None = None,
) -> SourceConfig:
    """
    Resolve the sheet source from explicit arguments, falling back to the
    environment-driven module settings.

    An explicit URL (or local path) always wins. Otherwise the URL is built
    from the spreadsheet id and gid for the requested format.
    """
    fmt_norm = (fmt or SHEET_SOURCE_FORMAT).strip().lower()
    if fmt_norm not in SUPPORTED_FORMATS:
        raise ConfigError(
            f"Unsupported SHEET_SOURCE_FORMAT {fmt_norm!r}. Expected one of {SUPPORTED_FORMATS}."
        )

    resolved_url = (url or SHEET_SOURCE_URL).strip()
    if not resolved_url:
        sid = (spreadsheet_id or SHEET_SPREADSHEET_ID).strip()
        if not sid:
            raise ConfigError(
                "No sheet source configured. Set SHEET_SOURCE_URL, or SHEET_SPREADSHEET_ID (and SHEET_GID)."
            )
        tab = (gid or SHEET_GID).strip() or "0"
        resolved_url = build_gviz_url(sid, tab) if fmt_norm == "json" else build_csv_export_url(sid, tab)

    return SourceConfig(url=resolved_url, fmt=fmt_norm)
