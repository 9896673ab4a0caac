from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from sheet_search.config import HTTP_TIMEOUT_SECONDS
from sheet_search.core.errors import NetworkError

logger = logging.getLogger(__name__)


def _build_retry_session() -> requests.Session:
    """
    Build a requests Session with conservative retries.
    The publish endpoints occasionally answer 429/5xx for a few seconds.
    """
    session = requests.Session()

    retry = Retry(
        total=3,
        connect=3,
        read=3,
        status=3,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )

    adapter = HTTPAdapter(max_retries=retry, pool_connections=4, pool_maxsize=4)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session


_SESSION: Optional[requests.Session] = None


def _get_session() -> requests.Session:
    global _SESSION
    if _SESSION is None:
        _SESSION = _build_retry_session()
    return _SESSION


def _local_path(url: str) -> Optional[Path]:
    """Return a filesystem path for file:// URLs and bare paths, None for http(s)."""
    parsed = urlparse(url)
    if parsed.scheme in ("http", "https"):
        return None
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    # Windows drive letters parse as a one-letter scheme
    if parsed.scheme == "" or len(parsed.scheme) == 1:
        return Path(url)
    raise NetworkError(f"Unsupported URL scheme {parsed.scheme!r} in {url!r}")


def _read_local(path: Path) -> str:
    try:
        # utf-8-sig drops the BOM spreadsheet exports like to add
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise NetworkError(f"Could not read local file {path}: {exc}") from exc


def fetch_text(
    url: str,
    *,
    timeout_seconds: int = HTTP_TIMEOUT_SECONDS,
    session: Optional[requests.Session] = None,
) -> str:
    """
    Retrieve the raw text behind `url` with a single GET (retries are handled
    by the session adapter). Local paths and file:// URLs are read from disk.

    Raises NetworkError on connection problems, timeouts, non-2xx responses
    and unreadable files.
    """
    if not url or not str(url).strip():
        raise NetworkError("No source URL given.")

    local = _local_path(url)
    if local is not None:
        logger.info("Reading dataset from local file %s", local)
        text = _read_local(local)
        logger.debug("Read %d characters from %s", len(text), local)
        return text

    logger.info("Fetching dataset from %s", url)
    try:
        resp = (session or _get_session()).get(url, timeout=timeout_seconds)
    except requests.RequestException as exc:
        raise NetworkError(f"HTTP error while fetching {url}: {exc}") from exc

    if not resp.ok:
        preview = (resp.text or "")[:200]
        raise NetworkError(f"Fetching {url} failed with status {resp.status_code}. Preview: {preview}")

    # Sheets serves gviz JSON without a charset; the payload is UTF-8
    if not resp.encoding or resp.encoding.lower() == "iso-8859-1":
        resp.encoding = "utf-8"

    text = resp.text
    logger.debug("Received %d characters (status=%s)", len(text), resp.status_code)
    return text
