from __future__ import annotations

from typing import List, Optional


class SheetSearchError(Exception):
    """Base class for failures while loading the sheet dataset."""


class NetworkError(SheetSearchError):
    """Raised when the source cannot be retrieved (connection, timeout, non-2xx, unreadable file)."""


class ParseError(SheetSearchError):
    """
    Raised when the retrieved text cannot be turned into records.

    `errors` keeps the underlying parser's messages (one per offending row
    for CSV input) so callers can show or log them.
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.errors: List[str] = list(errors or [])
