from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from sheet_search.config import SourceConfig
from sheet_search.core.data_loader import fetch_text
from sheet_search.core.errors import SheetSearchError
from sheet_search.core.filter_engine import filter_records
from sheet_search.core.presenter import (
    ResultView,
    empty_dataset_view,
    load_failed_view,
    loading_view,
    ready_view,
    render_results,
)
from sheet_search.core.record_parser import parse_records
from sheet_search.core.records import Dataset

logger = logging.getLogger(__name__)


class AppState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    LOAD_FAILED = "load_failed"


@dataclass
class SessionContext:
    """State owned by one page session: the loaded dataset and what is on screen."""
    source: SourceConfig
    state: AppState = AppState.LOADING
    dataset: Dataset = field(default_factory=Dataset)
    error: Optional[str] = None
    view: ResultView = field(default_factory=loading_view)


class SearchController:
    """
    Loads the sheet once, then answers search actions against it.

      LOADING --load ok--> READY --search--> READY
      LOADING --load error--> LOAD_FAILED (terminal)
    """

    def __init__(
        self,
        source: SourceConfig,
        fetch: Callable[..., str] = fetch_text,
    ) -> None:
        self.ctx = SessionContext(source=source)
        self._fetch = fetch

    @property
    def state(self) -> AppState:
        return self.ctx.state

    @property
    def dataset(self) -> Dataset:
        return self.ctx.dataset

    @property
    def view(self) -> ResultView:
        return self.ctx.view

    def load(self) -> ResultView:
        if self.ctx.state is not AppState.LOADING:
            return self.ctx.view

        src = self.ctx.source
        try:
            text = self._fetch(src.url, timeout_seconds=src.timeout_seconds)
            dataset = parse_records(text, src.fmt, prefix_len=src.prefix_len, suffix_len=src.suffix_len)
        except SheetSearchError as exc:
            logger.exception("Error fetching or parsing sheet data from %s", src.url)
            detail = str(exc)
            errors = getattr(exc, "errors", None)
            if errors:
                detail = f"{detail} " + "; ".join(errors)
            self.ctx.state = AppState.LOAD_FAILED
            self.ctx.error = detail
            self.ctx.view = load_failed_view(detail)
            return self.ctx.view

        self.ctx.dataset = dataset
        self.ctx.state = AppState.READY
        if dataset.is_empty:
            logger.warning("Sheet at %s loaded with no usable records.", src.url)
            self.ctx.view = empty_dataset_view()
        else:
            logger.info("Data loaded successfully: %d rows, columns=%s", len(dataset), list(dataset.columns))
            self.ctx.view = ready_view()
        return self.ctx.view

    def search(self, term: Any) -> ResultView:
        if self.ctx.state is AppState.LOAD_FAILED:
            return self.ctx.view
        if self.ctx.state is AppState.LOADING:
            self.load()
            if self.ctx.state is AppState.LOAD_FAILED:
                return self.ctx.view

        dataset = self.ctx.dataset
        if dataset.is_empty:
            self.ctx.view = empty_dataset_view()
            return self.ctx.view

        matches = filter_records(dataset.records, term)
        logger.debug("Search %r matched %d of %d rows", term, len(matches), len(dataset))
        self.ctx.view = render_results(matches, dataset.columns)
        return self.ctx.view
