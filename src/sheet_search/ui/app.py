from __future__ import annotations

import traceback
from typing import Optional

import pandas as pd
import streamlit as st

from sheet_search.config import APP_NAME, APP_VERSION, ConfigError, SourceConfig, load_source_config
from sheet_search.core.controller import AppState, SearchController
from sheet_search.core.aggregator import format_total
from sheet_search.core.presenter import ResultView, ViewKind

_CONTROLLER_KEY = "sheet_search_controller"


def _get_controller(source: SourceConfig) -> SearchController:
    """One controller (and so one dataset) per browser session."""
    controller: Optional[SearchController] = st.session_state.get(_CONTROLLER_KEY)
    if controller is None or controller.ctx.source != source:
        controller = SearchController(source)
        st.session_state[_CONTROLLER_KEY] = controller
    return controller


def _render_view(view: ResultView) -> None:
    if view.kind is ViewKind.RESULTS and view.table is not None:
        df = pd.DataFrame(view.table.rows, columns=view.table.headers)
        st.dataframe(df, use_container_width=True, hide_index=True)
        label = view.total_text.rsplit(":", 1)[0]
        st.markdown(f"{label}: **{format_total(view.total)}**")
        return

    if view.kind is ViewKind.LOAD_FAILED:
        st.error(view.message)
        if view.detail:
            st.code(view.detail)
        return

    if view.kind in (ViewKind.EMPTY_DATASET, ViewKind.NO_RESULTS):
        st.warning(view.message)
        return

    st.info(view.message)


def _render_source_status(controller: SearchController) -> None:
    with st.sidebar.expander("Data source (developer view)", expanded=False):
        src = controller.ctx.source
        st.write(f"Format: `{src.fmt}`")
        st.write(f"URL: {src.url}")
        st.write(f"State: `{controller.state.value}`")
        if controller.state is AppState.READY:
            st.write(f"Rows: {len(controller.dataset)}")
            st.write(f"Columns: {list(controller.dataset.columns)}")


def run_app() -> None:
    st.set_page_config(page_title=APP_NAME, page_icon="🕒", layout="wide")
    st.title(APP_NAME)
    st.caption(f"Version {APP_VERSION}")

    try:
        source = load_source_config()
    except ConfigError as cerr:
        st.error(f"Configuration error: {cerr}")
        return

    controller = _get_controller(source)

    if controller.state is AppState.LOADING:
        with st.spinner(controller.view.message):
            controller.load()

    _render_source_status(controller)

    # A form submits on both the button and the Enter key
    with st.form("search_form", clear_on_submit=False):
        term = st.text_input("Employee code or name", key="search_term")
        submitted = st.form_submit_button("Search")

    if submitted:
        try:
            view = controller.search(term)
        except Exception:
            st.error("Unexpected error while searching.")
            st.text_area("Traceback", value=traceback.format_exc(), height=220)
            return
    else:
        view = controller.view

    _render_view(view)
