"""Shared fixtures: canned sheet responses and a stand-in requests session."""
import json

import pytest

from sheet_search.core.records import Dataset

GVIZ_PREFIX = "/*O_o*/\ngoogle.visualization.Query.setResponse("
GVIZ_SUFFIX = ");"

GVIZ_PAYLOAD = {
    "version": "0.6",
    "reqId": "0",
    "status": "ok",
    "table": {
        "cols": [
            {"id": "A", "label": "Employee Code", "type": "string"},
            {"id": "B", "label": "Employee Name", "type": "string"},
            {"id": "C", "label": "", "type": "string"},
            {"id": "D", "label": "Hours", "type": "number"},
        ],
        "rows": [
            {"c": [{"v": "E1"}, {"v": "Alice Smith"}, {"v": "x"}, {"v": 3.5, "f": "3.5"}]},
            {"c": [{"v": "E2"}, {"v": "Bob Jones"}, None, {"v": None}]},
            {"c": [{"v": 1001.0, "f": "1001"}, {"v": "Carol Ali"}, None, {"v": 2.25}]},
        ],
    },
}

CSV_TEXT = "Employee Code,Employee Name,Hours\nE1,Alice,3.5\nE2,Bob,not-a-number\n"


def wrap_gviz(payload) -> str:
    return GVIZ_PREFIX + json.dumps(payload) + GVIZ_SUFFIX


class FakeResponse:
    def __init__(self, text: str = "", status_code: int = 200, encoding: str = "utf-8"):
        self.text = text
        self.status_code = status_code
        self.encoding = encoding

    @property
    def ok(self) -> bool:
        return self.status_code < 400


class FakeSession:
    """Records the calls made to .get() and replays a canned response or error."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def gviz_text():
    return wrap_gviz(GVIZ_PAYLOAD)


@pytest.fixture
def csv_text():
    return CSV_TEXT


@pytest.fixture
def employees():
    return Dataset.from_rows(
        ["Employee Code", "Employee Name", "Department", "Hours"],
        [
            {"Employee Code": "E100", "Employee Name": "Alice Smith", "Department": "Ops", "Hours": "7.5"},
            {"Employee Code": "E200", "Employee Name": "Bob Alito", "Department": "IT", "Hours": 4},
            {"Employee Code": "X300", "Employee Name": "Carol King", "Department": "HR", "Hours": "abc"},
            {"Employee Code": "E400", "Employee Name": "Dave Stone", "Department": "Ops", "Hours": ""},
        ],
    )
