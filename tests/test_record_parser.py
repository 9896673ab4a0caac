"""
Tests for the record parser — sheet_search/core/record_parser.py

Covers gviz envelope stripping and JSON mapping, CSV parsing and its error
reporting, the blank-row cleanup, and format dispatch.
"""
import json

import pytest

from conftest import GVIZ_PAYLOAD, GVIZ_PREFIX, FakeResponse, FakeSession, wrap_gviz
from sheet_search.core.errors import ParseError
from sheet_search.core.record_parser import (
    SourceFormat,
    drop_blank_records,
    load_csv,
    parse_csv_text,
    parse_gviz_json,
    parse_gviz_response,
    parse_records,
    strip_envelope,
)
from sheet_search.core.records import Dataset


# ── Envelope ─────────────────────────────────────────────────────────────────

class TestStripEnvelope:
    def test_standard_prefix_is_47_characters(self):
        assert len(GVIZ_PREFIX) == 47

    def test_reproduces_embedded_json(self):
        inner = json.dumps(GVIZ_PAYLOAD)
        assert strip_envelope(wrap_gviz(GVIZ_PAYLOAD), 47, 2) == inner

    def test_custom_lengths(self):
        assert strip_envelope("abc{}xy", prefix_len=3, suffix_len=2) == "{}"

    def test_too_short_raises(self):
        with pytest.raises(ParseError):
            strip_envelope("short", 47, 2)

    def test_none_raises(self):
        with pytest.raises(ParseError):
            strip_envelope(None)


# ── gviz JSON ────────────────────────────────────────────────────────────────

class TestParseGviz:
    def test_headers_skip_unlabelled_columns(self, gviz_text):
        ds = parse_gviz_response(gviz_text)
        assert ds.columns == ("Employee Code", "Employee Name", "Hours")

    def test_row_count(self, gviz_text):
        assert len(parse_gviz_response(gviz_text)) == 3

    def test_null_cell_becomes_empty_string(self, gviz_text):
        bob = parse_gviz_response(gviz_text).records[1]
        assert bob.hours == ""

    def test_numeric_cell_stays_numeric(self, gviz_text):
        alice = parse_gviz_response(gviz_text).records[0]
        assert alice.hours == 3.5
        assert isinstance(alice.hours, float)

    def test_cells_paired_by_column_position(self, gviz_text):
        # The unlabelled column C sits between name and hours
        carol = parse_gviz_response(gviz_text).records[2]
        assert carol.name == "Carol Ali"
        assert carol.hours == 2.25

    def test_short_and_missing_cell_lists(self):
        payload = {
            "table": {
                "cols": [{"label": "Employee Code"}, {"label": "Employee Name"}],
                "rows": [{"c": [{"v": "E9"}]}, {"c": None}, {}],
            }
        }
        ds = parse_gviz_json(payload)
        assert [r.as_dict() for r in ds.records] == [
            {"Employee Code": "E9", "Employee Name": ""},
            {"Employee Code": "", "Employee Name": ""},
            {"Employee Code": "", "Employee Name": ""},
        ]

    def test_null_label_is_dropped(self):
        payload = {"table": {"cols": [{"label": None}, {"label": "Hours"}], "rows": [{"c": [{"v": 1}, {"v": 2}]}]}}
        ds = parse_gviz_json(payload)
        assert ds.columns == ("Hours",)
        assert ds.records[0].hours == 2

    def test_invalid_json_raises(self):
        with pytest.raises(ParseError):
            parse_gviz_response(GVIZ_PREFIX + "{not json" + ");")

    def test_missing_table_raises(self):
        with pytest.raises(ParseError):
            parse_gviz_response(wrap_gviz({"version": "0.6"}))

    def test_missing_rows_raises(self):
        with pytest.raises(ParseError):
            parse_gviz_json({"table": {"cols": []}})

    def test_status_error_reports_messages(self):
        payload = {
            "status": "error",
            "errors": [{"reason": "access_denied", "detailed_message": "Sheet is not published"}],
        }
        with pytest.raises(ParseError) as exc_info:
            parse_gviz_json(payload)
        assert exc_info.value.errors == ["Sheet is not published"]


# ── CSV ──────────────────────────────────────────────────────────────────────

class TestParseCsv:
    def test_basic(self, csv_text):
        ds = parse_csv_text(csv_text)
        assert ds.columns == ("Employee Code", "Employee Name", "Hours")
        assert len(ds) == 2
        assert ds.records[0].name == "Alice"

    def test_numbers_stay_strings(self, csv_text):
        ds = parse_csv_text(csv_text)
        assert ds.records[0].hours == "3.5"
        assert ds.records[1].hours == "not-a-number"

    def test_blank_lines_skipped(self):
        text = "Employee Code,Employee Name,Hours\n\nE1,Alice,1\n\n\nE2,Bob,2\n\n"
        assert len(parse_csv_text(text)) == 2

    def test_quoted_fields(self):
        text = 'Employee Code,Employee Name,Hours\nE1,"Smith, Alice",1\n'
        assert parse_csv_text(text).records[0].name == "Smith, Alice"

    def test_crlf_line_endings(self):
        text = "Employee Code,Employee Name,Hours\r\nE1,Alice,1\r\n"
        ds = parse_csv_text(text)
        assert ds.records[0].hours == "1"

    def test_extra_columns_kept_in_order(self):
        text = "Employee Code,Team,Employee Name,Hours\nE1,Blue,Alice,1\n"
        ds = parse_csv_text(text)
        assert ds.columns == ("Employee Code", "Team", "Employee Name", "Hours")
        assert ds.records[0].get("Team") == "Blue"
        assert ds.records[0].keys() == ["Employee Code", "Team", "Employee Name", "Hours"]

    def test_too_many_fields_raises_with_errors(self):
        text = "Employee Code,Employee Name,Hours\nE1,Alice,1,extra\nE2,Bob,2\n"
        with pytest.raises(ParseError) as exc_info:
            parse_csv_text(text)
        assert len(exc_info.value.errors) == 1
        assert "expected 3 fields but found 4" in exc_info.value.errors[0]

    def test_too_few_fields_raises(self):
        text = "Employee Code,Employee Name,Hours\nE1,Alice\n"
        with pytest.raises(ParseError) as exc_info:
            parse_csv_text(text)
        assert "found 2" in exc_info.value.errors[0]

    def test_every_bad_row_is_reported(self):
        text = "a,b,c\n1,2\n1,2,3\n1,2,3,4\n"
        with pytest.raises(ParseError) as exc_info:
            parse_csv_text(text)
        assert len(exc_info.value.errors) == 2

    def test_unterminated_quote_raises(self):
        text = 'Employee Code,Employee Name,Hours\nE1,"Alice,1\n'
        with pytest.raises(ParseError) as exc_info:
            parse_csv_text(text)
        assert exc_info.value.errors

    def test_leading_bom_is_ignored(self):
        ds = parse_csv_text("\ufeffEmployee Code,Employee Name,Hours\nE1,Alice,1\n")
        assert ds.columns == ("Employee Code", "Employee Name", "Hours")
        assert ds.records[0].code == "E1"
        assert ds.records[0].extra == {}

    def test_bom_over_http(self):
        body = "\ufeffEmployee Code,Employee Name,Hours\nE1,Alice,1\n"
        ds = load_csv("https://example.com/sheet.csv", session=FakeSession(FakeResponse(body)))
        assert [r.code for r in ds.records] == ["E1"]

    def test_empty_text(self):
        ds = parse_csv_text("")
        assert ds.is_empty
        assert ds.columns == ()

    def test_header_only(self):
        ds = parse_csv_text("Employee Code,Employee Name,Hours\n")
        assert ds.is_empty
        assert ds.columns == ("Employee Code", "Employee Name", "Hours")


class TestDropBlankRecords:
    def test_drops_rows_without_code_and_name(self):
        ds = parse_csv_text("Employee Code,Employee Name,Hours\nE1,Alice,1\n,,\n, ,5\n")
        cleaned = drop_blank_records(ds)
        assert [r.code for r in cleaned.records] == ["E1"]

    def test_keeps_rows_with_only_a_name(self):
        ds = parse_csv_text("Employee Code,Employee Name,Hours\n,Alice,1\n")
        assert len(drop_blank_records(ds)) == 1

    def test_does_not_touch_input(self):
        ds = parse_csv_text("Employee Code,Employee Name,Hours\nE1,Alice,1\n,,\n")
        drop_blank_records(ds)
        assert len(ds) == 2


# ── Fetch-then-parse and dispatch ────────────────────────────────────────────

class TestLoadCsv:
    def test_from_url(self, csv_text):
        session = FakeSession(FakeResponse(csv_text))
        ds = load_csv("https://example.com/sheet.csv", session=session)
        assert len(ds) == 2
        assert session.calls[0][0] == "https://example.com/sheet.csv"

    def test_from_local_file(self, tmp_path, csv_text):
        path = tmp_path / "hours.csv"
        path.write_text(csv_text + ",,\n", encoding="utf-8")
        ds = load_csv(str(path))
        assert len(ds) == 2


class TestParseRecords:
    def test_json_format(self, gviz_text):
        assert len(parse_records(gviz_text, SourceFormat.GVIZ_JSON)) == 3

    def test_csv_format_by_string(self, csv_text):
        assert len(parse_records(csv_text, "csv")) == 2

    def test_csv_format_drops_blank_rows(self):
        text = "Employee Code,Employee Name,Hours\nE1,Alice,1\n,,\n"
        assert len(parse_records(text, "csv")) == 1

    def test_unknown_format(self):
        with pytest.raises(ParseError):
            parse_records("", "xml")

    def test_returns_dataset(self, csv_text):
        assert isinstance(parse_records(csv_text, "csv"), Dataset)
