"""Tests for brandsync.sources -- downloads, CSV and XLSX readers."""

import pytest
import requests

from brandsync import sources
from brandsync.models import SourceError
from brandsync.sources import (
    _header_names,
    fetch_bytes,
    read_csv_rows,
    read_workbook_arrays,
    read_workbook_sheets,
)


class FakeResponse:

    def __init__(self, content=b"", status=200):
        self.content = content
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")


# ============================================================================
# Fetching
# ============================================================================

class TestFetchBytes:

    def test_returns_body(self, monkeypatch):
        calls = []

        def fake_get(url, timeout, headers):
            calls.append((url, timeout, headers))
            return FakeResponse(b"a,b\n1,2\n")

        monkeypatch.setattr(sources.requests, "get", fake_get)
        body = fetch_bytes("https://example.com/x.csv", timeout=5, user_agent="brandsync-test")
        assert body == b"a,b\n1,2\n"
        assert calls == [("https://example.com/x.csv", 5, {"User-Agent": "brandsync-test"})]

    def test_http_error_becomes_source_error(self, monkeypatch):
        monkeypatch.setattr(sources.requests, "get",
                            lambda url, timeout, headers: FakeResponse(status=404))
        with pytest.raises(SourceError, match="Failed to fetch"):
            fetch_bytes("https://example.com/missing")

    def test_connection_error_becomes_source_error(self, monkeypatch):
        def refuse(url, timeout, headers):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(sources.requests, "get", refuse)
        with pytest.raises(SourceError, match="refused"):
            fetch_bytes("https://example.com/x")

    def test_uses_session_when_given(self):
        class Session:
            def get(self, url, timeout, headers):
                return FakeResponse(b"ok")

        assert fetch_bytes("https://example.com", session=Session()) == b"ok"


# ============================================================================
# CSV
# ============================================================================

class TestCsv:

    def test_header_keyed_rows(self):
        data = "Product Code,Wh Price\n70001,\"12,50\"\n70002,3.99\n".encode("utf-8")
        assert read_csv_rows(data) == [
            {"Product Code": "70001", "Wh Price": "12,50"},
            {"Product Code": "70002", "Wh Price": "3.99"},
        ]

    def test_bom_and_greek(self):
        data = "ΚΩΔΙΚΟΣ,ΠΕΡΙΓΡΑΦΗ\nA1,Μπάλα\n".encode("utf-8-sig")
        assert read_csv_rows(data) == [{"ΚΩΔΙΚΟΣ": "A1", "ΠΕΡΙΓΡΑΦΗ": "Μπάλα"}]

    def test_blank_rows_dropped_and_short_rows_padded(self):
        data = "A,B,C\n1,2,3\n,,\n\n4\n"
        assert read_csv_rows(data) == [
            {"A": "1", "B": "2", "C": "3"},
            {"A": "4", "B": None, "C": None},
        ]

    def test_multiline_header(self):
        data = '"ΤΙΜΗ ΤΕΜΑΧΙΟΥ\n  ΕΥΡΩ",Code\n1,A\n'
        assert read_csv_rows(data) == [{"ΤΙΜΗ ΤΕΜΑΧΙΟΥ\n  ΕΥΡΩ": "1", "Code": "A"}]

    def test_empty(self):
        assert read_csv_rows(b"") == []

    def test_invalid_utf8(self):
        with pytest.raises(SourceError):
            read_csv_rows(b"\xff\xfe\xfa")

    def test_header_names(self):
        assert _header_names(["A", None, "A", " ", "A"]) == ["A", "__EMPTY", "A_1", "__EMPTY_1", "A_2"]


# ============================================================================
# XLSX
# ============================================================================

class TestXlsx:

    def test_first_sheet_only(self, xlsx_bytes):
        data = xlsx_bytes({
            "Products": [["Code", "Price"], ["A1", 12.5], [None, None], ["A2", 3]],
            "Other": [["Code"], ["Z9"]],
        })
        sheets = read_workbook_sheets(data)
        assert len(sheets) == 1
        assert sheets[0].name == "Products"
        assert sheets[0].rows == [{"Code": "A1", "Price": 12.5}, {"Code": "A2", "Price": 3}]
        assert sheets[0].blank_rows == 1

    def test_all_sheets_keep_names(self, xlsx_bytes):
        data = xlsx_bytes({
            "Παιχνίδια": [["ΚΩΔ."], ["1001"]],
            "Καλοκαιρινά": [["ΚΩΔ."], ["2001"], ["2002"]],
        })
        sheets = read_workbook_sheets(data, all_sheets=True)
        assert [(s.name, len(s.rows)) for s in sheets] == [("Παιχνίδια", 1), ("Καλοκαιρινά", 2)]

    def test_arrays_keep_header_first(self, xlsx_bytes):
        data = xlsx_bytes({"Sheet": [["Κωδ.", "Τιμή"], ["A-1", 3.5], [None, None], ["A-2"]]})
        assert read_workbook_arrays(data) == [["Κωδ.", "Τιμή"], ["A-1", 3.5], ["A-2", None]]

    def test_not_a_workbook(self):
        with pytest.raises(SourceError, match="XLSX"):
            read_workbook_sheets(b"this is not a zip file")
