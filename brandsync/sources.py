"""Source readers: download a published spreadsheet and turn it into rows.

Supported data sources
~~~~~~~~~~~~~~~~~~~~~~
* **CSV export** -- one tab, decoded as UTF-8 (BOM tolerated).
* **XLSX export** -- the first worksheet, or every worksheet tagged with
  its sheet name.
* **Positional XLSX** -- raw cell arrays with the header row first, for
  sheets whose columns are located with :func:`find_column_index`.

Header-keyed rows are plain dicts in sheet column order.  Duplicate
headers get ``_1``, ``_2`` suffixes and blank header cells are named
``__EMPTY``, ``__EMPTY_1``...  Fully blank rows are dropped.

Usage::

    data = fetch_bytes(source.export_url(), timeout=30)
    for sheet in read_workbook_sheets(data, all_sheets=True):
        print(sheet.name, len(sheet.rows))
"""

from __future__ import annotations

import csv
import io
import logging
import zipfile
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Sequence

import openpyxl
import requests
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from .models import SourceError
from .normalizers import row_is_empty

logger = logging.getLogger(__name__)

# Downloads a URL and returns the response body.
Fetcher = Callable[[str], bytes]

Row = dict[str, Any]


@dataclass
class SheetData:
    """Header-keyed rows of one worksheet."""

    name: str
    rows: list[Row] = field(default_factory=list)
    blank_rows: int = 0


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------

def fetch_bytes(
    url: str,
    *,
    timeout: float = 60.0,
    session: Optional[requests.Session] = None,
    user_agent: str = "",
) -> bytes:
    """GET *url* and return the body, raising SourceError on any failure."""
    headers = {"User-Agent": user_agent} if user_agent else None
    getter = session.get if session is not None else requests.get
    logger.info("Downloading %s", url)
    try:
        response = getter(url, timeout=timeout, headers=headers)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise SourceError(f"Failed to fetch {url}: {exc}") from exc
    logger.debug("Downloaded %d bytes from %s", len(response.content), url)
    return response.content


# ---------------------------------------------------------------------------
# Header helpers
# ---------------------------------------------------------------------------

def _header_names(cells: Sequence[Any]) -> list[str]:
    """Stringify a header row, naming blanks and suffixing duplicates."""
    names: list[str] = []
    seen: dict[str, int] = {}
    for cell in cells:
        base = "" if cell is None else str(cell).strip()
        if not base:
            base = "__EMPTY"
        count = seen.get(base, 0)
        seen[base] = count + 1
        names.append(base if count == 0 else f"{base}_{count}")
    return names


def _rows_from_arrays(arrays: Iterable[Sequence[Any]]) -> tuple[list[Row], int]:
    iterator = iter(arrays)
    header_cells = next(iterator, None)
    if header_cells is None:
        return [], 0
    header = _header_names(header_cells)

    rows: list[Row] = []
    blank = 0
    for values in iterator:
        values = list(values)
        if row_is_empty(values):
            blank += 1
            continue
        if len(values) < len(header):
            values.extend([None] * (len(header) - len(values)))
        rows.append(dict(zip(header, values)))
    return rows, blank


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

def read_csv_rows(data: bytes | str) -> list[Row]:
    """Parse a CSV export into header-keyed rows."""
    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise SourceError(f"CSV export is not valid UTF-8: {exc}") from exc
    else:
        text = data
    reader = csv.reader(io.StringIO(text, newline=""))
    rows, blank = _rows_from_arrays(reader)
    logger.info("Parsed %d CSV rows (%d blank)", len(rows), blank)
    return rows


# ---------------------------------------------------------------------------
# XLSX
# ---------------------------------------------------------------------------

def open_workbook(data: bytes) -> Workbook:
    """Open an openpyxl Workbook from downloaded bytes (cached values only)."""
    try:
        return openpyxl.load_workbook(io.BytesIO(data), data_only=True, read_only=False)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise SourceError(f"Failed to parse XLSX workbook: {exc}") from exc


def _first_sheet(wb: Workbook) -> Worksheet:
    if not wb.sheetnames:
        raise SourceError("No worksheet found inside the workbook.")
    return wb[wb.sheetnames[0]]


def sheet_rows(ws: Worksheet) -> SheetData:
    """Header-keyed rows of one worksheet."""
    rows, blank = _rows_from_arrays(ws.iter_rows(values_only=True))
    logger.info("Sheet '%s': %d rows (%d blank)", ws.title, len(rows), blank)
    return SheetData(name=ws.title, rows=rows, blank_rows=blank)


def sheet_arrays(ws: Worksheet) -> list[list[Any]]:
    """Positional rows of one worksheet, header row first, blanks dropped."""
    arrays: list[list[Any]] = []
    for index, values in enumerate(ws.iter_rows(values_only=True)):
        values = list(values)
        if index > 0 and row_is_empty(values):
            continue
        arrays.append(values)
    return arrays


def read_workbook_sheets(data: bytes, *, all_sheets: bool = False) -> list[SheetData]:
    """Read the first worksheet, or every worksheet, as header-keyed rows."""
    wb = open_workbook(data)
    try:
        worksheets = [wb[name] for name in wb.sheetnames] if all_sheets else [_first_sheet(wb)]
        if not worksheets:
            raise SourceError("No worksheet found inside the workbook.")
        return [sheet_rows(ws) for ws in worksheets]
    finally:
        wb.close()


def read_workbook_arrays(data: bytes) -> list[list[Any]]:
    """Positional rows of the first worksheet."""
    wb = open_workbook(data)
    try:
        return sheet_arrays(_first_sheet(wb))
    finally:
        wb.close()
