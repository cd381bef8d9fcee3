"""Root conftest.py -- makes `brandsync` importable and provides test helpers."""

import io
import sys
from pathlib import Path

import openpyxl
import pytest

# Add the project root to sys.path so `from brandsync.models import ...` works.
PROJECT_ROOT = Path(__file__).resolve().parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture
def store(tmp_path):
    """An empty SQLite document store in a temp directory."""
    from brandsync.store import SQLiteDocumentStore

    return SQLiteDocumentStore(tmp_path / "docs.db")


@pytest.fixture
def xlsx_bytes():
    """Build an in-memory workbook: ``xlsx_bytes({"Sheet": [[header...], [row...]]})``."""

    def _build(sheets):
        wb = openpyxl.Workbook()
        wb.remove(wb.active)
        for title, rows in sheets.items():
            ws = wb.create_sheet(title)
            for row in rows:
                ws.append(row)
        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()

    return _build
