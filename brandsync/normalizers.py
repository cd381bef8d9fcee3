"""Value normalizers shared by every record mapper.

Spreadsheet cells arrive as whatever the reader produced: strings from
CSV, numbers, booleans and datetimes from openpyxl.  Each function here
turns one raw cell into a canonical value or ``None`` and never raises,
so mappers can apply them field by field.
"""

from __future__ import annotations

import math
import re
import unicodedata
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Cell values that mean "nothing here".  Spreadsheet formula errors show up
# as literal text in CSV exports and as cached strings in workbooks.
_NULL_SIGNALS: frozenset[str] = frozenset({
    "#REF!", "#VALUE!", "#ERROR!", "N/A", "NULL", "null", "undefined",
})

_TRUE_TOKENS = ("true", "yes", "1", "y")

# "Active" columns are free text: an x, a channel letter, a Greek "yes"...
_ACTIVE_TOKENS: frozenset[str] = frozenset({
    "x", "a", "b", "c", "yes", "true", "1", "on", "ok", "ναι",
})

_IMAGE_FORMULA = re.compile(r"""^=IMAGE\((['"])(.+?)\1""", re.IGNORECASE)
_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)
_NON_DECIMAL = re.compile(r"[^0-9.,\-]")
_NON_ID = re.compile(r"[^a-z0-9]")

_CENTS = Decimal("0.01")


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

def normalize_text(value: Any) -> str | None:
    """Trim a cell to text, returning None for blanks and error sentinels.

    Integral floats (how openpyxl hands back barcodes and codes typed as
    numbers) render without the trailing ``.0``.
    """
    if value is None:
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            value = int(value)
    elif isinstance(value, datetime):
        value = value.isoformat()
    elif isinstance(value, date):
        value = value.isoformat()
    s = str(value).strip()
    if not s or s in _NULL_SIGNALS:
        return None
    return s


def collapse_whitespace(value: Any) -> str | None:
    """Like :func:`normalize_text` but also squeezes internal runs of space."""
    s = normalize_text(value)
    if s is None:
        return None
    return re.sub(r"\s+", " ", s)


def strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------

def normalize_decimal(value: Any) -> float | None:
    """Parse a number written with either decimal convention.

    The rightmost of ``,`` and ``.`` is taken as the decimal separator and
    every other separator is grouping, so ``"1.234,56"`` and ``"1,234.56"``
    both give ``1234.56``.  Currency symbols and spaces are dropped; a
    minus leading what remains makes the result negative.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    s = str(value).strip()
    if not s or s in _NULL_SIGNALS:
        return None

    # The sign is read after currency symbols and spaces are gone: "€ -3,99".
    signed = _NON_DECIMAL.sub("", s)
    negative = signed.startswith("-")
    cleaned = signed.replace("-", "")
    if not any(ch.isdigit() for ch in cleaned):
        return None

    separator_at = max(cleaned.rfind(","), cleaned.rfind("."))
    if separator_at == -1:
        integer_part, fraction_part = cleaned, ""
    else:
        integer_part = cleaned[:separator_at].replace(",", "").replace(".", "")
        fraction_part = cleaned[separator_at + 1:].replace(",", "").replace(".", "")

    try:
        number = float(f"{integer_part or '0'}.{fraction_part or '0'}")
    except ValueError:
        return None
    return -number if negative else number


def round_currency(value: Any) -> float | None:
    """Normalize *value* and round it to cents, halves away from zero."""
    number = normalize_decimal(value)
    if number is None:
        return None
    try:
        rounded = Decimal(repr(number)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None
    return float(rounded)


def normalize_integer(value: Any) -> int | None:
    """Whole-number fields such as pieces per box."""
    number = normalize_decimal(value)
    if number is None:
        return None
    return int(round(number))


# ---------------------------------------------------------------------------
# Flags
# ---------------------------------------------------------------------------

def normalize_boolean(value: Any) -> bool:
    """True only for true/yes/1/y in any case.  Never returns None."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    return str(value).strip().lower() in _TRUE_TOKENS


def is_active_flag(value: Any) -> bool:
    """Looser truthiness for hand-maintained "active" columns."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    return str(value).strip().lower() in _ACTIVE_TOKENS


# ---------------------------------------------------------------------------
# URLs and identifiers
# ---------------------------------------------------------------------------

def normalize_url(value: Any) -> str | None:
    """Return an http(s) URL, unwrapping ``=IMAGE("...")`` formulas."""
    s = normalize_text(value)
    if s is None:
        return None
    match = _IMAGE_FORMULA.match(s)
    if match:
        return match.group(2).strip() or None
    return s if _HTTP_URL.match(s) else None


def make_id_segment(value: Any) -> str:
    """Lower-case ASCII letters and digits only, for composite document ids."""
    s = normalize_text(value)
    if s is None:
        return ""
    return _NON_ID.sub("", strip_diacritics(s.lower()))


def split_hierarchy(value: Any, separator: str = ">") -> list[str]:
    """Split ``"Toys > Outdoor > Balls"`` into its non-blank levels."""
    s = normalize_text(value)
    if s is None:
        return []
    return [part for part in (p.strip() for p in s.split(separator)) if part]


def row_is_empty(values: Iterable[Any]) -> bool:
    """True when every cell of a positional row is blank."""
    return all(normalize_text(v) is None for v in values)
