"""Header resolution for spreadsheet rows.

Brand back-offices rename, re-accent and re-case their column headers
between exports ("ΤΙΜΗ ΤΕΜΑΧΙΟΥ ΕΥΡΩ", "Τιμή τεμαχίου ευρώ", a stray
newline in the middle...).  Mappers therefore look fields up through an
ordered alias list, first by exact key and then by a normalized header
token that ignores case, accents, punctuation and Greek vs. Latin script.

Usage::

    cache = HeaderIndexCache()
    for row in rows:
        code = resolve_field(row, ("ΚΩΔΙΚΟΣ", "Product Code"), cache.index_for(row))
"""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Greek -> Latin transliteration (applied after accents are stripped)
# ---------------------------------------------------------------------------

_GREEK_TO_LATIN: dict[str, str] = {
    "α": "a", "β": "b", "γ": "g", "δ": "d", "ε": "e", "ζ": "z",
    "η": "i", "θ": "th", "ι": "i", "κ": "k", "λ": "l", "μ": "m",
    "ν": "n", "ξ": "x", "ο": "o", "π": "p", "ρ": "r", "σ": "s",
    "ς": "s", "τ": "t", "υ": "y", "φ": "f", "χ": "ch", "ψ": "ps",
    "ω": "o",
}

_NON_TOKEN = re.compile(r"[^a-z0-9]")


def normalize_header(text: Any) -> str:
    """Reduce a header (or alias) to its comparison token.

    Case-folds, strips combining marks, transliterates Greek letters and
    keeps only ``[a-z0-9]``.  ``"Κωδ. Barcode"`` and ``"KOD BARCODE"``
    both become ``"kodbarcode"``.
    """
    if text is None:
        return ""
    decomposed = unicodedata.normalize("NFD", str(text).casefold())
    bare = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    latin = "".join(_GREEK_TO_LATIN.get(ch, ch) for ch in bare)
    return _NON_TOKEN.sub("", latin)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# ---------------------------------------------------------------------------
# Header index
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HeaderIndex:
    """Normalized header token -> original row key (first key wins)."""

    keys_by_token: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_keys(cls, keys: Iterable[Any]) -> HeaderIndex:
        mapping: dict[str, str] = {}
        for key in keys:
            token = normalize_header(key)
            if token and token not in mapping:
                mapping[token] = key
        return cls(mapping)

    def lookup(self, alias: str) -> Optional[str]:
        return self.keys_by_token.get(normalize_header(alias))

    def __len__(self) -> int:
        return len(self.keys_by_token)


class HeaderIndexCache:
    """Side-table of header indexes keyed by a row's header layout.

    Rows from one sheet share their keys, so the index is built once per
    layout instead of once per row, and rows themselves are never touched.
    """

    def __init__(self) -> None:
        self._indexes: dict[tuple, HeaderIndex] = {}

    def index_for(self, row: Mapping[str, Any]) -> HeaderIndex:
        layout = tuple(row.keys())
        index = self._indexes.get(layout)
        if index is None:
            index = HeaderIndex.from_keys(layout)
            self._indexes[layout] = index
            logger.debug("Built header index for %d columns", len(layout))
        return index

    def __len__(self) -> int:
        return len(self._indexes)


# ---------------------------------------------------------------------------
# Field lookup
# ---------------------------------------------------------------------------

def resolve_field(
    row: Mapping[str, Any],
    aliases: Sequence[str],
    index: HeaderIndex | None = None,
) -> Any:
    """Return the first non-blank value among *aliases*, or None.

    Two passes, both in alias order: exact (case-sensitive) keys first,
    then normalized header tokens.  Blank strings count as missing, so a
    later alias can still supply the value.
    """
    for alias in aliases:
        if alias in row and not _is_blank(row[alias]):
            return row[alias]

    if index is None:
        index = HeaderIndex.from_keys(row.keys())
    for alias in aliases:
        key = index.lookup(alias)
        if key is not None and not _is_blank(row.get(key)):
            return row[key]
    return None


def find_column_index(header_row: Sequence[Any], candidates: Sequence[str]) -> int:
    """Position of the first candidate present in *header_row*, else -1."""
    tokens = [normalize_header(h) for h in header_row]
    for candidate in candidates:
        token = normalize_header(candidate)
        if token and token in tokens:
            return tokens.index(token)
    return -1
