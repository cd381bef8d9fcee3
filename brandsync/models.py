"""Data models for the brand sheet synchronization engine.

Plain dataclasses and enums shared by the mappers, the upsert engine,
the salesmen rebuilder and the command line.  The exception hierarchy
lives here too so every layer can raise and catch the same types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Entity(Enum):
    """Kind of record a source sheet carries."""

    PRODUCTS = "products"
    CUSTOMERS = "customers"
    ORDERS = "orders"

    @classmethod
    def parse(cls, value: str) -> Entity:
        for member in cls:
            if member.value == value.strip().lower():
                return member
        raise ConfigError(f"Unknown entity '{value}'.  Expected one of: "
                          f"{[m.value for m in cls]}")


class SkipReason(Enum):
    """Why a source row or a record did not produce a write."""

    MISSING_BUSINESS_KEY = "Business key is blank or missing"
    MAPPING_ERROR = "A field could not be normalized"
    LOOKUP_ERROR = "Existing document could not be read or compared"
    UNCHANGED = "Stored document already matches"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class BrandSyncError(Exception):
    """Base class for every error the engine raises on purpose."""


class ConfigError(BrandSyncError):
    """Unknown brand or entity, or a source without a spreadsheet id."""


class SourceError(BrandSyncError):
    """A whole source is unusable: fetch failed, sheet or key column missing."""


class BatchCommitError(BrandSyncError):
    """A write batch could not be committed to the document store."""

    def __init__(self, message: str, *, collection: str = "", size: int = 0):
        super().__init__(message)
        self.collection = collection
        self.size = size


# ---------------------------------------------------------------------------
# Mapping output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MapResult:
    """Outcome of mapping one source row.

    Exactly one of ``record`` / ``skip_reason`` is set.  Rows that cannot
    be mapped are reported through this value instead of an exception so
    one bad row never aborts an import.
    """

    record: Optional[dict[str, Any]] = None
    skip_reason: Optional[SkipReason] = None
    detail: str = ""

    @classmethod
    def ok(cls, record: dict[str, Any]) -> MapResult:
        return cls(record=record)

    @classmethod
    def skip(cls, reason: SkipReason, detail: str = "") -> MapResult:
        return cls(skip_reason=reason, detail=detail)

    @property
    def is_skip(self) -> bool:
        return self.skip_reason is not None


# ---------------------------------------------------------------------------
# Progress and summaries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProgressEvent:
    """Emitted after each committed chunk.  ``total`` is 0 when unknown."""

    current: int
    total: int
    label: str = ""

    @property
    def fraction(self) -> float:
        return self.current / self.total if self.total else 0.0


ProgressCallback = Callable[[ProgressEvent], None]


@dataclass
class SyncSummary:
    """Counters returned by one upsert run."""

    processed: int = 0
    skipped: int = 0
    total: int = 0
    created: int = 0
    updated: int = 0
    batches: list[int] = field(default_factory=list)
    skip_reasons: dict[str, int] = field(default_factory=dict)

    def count_skip(self, reason: SkipReason) -> None:
        self.skipped += 1
        self.skip_reasons[reason.name] = self.skip_reasons.get(reason.name, 0) + 1

    def summary(self) -> str:
        """Return a one-line human-readable summary."""
        text = (f"processed {self.processed}, skipped {self.skipped} "
                f"of {self.total} ({self.created} created, {self.updated} updated)")
        if self.skip_reasons:
            reasons = ", ".join(f"{k}={v}" for k, v in sorted(self.skip_reasons.items()))
            text += f" [skips: {reasons}]"
        return text


# ---------------------------------------------------------------------------
# Salesmen directory
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SalesmanEntry:
    """One entry of the derived ``salesmen`` collection."""

    brand: str
    name: str
    normalized: str

    @property
    def doc_id(self) -> str:
        return f"{self.brand}_{self.normalized}"


@dataclass
class RebuildSummary:
    """Counters returned by a salesmen rebuild for one brand."""

    brand: str
    removed: int = 0
    scanned: int = 0
    inserted: int = 0

    def summary(self) -> str:
        return (f"{self.brand}: removed {self.removed}, scanned {self.scanned} "
                f"documents, inserted {self.inserted} salesmen")
