"""Upsert engine: write mapped records into a collection, touching only what changed.

For every record the stored document is read first:

* absent  -> ``create`` with the full record plus ``importedAt`` and
  ``lastUpdated`` server timestamps;
* present -> field-by-field comparison; only the differing fields are
  written, with a refreshed ``lastUpdated``;
* equal   -> no write, counted as skipped.

Records are processed in chunks of at most ``batch_size`` and each chunk
is committed atomically before the next one is read, so re-running an
import over unchanged data performs no writes at all.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Iterator, Optional, Sequence, TypeVar

from .config import MAX_BATCH_SIZE
from .models import MapResult, ProgressCallback, ProgressEvent, SkipReason, SyncSummary
from .store import SERVER_TIMESTAMP, DocumentStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Store-assigned fields; never part of the change comparison.
TIMESTAMP_FIELDS: frozenset[str] = frozenset({"importedAt", "lastUpdated", "updatedAt"})


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Consecutive slices of *items* with at most *size* elements each."""
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def values_equal(a: Any, b: Any) -> bool:
    """Structural equality that does not let ``True`` pass for ``1``."""
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(values_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))
    return a == b


def diff_fields(
    new: dict[str, Any],
    stored: dict[str, Any],
    ignore: frozenset[str] = TIMESTAMP_FIELDS,
) -> dict[str, Any]:
    """Fields of *new* that are missing from or different in *stored*."""
    return {
        key: value
        for key, value in new.items()
        if key not in ignore and (key not in stored or not values_equal(value, stored[key]))
    }


def sync_records(
    store: DocumentStore,
    collection: str,
    records: Iterable[MapResult | dict[str, Any]],
    *,
    batch_size: int = MAX_BATCH_SIZE,
    key_field: str = "productCode",
    doc_id: Optional[Callable[[dict[str, Any]], str]] = None,
    on_progress: Optional[ProgressCallback] = None,
    label: str = "",
) -> SyncSummary:
    """Upsert *records* into *collection* and return the counters.

    Args:
        records: Mapper results (skips are counted, never written) or
                 plain record dicts.
        key_field: Record field used as document id when *doc_id* is None.
        doc_id: Optional function deriving the document id from a record.

    Raises:
        BatchCommitError: a chunk failed to commit.  Earlier chunks stay
                          written; the failing chunk wrote nothing.
    """
    items = list(records)
    summary = SyncSummary(total=len(items))
    label = label or collection
    done = 0

    for chunk in chunked(items, batch_size):
        batch = store.batch(max_ops=batch_size)
        staged: dict[str, dict[str, Any]] = {}

        for item in chunk:
            if isinstance(item, MapResult):
                if item.is_skip:
                    summary.count_skip(item.skip_reason)
                    logger.debug("%s: skipped row (%s) %s",
                                 label, item.skip_reason.name, item.detail)
                    continue
                record = item.record
            else:
                record = item

            try:
                ident = doc_id(record) if doc_id else str(record[key_field])
                current = staged.get(ident)
                if current is None:
                    current = store.get(collection, ident)
                if current is None:
                    batch.create(collection, ident, {
                        **record,
                        "importedAt": SERVER_TIMESTAMP,
                        "lastUpdated": SERVER_TIMESTAMP,
                    })
                    staged[ident] = dict(record)
                    summary.created += 1
                else:
                    changes = diff_fields(record, current)
                    if not changes:
                        summary.count_skip(SkipReason.UNCHANGED)
                        continue
                    batch.update(collection, ident, {**changes, "lastUpdated": SERVER_TIMESTAMP})
                    staged[ident] = {**current, **changes}
                    summary.updated += 1
            except Exception as exc:
                logger.warning("%s: could not compare record %r: %s",
                               label, record.get(key_field), exc)
                summary.count_skip(SkipReason.LOOKUP_ERROR)
                continue
            summary.processed += 1

        if len(batch):
            batch.commit()
            summary.batches.append(len(batch))

        done += len(chunk)
        logger.info("%s: %d/%d rows (%d written, %d skipped)",
                    label, done, summary.total, summary.processed, summary.skipped)
        if on_progress is not None:
            on_progress(ProgressEvent(current=done, total=summary.total, label=label))

    logger.info("%s import complete: %s", label, summary.summary())
    return summary
