"""Bulk maintenance: wipe a collection, delete by owner, list owners.

Deletions run as a loop of "read one page, delete it in one batch" until
a page comes back empty, so they work on collections of any size without
holding the whole collection in memory.  Confirmation is the caller's job.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Optional

from .config import MAX_BATCH_SIZE
from .models import ProgressCallback, ProgressEvent
from .store import DocumentStore

logger = logging.getLogger(__name__)

UNKNOWN_OWNER = "(unknown)"


def _delete_pages(
    store: DocumentStore,
    collection: str,
    where: Optional[tuple[str, Any]],
    page_size: int,
    on_progress: Optional[ProgressCallback],
    label: str,
) -> int:
    deleted = 0
    while True:
        page = store.query(collection, where=where, limit=page_size)
        if not page:
            break
        batch = store.batch(max_ops=page_size)
        for doc in page:
            batch.delete(collection, doc.id)
        batch.commit()
        deleted += len(page)
        logger.info("%s: deleted %d documents so far", label, deleted)
        if on_progress is not None:
            on_progress(ProgressEvent(current=deleted, total=0, label=label))
    return deleted


def delete_all_in_collection(
    store: DocumentStore,
    collection: str,
    *,
    page_size: int = MAX_BATCH_SIZE,
    on_progress: Optional[ProgressCallback] = None,
) -> int:
    """Delete every document of *collection*; returns the number removed."""
    logger.info("Deleting ALL documents in '%s'", collection)
    deleted = _delete_pages(store, collection, None, page_size, on_progress,
                            f"Deleting {collection}")
    logger.info("Deleted %d documents from '%s'", deleted, collection)
    return deleted


def delete_filtered_by(
    store: DocumentStore,
    collection: str,
    field: str,
    value: Any,
    *,
    page_size: int = MAX_BATCH_SIZE,
    on_progress: Optional[ProgressCallback] = None,
) -> int:
    """Delete the documents of *collection* whose *field* equals *value*."""
    deleted = _delete_pages(store, collection, (field, value), page_size, on_progress,
                            f"Deleting {collection} where {field}={value}")
    logger.info("Deleted %d documents from '%s' where %s=%r", deleted, collection, field, value)
    return deleted


def value_candidates(text: str) -> list[Any]:
    """Stored forms a value typed on the command line may take.

    ``"42"`` matches both the string and the number 42, so an owner shown
    by :func:`list_owner_counts` can be deleted by what was printed.
    """
    values: list[Any] = [text]
    for convert in (int, float):
        try:
            values.append(convert(text))
            break
        except ValueError:
            continue
    return values


def list_owner_counts(
    store: DocumentStore,
    collection: str,
    field: str = "userId",
    *,
    page_size: int = MAX_BATCH_SIZE,
) -> list[tuple[str, int]]:
    """Documents per owner, most documents first, ties by owner name."""
    counts: Counter[str] = Counter()
    for doc in store.stream(collection, page_size=page_size):
        owner = doc.data.get(field)
        counts[str(owner) if owner not in (None, "") else UNKNOWN_OWNER] += 1
    logger.info("Scanned %d documents in '%s'", sum(counts.values()), collection)
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))
