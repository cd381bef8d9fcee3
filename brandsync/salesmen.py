"""Salesmen directory rebuild.

The ``salesmen`` collection is derived data: one entry per distinct sales
person named on a brand's customer documents.  A rebuild drops every
entry of the brand and re-inserts the set found by scanning customers.

The delete and the insert are separate commits.  Readers can observe an
empty or partial directory for the brand while a rebuild is running.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Iterable, Optional

from .config import SyncEngineConfig
from .maintenance import delete_filtered_by
from .models import RebuildSummary, SalesmanEntry
from .normalizers import collapse_whitespace, strip_diacritics
from .store import SERVER_TIMESTAMP, DocumentStore, WriteBatch

logger = logging.getLogger(__name__)

# Where a sales person's name may live on a customer document, in probe order.
SALES_PERSON_FIELD_PATHS: tuple[str, ...] = (
    "merch", "Merch", "salesman", "Salesman", "salesmanName", "salesmanFullName",
    "salesInfo.merch", "salesInfo.salesman", "salesInfo.salesmanName",
    "salesInfo.salesmanFullName", "salesInfo.merchandiser", "salesInfo.owner",
    "πωλητής", "Πωλητής", "ΠΩΛΗΤΗΣ", "Merchandiser", "merchandiser",
    "assignedMerch", "assignedSalesman",
)


def get_value_by_path(source: Any, path: str) -> Any:
    """Follow a dotted *path* through nested dicts; None when it breaks."""
    current = source
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def normalize_salesman_key(name: Any) -> str:
    """Case- and accent-insensitive identity of a sales person."""
    cleaned = collapse_whitespace(name)
    if not cleaned:
        return ""
    return strip_diacritics(cleaned).upper()


def extract_salesmen(document: dict[str, Any]) -> list[str]:
    """Distinct sales person names on one customer document.

    List values are flattened.  The first spelling seen for a key wins.
    """
    names: list[str] = []
    seen: set[str] = set()

    def add(value: Any) -> None:
        if isinstance(value, (list, tuple)):
            for item in value:
                add(item)
            return
        if isinstance(value, dict):
            return
        name = collapse_whitespace(value)
        key = normalize_salesman_key(name)
        if not key or key in seen:
            return
        seen.add(key)
        names.append(name)

    for path in SALES_PERSON_FIELD_PATHS:
        value = get_value_by_path(document, path)
        if value is not None:
            add(value)
    return names


def collect_salesmen(brand: str, documents: Iterable[dict[str, Any]]) -> tuple[list[SalesmanEntry], int]:
    """Unique entries across *documents* and the number of documents scanned."""
    unique: dict[str, SalesmanEntry] = {}
    scanned = 0
    for data in documents:
        scanned += 1
        for name in extract_salesmen(data):
            key = normalize_salesman_key(name)
            if key not in unique:
                unique[key] = SalesmanEntry(brand=brand, name=name, normalized=key)
    return list(unique.values()), scanned


def _commit_all(batches: list[WriteBatch], workers: int) -> None:
    """Commit fully built batches concurrently and wait for every one."""
    if not batches:
        return
    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        futures = [pool.submit(batch.commit) for batch in batches]
        wait(futures)
    for future in futures:
        future.result()


def rebuild_salesmen(
    store: DocumentStore,
    brand: str,
    source_collection: str,
    *,
    salesmen_collection: str = "salesmen",
    batch_size: int = 400,
    page_size: int = 500,
    commit_workers: int = 4,
) -> RebuildSummary:
    """Replace the brand's salesmen entries with those found on its customers.

    Raises:
        BatchCommitError: a delete or insert batch failed.  The directory
                          may then be partially rebuilt.
    """
    result = RebuildSummary(brand=brand)
    result.removed = delete_filtered_by(
        store, salesmen_collection, "brand", brand, page_size=page_size,
    )
    if result.removed:
        logger.info("%s: removed %d existing salesmen entries", brand, result.removed)

    entries, result.scanned = collect_salesmen(
        brand, (doc.data for doc in store.stream(source_collection, page_size=page_size)),
    )

    batches: list[WriteBatch] = []
    batch = store.batch(max_ops=batch_size)
    for entry in entries:
        if batch.is_full:
            batches.append(batch)
            batch = store.batch(max_ops=batch_size)
        batch.set(salesmen_collection, entry.doc_id, {
            "name": entry.name,
            "brand": entry.brand,
            "normalized": entry.normalized,
            "updatedAt": SERVER_TIMESTAMP,
        })
    if len(batch):
        batches.append(batch)

    _commit_all(batches, commit_workers)
    result.inserted = len(entries)
    logger.info("Salesmen rebuild %s", result.summary())
    return result


def rebuild_all_salesmen(
    store: DocumentStore,
    config: SyncEngineConfig,
    brand: Optional[str] = None,
) -> list[RebuildSummary]:
    """Rebuild one brand, or every configured brand in turn."""
    brands = [config.brand(brand)] if brand else list(config.brands.values())
    results = []
    for cfg in brands:
        logger.info("Rebuilding salesmen for %s (%s)", cfg.label, cfg.customer_collection)
        results.append(rebuild_salesmen(
            store,
            cfg.key,
            cfg.customer_collection,
            salesmen_collection=config.salesmen.collection,
            batch_size=config.sync.salesmen_batch_size,
            page_size=config.sync.page_size,
            commit_workers=config.sync.commit_workers,
        ))
    return results


def inspect_salesmen(store: DocumentStore, collection: str = "salesmen") -> dict[str, list[str]]:
    """Salesmen names grouped by brand, sorted within each brand."""
    by_brand: dict[str, list[str]] = {}
    for doc in store.stream(collection):
        brand = doc.data.get("brand") or "unknown"
        by_brand.setdefault(brand, []).append(doc.data.get("name") or "unnamed")
    return {brand: sorted(names) for brand, names in sorted(by_brand.items())}
