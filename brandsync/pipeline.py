"""Import orchestration: fetch -> read -> map -> upsert, one source at a time.

Each import runs start to finish on its own; nothing is shared between
imports apart from the document store.  Source-level problems (download
failure, no worksheet, missing key column) raise :class:`SourceError`
before anything is written.  Row-level problems become skips.

Usage::

    cfg = get_config()
    store = SQLiteDocumentStore(cfg.store.resolved_path)
    summary = import_entity(store, cfg, "kivos", Entity.PRODUCTS)
    print(summary.summary())
"""

from __future__ import annotations

import functools
import logging
from collections import Counter
from typing import Any, Iterable, Optional

from .config import SheetSource, SyncEngineConfig
from .headers import HeaderIndexCache
from .mappers import SupermarketListingMapper, SupermarketStoreMapper, mapper_for
from .models import Entity, MapResult, ProgressCallback, SyncSummary
from .sources import (
    Fetcher,
    SheetData,
    fetch_bytes,
    read_csv_rows,
    read_workbook_arrays,
    read_workbook_sheets,
)
from .store import SERVER_TIMESTAMP, DocumentStore
from .upsert import sync_records

logger = logging.getLogger(__name__)


def default_fetcher(config: SyncEngineConfig) -> Fetcher:
    """HTTP fetcher honouring the configured timeout and user agent."""
    return functools.partial(
        fetch_bytes, timeout=config.http.timeout, user_agent=config.http.user_agent,
    )


def load_sheets(source: SheetSource, fetch: Fetcher) -> list[SheetData]:
    """Download *source* and return its header-keyed sheets."""
    data = fetch(source.export_url())
    if source.format == "csv":
        return [SheetData(name="", rows=read_csv_rows(data))]
    return read_workbook_sheets(data, all_sheets=source.sheets == "all")


def map_sheets(mapper, sheets: Iterable[SheetData]) -> list[MapResult]:
    cache = HeaderIndexCache()
    return [
        mapper.map(row, cache.index_for(row), sheet=sheet.name or None)
        for sheet in sheets
        for row in sheet.rows
    ]


# ---------------------------------------------------------------------------
# Brand products and customers
# ---------------------------------------------------------------------------

def import_entity(
    store: DocumentStore,
    config: SyncEngineConfig,
    brand_key: str,
    entity: Entity,
    *,
    fetch: Optional[Fetcher] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> SyncSummary:
    """Import one brand's products or customers into its collection."""
    brand = config.brand(brand_key)
    source = brand.source_for(entity)
    collection = brand.collection_for(entity)
    mapper = mapper_for(brand.key, entity)
    label = f"{brand.label} {entity.value}"

    logger.info("Importing %s into '%s'", label, collection)
    sheets = load_sheets(source, fetch or default_fetcher(config))
    results = map_sheets(mapper, sheets)
    if not results:
        logger.warning("No rows detected in %s source", label)

    return sync_records(
        store,
        collection,
        results,
        batch_size=config.sync.batch_size,
        key_field=mapper.key_field,
        on_progress=on_progress,
        label=label,
    )


def import_products(store, config, brand_key, **kwargs) -> SyncSummary:
    return import_entity(store, config, brand_key, Entity.PRODUCTS, **kwargs)


def import_customers(store, config, brand_key, **kwargs) -> SyncSummary:
    return import_entity(store, config, brand_key, Entity.CUSTOMERS, **kwargs)


# ---------------------------------------------------------------------------
# Supermarket sheets
# ---------------------------------------------------------------------------

def category_order(results: Iterable[MapResult]) -> list[str]:
    """Product categories in first-seen order."""
    order: list[str] = []
    for result in results:
        if result.is_skip:
            continue
        category = result.record.get("productCategory")
        if category and category not in order:
            order.append(category)
    return order


def summarize_store_flags(records: Iterable[dict[str, Any]]) -> dict[str, Counter]:
    """Counts of the toys / summer-items categories across store records."""
    toys: Counter = Counter()
    summer: Counter = Counter()
    for record in records:
        if record.get("hasToys"):
            toys[record["hasToys"].upper()] += 1
        if record.get("hasSummerItems"):
            summer[record["hasSummerItems"].upper()] += 1
    return {"toys": toys, "summer": summer}


def import_supermarket_listings(
    store: DocumentStore,
    config: SyncEngineConfig,
    *,
    fetch: Optional[Fetcher] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> SyncSummary:
    """Import supermarket listings and record the category display order."""
    cfg = config.supermarket
    fetch = fetch or default_fetcher(config)
    arrays = read_workbook_arrays(fetch(cfg.listings.export_url()))
    if not arrays:
        logger.warning("Supermarket listings sheet is empty")
        return SyncSummary()

    mapper = SupermarketListingMapper(arrays[0], brand=cfg.brand)
    results = [mapper.map(values) for values in arrays[1:]]
    summary = sync_records(
        store,
        cfg.listings_collection,
        results,
        batch_size=config.sync.batch_size,
        key_field=mapper.key_field,
        doc_id=mapper.doc_id,
        on_progress=on_progress,
        label="SuperMarket listings",
    )

    order = category_order(results)
    batch = store.batch(max_ops=1)
    batch.set(cfg.meta_collection, cfg.category_order_doc, {
        "order": order,
        "updatedAt": SERVER_TIMESTAMP,
    })
    batch.commit()
    logger.info("Saved category order (%d categories)", len(order))

    flags = Counter()
    for result in results:
        if not result.is_skip:
            flags.update(k for k, v in result.record.items()
                         if k.startswith("isSummerActive") and v is True)
    for name, count in sorted(flags.items()):
        logger.info("  %s: %d", name, count)
    return summary


def import_supermarket_stores(
    store: DocumentStore,
    config: SyncEngineConfig,
    *,
    fetch: Optional[Fetcher] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> SyncSummary:
    """Import supermarket stores and log their toys / summer categories."""
    cfg = config.supermarket
    fetch = fetch or default_fetcher(config)
    arrays = read_workbook_arrays(fetch(cfg.stores.export_url()))
    if not arrays:
        logger.warning("Supermarket stores sheet is empty")
        return SyncSummary()

    mapper = SupermarketStoreMapper(arrays[0], brand=cfg.brand)
    results = [mapper.map(values) for values in arrays[1:]]
    summary = sync_records(
        store,
        cfg.stores_collection,
        results,
        batch_size=config.sync.batch_size,
        key_field=mapper.key_field,
        doc_id=mapper.doc_id,
        on_progress=on_progress,
        label="SuperMarket stores",
    )

    stats = summarize_store_flags(r.record for r in results if not r.is_skip)
    for kind, counter in stats.items():
        detail = ", ".join(f"{k}: {v}" for k, v in sorted(counter.items())) or "(none found)"
        logger.info("Store %s categories: %s", kind, detail)
    return summary
