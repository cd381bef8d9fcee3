"""Brand Sheet Sync -- Command Line.

Runs one operation per invocation:

    import BRAND {products,customers}      sync a brand sheet into its collection
    import-supermarket {listings,stores}   sync the supermarket sheets
    rebuild-salesmen [BRAND]               rebuild the salesmen directory
    inspect-salesmen                       list salesmen per brand
    list-owners COLLECTION                 documents per owner (userId)
    delete-where COLLECTION FIELD VALUE    delete matching documents
    delete-collection COLLECTION           delete every document

Destructive commands refuse to run without ``--yes``.

Usage::

    python -m brandsync.main import kivos products
    python -m brandsync.main --config custom.yaml rebuild-salesmen john
    python -m brandsync.main delete-where orders_kivos userId u-42 --yes
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from .config import SyncEngineConfig, get_config
from .maintenance import (
    delete_all_in_collection,
    delete_filtered_by,
    list_owner_counts,
    value_candidates,
)
from .models import BrandSyncError, Entity, ProgressEvent
from .pipeline import import_entity, import_supermarket_listings, import_supermarket_stores
from .salesmen import inspect_salesmen, rebuild_all_salesmen
from .store import SQLiteDocumentStore

logger = logging.getLogger(__name__)


def _log_progress(event: ProgressEvent) -> None:
    if event.total:
        logger.debug("%s %.0f%% (%d/%d)", event.label, event.fraction * 100,
                     event.current, event.total)
    else:
        logger.debug("%s (%d)", event.label, event.current)


def _print_rule(title: str) -> None:
    print()
    print("=" * 65)
    print(f"  {title}")
    print("=" * 65)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _cmd_import(args, cfg: SyncEngineConfig, store: SQLiteDocumentStore) -> int:
    entity = Entity.parse(args.entity)
    summary = import_entity(store, cfg, args.brand, entity, on_progress=_log_progress)
    _print_rule(f"{cfg.brand(args.brand).label} {entity.value} import")
    print(f"  {summary.summary()}")
    return 0


def _cmd_import_supermarket(args, cfg, store) -> int:
    if args.sheet == "listings":
        summary = import_supermarket_listings(store, cfg, on_progress=_log_progress)
    else:
        summary = import_supermarket_stores(store, cfg, on_progress=_log_progress)
    _print_rule(f"SuperMarket {args.sheet} import")
    print(f"  {summary.summary()}")
    return 0


def _cmd_rebuild_salesmen(args, cfg, store) -> int:
    results = rebuild_all_salesmen(store, cfg, args.brand)
    _print_rule("Salesmen rebuild")
    for result in results:
        print(f"  {result.summary()}")
    return 0


def _cmd_inspect_salesmen(args, cfg, store) -> int:
    by_brand = inspect_salesmen(store, cfg.salesmen.collection)
    _print_rule(f"Salesmen in '{cfg.salesmen.collection}'")
    if not by_brand:
        print("  (collection is empty)")
    for brand, names in by_brand.items():
        print(f"  {brand}: {len(names)} salesmen ({', '.join(names)})")
    return 0


def _cmd_list_owners(args, cfg, store) -> int:
    owners = list_owner_counts(store, args.collection, args.field, page_size=cfg.sync.page_size)
    _print_rule(f"Owners in '{args.collection}' by {args.field}")
    if not owners:
        print("  (no documents)")
    for position, (owner, count) in enumerate(owners, start=1):
        print(f"  {position:>3}. {owner} ({count})")
    return 0


def _require_confirmation(args, what: str) -> bool:
    if args.yes:
        return True
    print(f"Refusing to delete {what} without --yes")
    return False


def _cmd_delete_where(args, cfg, store) -> int:
    what = f"documents of '{args.collection}' where {args.field}={args.value}"
    if not _require_confirmation(args, what):
        return 2
    deleted = sum(
        delete_filtered_by(store, args.collection, args.field, value,
                           page_size=cfg.sync.page_size, on_progress=_log_progress)
        for value in value_candidates(args.value)
    )
    print(f"Deleted {deleted} {what}")
    return 0


def _cmd_delete_collection(args, cfg, store) -> int:
    what = f"ALL documents of '{args.collection}'"
    if not _require_confirmation(args, what):
        return 2
    deleted = delete_all_in_collection(store, args.collection,
                                       page_size=cfg.sync.page_size, on_progress=_log_progress)
    print(f"Deleted {deleted} documents from '{args.collection}'")
    return 0


# ---------------------------------------------------------------------------
# CLI Entry Point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="brandsync",
        description="Synchronize brand spreadsheets into the document store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m brandsync.main import playmobil products\n"
            "  python -m brandsync.main import-supermarket listings\n"
            "  python -m brandsync.main rebuild-salesmen\n"
            "  python -m brandsync.main list-owners orders_kivos\n"
        ),
    )
    parser.add_argument("--config", type=str, default=None,
                        help="Path to brandsync.yaml (default: project root brandsync.yaml)")
    parser.add_argument("--db", type=str, default=None,
                        help="Path to the SQLite document store (overrides config)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable verbose (DEBUG) logging")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("import", help="Import a brand's products or customers")
    p.add_argument("brand")
    p.add_argument("entity", choices=[Entity.PRODUCTS.value, Entity.CUSTOMERS.value])
    p.set_defaults(handler=_cmd_import)

    p = sub.add_parser("import-supermarket", help="Import supermarket listings or stores")
    p.add_argument("sheet", choices=["listings", "stores"])
    p.set_defaults(handler=_cmd_import_supermarket)

    p = sub.add_parser("rebuild-salesmen", help="Rebuild the salesmen directory")
    p.add_argument("brand", nargs="?", default=None)
    p.set_defaults(handler=_cmd_rebuild_salesmen)

    p = sub.add_parser("inspect-salesmen", help="List salesmen per brand")
    p.set_defaults(handler=_cmd_inspect_salesmen)

    p = sub.add_parser("list-owners", help="Count documents per owner")
    p.add_argument("collection")
    p.add_argument("--field", default="userId")
    p.set_defaults(handler=_cmd_list_owners)

    p = sub.add_parser("delete-where", help="Delete documents whose FIELD equals VALUE (text or number)")
    p.add_argument("collection")
    p.add_argument("field")
    p.add_argument("value")
    p.add_argument("--yes", action="store_true", help="Confirm the deletion")
    p.set_defaults(handler=_cmd_delete_where)

    p = sub.add_parser("delete-collection", help="Delete every document of a collection")
    p.add_argument("collection")
    p.add_argument("--yes", action="store_true", help="Confirm the deletion")
    p.set_defaults(handler=_cmd_delete_collection)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point.

    Returns:
        Exit code (0 = success, 1 = error, 2 = not confirmed).
    """
    args = build_parser().parse_args(argv)

    try:
        cfg = get_config(args.config)
    except BrandSyncError as exc:
        print(f"\nERROR: {exc}")
        return 1

    log_level = logging.DEBUG if args.verbose else getattr(logging, cfg.logging.level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format=cfg.logging.format,
        datefmt=cfg.logging.datefmt,
    )

    try:
        store = SQLiteDocumentStore(args.db or cfg.store.resolved_path)
        return args.handler(args, cfg, store)
    except BrandSyncError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        print(f"\nERROR: {exc}")
        return 1
    except Exception as exc:
        logger.exception("Unexpected error")
        print(f"\nUNEXPECTED ERROR: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
