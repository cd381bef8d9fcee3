"""Brand Sheet Sync - spreadsheet to document store synchronization.

Reads the product and customer sheets published by each brand back-office,
normalizes them into canonical records and upserts them into brand-scoped
collections.  Also rebuilds the derived salesmen directory and offers bulk
maintenance over any collection.
"""

from .config import BrandConfig, SheetSource, SyncEngineConfig, get_config
from .models import (
    BatchCommitError,
    BrandSyncError,
    ConfigError,
    Entity,
    MapResult,
    ProgressEvent,
    RebuildSummary,
    SkipReason,
    SourceError,
    SyncSummary,
)
from .store import SERVER_TIMESTAMP, SQLiteDocumentStore
from .upsert import sync_records

__all__ = [
    "BatchCommitError",
    "BrandConfig",
    "BrandSyncError",
    "ConfigError",
    "Entity",
    "MapResult",
    "ProgressEvent",
    "RebuildSummary",
    "SERVER_TIMESTAMP",
    "SQLiteDocumentStore",
    "SheetSource",
    "SkipReason",
    "SourceError",
    "SyncEngineConfig",
    "SyncSummary",
    "get_config",
    "sync_records",
]
