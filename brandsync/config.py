"""
Brand Sheet Sync -- Configuration Module

Centralizes the configuration for the synchronization engine.
Loads defaults from dataclasses, then overlays any overrides from brandsync.yaml.

Usage:
    from brandsync.config import get_config
    cfg = get_config()                          # loads brandsync.yaml if present
    cfg = get_config("path/to/custom.yaml")     # loads a specific file
    print(cfg.brand("kivos").customer_collection)   # customers_kivos
    print(cfg.sync.batch_size)                  # 500
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from .models import ConfigError, Entity

# ---------------------------------------------------------------------------
# Path constants -- everything relative to the project root
# ---------------------------------------------------------------------------
_THIS_DIR = Path(__file__).resolve().parent          # brandsync/
PROJECT_ROOT = _THIS_DIR.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "brandsync.yaml"

GOOGLE_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{id}/export?format={format}"

# Hard limit on operations per write batch.
MAX_BATCH_SIZE = 500


# ===================================================================
# 1. Spreadsheet sources
# ===================================================================

@dataclass(frozen=True)
class SheetSource:
    """One published spreadsheet: where it lives and how to read it."""
    spreadsheet_id: str = ""
    format: str = "xlsx"            # "csv" or "xlsx"
    gid: str = "0"                  # tab exported when format is csv
    sheets: str = "first"           # "first" or "all" worksheets of an xlsx

    @property
    def configured(self) -> bool:
        return bool(self.spreadsheet_id)

    def export_url(self) -> str:
        """Google Sheets export URL for this source."""
        if not self.spreadsheet_id:
            raise ConfigError("Spreadsheet ID is not configured for this source.")
        url = GOOGLE_EXPORT_URL.format(id=self.spreadsheet_id, format=self.format)
        if self.format == "csv":
            url += f"&gid={self.gid}"
        return url


# ===================================================================
# 2. Brands
# ===================================================================

@dataclass(frozen=True)
class BrandConfig:
    """A brand back-office and the collections its data lands in."""
    key: str
    label: str
    product_collection: str
    customer_collection: str
    order_collection: str
    products: SheetSource = field(default_factory=SheetSource)
    customers: SheetSource = field(default_factory=SheetSource)

    def collection_for(self, entity: Entity) -> str:
        return {
            Entity.PRODUCTS: self.product_collection,
            Entity.CUSTOMERS: self.customer_collection,
            Entity.ORDERS: self.order_collection,
        }[entity]

    def source_for(self, entity: Entity) -> SheetSource:
        if entity is Entity.PRODUCTS:
            return self.products
        if entity is Entity.CUSTOMERS:
            return self.customers
        raise ConfigError(f"{self.label} has no spreadsheet source for {entity.value}")


DEFAULT_BRANDS: dict[str, BrandConfig] = {
    "playmobil": BrandConfig(
        key="playmobil",
        label="Playmobil",
        product_collection="products",
        customer_collection="customers",
        order_collection="orders",
        products=SheetSource("101kDd35o6MBky5KYx0i8MNA5GxIUiNGgYf_01T_7I4c", format="csv"),
        customers=SheetSource("15iBRyUE0izGRi7qY_VhZgbdH7tojL1hq3F0LI6oIjqQ", format="csv"),
    ),
    "kivos": BrandConfig(
        key="kivos",
        label="Kivos",
        product_collection="products_kivos",
        customer_collection="customers_kivos",
        order_collection="orders_kivos",
        products=SheetSource("18qaTqILCUFuEvqcEM47gc-Ytj3GyNS1LI3Xkfx46Z48"),
        customers=SheetSource("1pCVVgFiutK92nZFYSCkQCQbedqaKgvQahnix6bHSRIU"),
    ),
    "john": BrandConfig(
        key="john",
        label="John",
        product_collection="products_john",
        customer_collection="customers_john",
        order_collection="orders_john",
        products=SheetSource("18IFOPzzFvzXEgGOXNN0X1_mfZcxk2LlT_mRQj3Fqsv8", sheets="all"),
        customers=SheetSource("16E6ErNMb_kTyCYQIzpjaODo3aye0VQq9u_MbyNsd38o"),
    ),
}


# ===================================================================
# 3. John supermarket sheets
# ===================================================================

@dataclass
class SupermarketConfig:
    """Listings and store sheets for the supermarket channel."""
    brand: str = "john"
    listings: SheetSource = field(default_factory=lambda: SheetSource(
        "1GPfMydqVMyDjjmhEIjWLP5kN2Vs21v8YdJgr15ins0c"))
    stores: SheetSource = field(default_factory=lambda: SheetSource(
        "1pr6HRuTRbRUpqYVYKLuiV7qZ2uqR-bm0sObZom6_m1s"))
    listings_collection: str = "supermarket_listings"
    stores_collection: str = "supermarket_stores"
    meta_collection: str = "supermarket_meta"
    category_order_doc: str = "category_order"


# ===================================================================
# 4. Document store
# ===================================================================

@dataclass
class StoreSettings:
    """Where the SQLite-backed document store lives."""
    db_path: str = "data/brandsync.db"       # overridden by BRANDSYNC_DB

    def __post_init__(self):
        self.db_path = os.environ.get("BRANDSYNC_DB", "") or self.db_path

    @property
    def resolved_path(self) -> Path:
        p = Path(self.db_path)
        if not p.is_absolute():
            p = PROJECT_ROOT / p
        return p


# ===================================================================
# 5. Sync tuning
# ===================================================================

@dataclass
class SyncSettings:
    """Batch sizes for the upsert engine, rebuilder and maintenance loops."""
    batch_size: int = MAX_BATCH_SIZE
    salesmen_batch_size: int = 400
    page_size: int = MAX_BATCH_SIZE
    commit_workers: int = 4          # parallel salesmen batch commits


@dataclass
class HttpSettings:
    """Spreadsheet download settings."""
    timeout: float = 60.0            # seconds
    user_agent: str = "brandsync/0.1"


@dataclass
class SalesmenSettings:
    collection: str = "salesmen"


@dataclass
class LoggingSettings:
    level: str = "INFO"
    format: str = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
    datefmt: str = "%H:%M:%S"


# ===================================================================
# Master Config
# ===================================================================

@dataclass
class SyncEngineConfig:
    """Top-level configuration container."""
    brands: dict[str, BrandConfig] = field(default_factory=lambda: dict(DEFAULT_BRANDS))
    supermarket: SupermarketConfig = field(default_factory=SupermarketConfig)
    store: StoreSettings = field(default_factory=StoreSettings)
    sync: SyncSettings = field(default_factory=SyncSettings)
    http: HttpSettings = field(default_factory=HttpSettings)
    salesmen: SalesmenSettings = field(default_factory=SalesmenSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    def brand(self, key: str) -> BrandConfig:
        """Look up a brand by key, case-insensitively."""
        brand = self.brands.get(key.strip().lower())
        if brand is None:
            raise ConfigError(f"Unknown brand '{key}'.  Known brands: {sorted(self.brands)}")
        return brand

    def validate(self) -> None:
        """Reject batch settings the document store cannot honour."""
        for name in ("batch_size", "salesmen_batch_size", "page_size"):
            value = getattr(self.sync, name)
            if not isinstance(value, int) or not 1 <= value <= MAX_BATCH_SIZE:
                raise ConfigError(
                    f"sync.{name} must be an integer between 1 and {MAX_BATCH_SIZE}, got {value!r}"
                )
        if self.sync.commit_workers < 1:
            raise ConfigError("sync.commit_workers must be at least 1")


# ===================================================================
# YAML Loading
# ===================================================================

def _sheet_source(base: SheetSource, data: Any) -> SheetSource:
    if isinstance(data, str):
        return replace(base, spreadsheet_id=data)
    if not isinstance(data, dict):
        raise ConfigError(f"Sheet source must be an id or a mapping, got {data!r}")
    known = {f.name for f in fields(SheetSource)}
    return replace(base, **{k: str(v) for k, v in data.items() if k in known})


def _apply_brand(cfg: SyncEngineConfig, key: str, data: dict) -> None:
    key = key.lower()
    base = cfg.brands.get(key)
    if base is None:
        base = BrandConfig(
            key=key,
            label=data.get("label", key.title()),
            product_collection=f"products_{key}",
            customer_collection=f"customers_{key}",
            order_collection=f"orders_{key}",
        )

    changes: dict[str, Any] = {}
    for attr in ("label", "product_collection", "customer_collection", "order_collection"):
        if attr in data:
            changes[attr] = str(data[attr])
    for attr in ("products", "customers"):
        if attr in data:
            changes[attr] = _sheet_source(getattr(base, attr), data[attr])
    cfg.brands[key] = replace(base, **changes)


def _apply_yaml_to_config(cfg: SyncEngineConfig, data: dict) -> None:
    """Apply a parsed YAML dict onto a SyncEngineConfig instance."""

    # --- brands ---
    for brand_key, brand_data in (data.get("brands") or {}).items():
        _apply_brand(cfg, brand_key, brand_data or {})

    # --- supermarket sources ---
    supermarket = data.get("supermarket") or {}
    for attr, val in supermarket.items():
        if attr in ("listings", "stores"):
            setattr(cfg.supermarket, attr, _sheet_source(getattr(cfg.supermarket, attr), val))
        elif hasattr(cfg.supermarket, attr):
            setattr(cfg.supermarket, attr, val)

    # --- simple sub-configs ---
    _section_map = {
        "store": cfg.store,
        "sync": cfg.sync,
        "http": cfg.http,
        "salesmen": cfg.salesmen,
        "logging": cfg.logging,
    }

    for section_key, section_obj in _section_map.items():
        if section_key in data and isinstance(data[section_key], dict):
            for attr, val in data[section_key].items():
                if hasattr(section_obj, attr):
                    setattr(section_obj, attr, val)


def get_config(yaml_path: Optional[str | Path] = None) -> SyncEngineConfig:
    """Build a SyncEngineConfig, optionally overlaying values from a YAML file.

    Args:
        yaml_path: Path to a brandsync.yaml file.  If None, looks for the
                   default brandsync.yaml at the project root.  If that file
                   doesn't exist, returns pure defaults.

    Raises:
        ConfigError: an explicit *yaml_path* is missing, or the merged
                     values are out of range.
    """
    cfg = SyncEngineConfig()

    path = Path(yaml_path) if yaml_path else DEFAULT_CONFIG_PATH
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping at the top level")
        _apply_yaml_to_config(cfg, data)
    elif yaml_path:
        raise ConfigError(f"Config file not found: {path}")

    cfg.validate()
    return cfg
