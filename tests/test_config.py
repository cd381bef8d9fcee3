"""Tests for brandsync.config -- defaults, YAML overlay and validation."""

import pytest

from brandsync.config import (
    MAX_BATCH_SIZE,
    PROJECT_ROOT,
    SheetSource,
    StoreSettings,
    SyncEngineConfig,
    get_config,
)
from brandsync.models import ConfigError, Entity


# ============================================================================
# Defaults
# ============================================================================

class TestDefaults:

    def test_three_brands(self):
        cfg = SyncEngineConfig()
        assert list(cfg.brands) == ["playmobil", "kivos", "john"]

    def test_collections(self):
        cfg = SyncEngineConfig()
        assert cfg.brand("playmobil").collection_for(Entity.PRODUCTS) == "products"
        assert cfg.brand("kivos").collection_for(Entity.CUSTOMERS) == "customers_kivos"
        assert cfg.brand("John").collection_for(Entity.ORDERS) == "orders_john"

    def test_unknown_brand(self):
        with pytest.raises(ConfigError, match="lego"):
            SyncEngineConfig().brand("lego")

    def test_orders_have_no_source(self):
        with pytest.raises(ConfigError):
            SyncEngineConfig().brand("kivos").source_for(Entity.ORDERS)

    def test_batch_defaults(self):
        cfg = SyncEngineConfig()
        assert cfg.sync.batch_size == MAX_BATCH_SIZE == 500
        assert cfg.sync.salesmen_batch_size == 400

    def test_john_products_read_every_sheet(self):
        assert SyncEngineConfig().brand("john").products.sheets == "all"


class TestSheetSource:

    def test_xlsx_url(self):
        url = SheetSource("abc").export_url()
        assert url == "https://docs.google.com/spreadsheets/d/abc/export?format=xlsx"

    def test_csv_url_has_gid(self):
        url = SheetSource("abc", format="csv", gid="7").export_url()
        assert url.endswith("export?format=csv&gid=7")

    def test_missing_id(self):
        source = SheetSource()
        assert not source.configured
        with pytest.raises(ConfigError):
            source.export_url()


class TestStoreSettings:

    def test_relative_path_under_project_root(self, monkeypatch):
        monkeypatch.delenv("BRANDSYNC_DB", raising=False)
        assert StoreSettings().resolved_path == PROJECT_ROOT / "data" / "brandsync.db"

    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BRANDSYNC_DB", str(tmp_path / "x.db"))
        assert StoreSettings().resolved_path == tmp_path / "x.db"


# ============================================================================
# YAML
# ============================================================================

class TestGetConfig:

    def test_overlay(self, tmp_path):
        path = tmp_path / "brandsync.yaml"
        path.write_text(
            "brands:\n"
            "  kivos:\n"
            "    products: NEW_SHEET_ID\n"
            "    customer_collection: kivos_clients\n"
            "  lego:\n"
            "    label: LEGO\n"
            "    customers:\n"
            "      spreadsheet_id: LEGO_ID\n"
            "      format: csv\n"
            "supermarket:\n"
            "  listings: LISTINGS_ID\n"
            "  listings_collection: sm_listings\n"
            "sync:\n"
            "  batch_size: 250\n"
            "  unknown_key: 1\n"
            "http:\n"
            "  timeout: 5\n"
            "logging:\n"
            "  level: DEBUG\n",
            encoding="utf-8",
        )
        cfg = get_config(path)

        kivos = cfg.brand("kivos")
        assert kivos.products.spreadsheet_id == "NEW_SHEET_ID"
        assert kivos.products.format == "xlsx"
        assert kivos.customer_collection == "kivos_clients"
        assert kivos.product_collection == "products_kivos"

        lego = cfg.brand("lego")
        assert lego.label == "LEGO"
        assert lego.customer_collection == "customers_lego"
        assert lego.customers.format == "csv"

        assert cfg.supermarket.listings.spreadsheet_id == "LISTINGS_ID"
        assert cfg.supermarket.listings_collection == "sm_listings"
        assert cfg.sync.batch_size == 250
        assert not hasattr(cfg.sync, "unknown_key")
        assert cfg.http.timeout == 5
        assert cfg.logging.level == "DEBUG"

    def test_defaults_do_not_leak_between_configs(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("brands:\n  kivos:\n    label: Changed\n", encoding="utf-8")
        get_config(path)
        assert SyncEngineConfig().brand("kivos").label == "Kivos"

    def test_empty_file_is_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert get_config(path).sync.batch_size == 500

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            get_config(tmp_path / "nope.yaml")

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            get_config(path)

    @pytest.mark.parametrize("body", [
        "sync:\n  batch_size: 501\n",
        "sync:\n  batch_size: 0\n",
        "sync:\n  page_size: many\n",
        "sync:\n  commit_workers: 0\n",
    ])
    def test_invalid_batch_settings(self, tmp_path, body):
        path = tmp_path / "bad.yaml"
        path.write_text(body, encoding="utf-8")
        with pytest.raises(ConfigError):
            get_config(path)

    def test_bad_sheet_source(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("brands:\n  kivos:\n    products: [1, 2]\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            get_config(path)
