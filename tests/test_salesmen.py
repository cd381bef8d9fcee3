"""Tests for brandsync.salesmen -- derived salesmen directory."""

from brandsync.config import SyncEngineConfig
from brandsync.salesmen import (
    collect_salesmen,
    extract_salesmen,
    get_value_by_path,
    inspect_salesmen,
    normalize_salesman_key,
    rebuild_all_salesmen,
    rebuild_salesmen,
)


def _seed(store, collection, docs):
    batch = store.batch()
    for doc_id, data in docs.items():
        batch.set(collection, doc_id, data)
    batch.commit()


# ============================================================================
# Extraction
# ============================================================================

class TestExtraction:

    def test_key_ignores_case_accents_and_spacing(self):
        assert normalize_salesman_key("  Γιάννης   Παπάς ") == "ΓΙΑΝΝΗΣ ΠΑΠΑΣ"
        assert normalize_salesman_key("γιαννης παπας") == "ΓΙΑΝΝΗΣ ΠΑΠΑΣ"
        assert normalize_salesman_key(None) == ""

    def test_get_value_by_path(self):
        doc = {"salesInfo": {"merch": "A"}, "merch": "B"}
        assert get_value_by_path(doc, "salesInfo.merch") == "A"
        assert get_value_by_path(doc, "merch.name") is None
        assert get_value_by_path(doc, "missing.path") is None

    def test_probes_several_fields(self):
        doc = {"merch": "Γιάννης", "salesInfo": {"salesman": "Μαρία"}, "Πωλητής": "γιάννης"}
        assert extract_salesmen(doc) == ["Γιάννης", "Μαρία"]

    def test_lists_flattened(self):
        doc = {"merch": ["Άννα", ["Νίκος", ""], None, {"name": "ignored"}]}
        assert extract_salesmen(doc) == ["Άννα", "Νίκος"]

    def test_blank_and_sentinel_names_ignored(self):
        assert extract_salesmen({"merch": "  ", "salesman": "#REF!"}) == []

    def test_collect_dedupes_across_documents(self):
        docs = [{"merch": "Γιάννης"}, {"merch": "ΓΙΑΝΝΗΣ"}, {"merch": "Μαρία"}, {}]
        entries, scanned = collect_salesmen("kivos", docs)
        assert scanned == 4
        assert [(e.name, e.normalized) for e in entries] == [
            ("Γιάννης", "ΓΙΑΝΝΗΣ"),
            ("Μαρία", "ΜΑΡΙΑ"),
        ]
        assert entries[0].doc_id == "kivos_ΓΙΑΝΝΗΣ"


# ============================================================================
# Rebuild
# ============================================================================

class TestRebuild:

    def test_replaces_brand_entries(self, store):
        _seed(store, "salesmen", {
            "kivos_OLD": {"brand": "kivos", "name": "Old", "normalized": "OLD"},
            "john_KEEP": {"brand": "john", "name": "Keep", "normalized": "KEEP"},
        })
        _seed(store, "customers_kivos", {
            "c1": {"merch": "Γιάννης"},
            "c2": {"merch": "γιαννης"},
            "c3": {"salesInfo": {"merch": "Μαρία"}},
        })

        result = rebuild_salesmen(store, "kivos", "customers_kivos", batch_size=1, commit_workers=2)

        assert (result.removed, result.scanned, result.inserted) == (1, 3, 2)
        assert store.get("salesmen", "kivos_OLD") is None
        assert store.get("salesmen", "john_KEEP") is not None
        doc = store.get("salesmen", "kivos_ΜΑΡΙΑ")
        assert doc["name"] == "Μαρία"
        assert doc["brand"] == "kivos"
        assert isinstance(doc["updatedAt"], str)

    def test_rebuild_twice_is_stable(self, store):
        _seed(store, "customers_john", {"c1": {"merch": "Άννα"}})
        rebuild_salesmen(store, "john", "customers_john")
        result = rebuild_salesmen(store, "john", "customers_john")
        assert (result.removed, result.inserted) == (1, 1)
        assert store.count("salesmen") == 1

    def test_empty_source(self, store):
        result = rebuild_salesmen(store, "john", "customers_john")
        assert (result.removed, result.scanned, result.inserted) == (0, 0, 0)

    def test_rebuild_all_brands(self, store):
        config = SyncEngineConfig()
        _seed(store, config.brand("kivos").customer_collection, {"c": {"merch": "Α"}})
        _seed(store, config.brand("john").customer_collection, {"c": {"merch": "Β"}})

        results = rebuild_all_salesmen(store, config)
        assert [r.brand for r in results] == list(config.brands)
        assert inspect_salesmen(store) == {"john": ["Β"], "kivos": ["Α"]}

    def test_rebuild_single_brand(self, store):
        config = SyncEngineConfig()
        results = rebuild_all_salesmen(store, config, "playmobil")
        assert [r.brand for r in results] == ["playmobil"]
