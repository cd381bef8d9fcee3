"""Tests for brandsync.models -- results, summaries and enums."""

import pytest

from brandsync.models import (
    ConfigError,
    Entity,
    MapResult,
    ProgressEvent,
    RebuildSummary,
    SalesmanEntry,
    SkipReason,
    SyncSummary,
)


class TestSyncSummary:

    def test_count_skip_tracks_reasons(self):
        summary = SyncSummary(total=3)
        summary.count_skip(SkipReason.UNCHANGED)
        summary.count_skip(SkipReason.UNCHANGED)
        summary.count_skip(SkipReason.MISSING_BUSINESS_KEY)
        assert summary.skipped == 3
        assert summary.skip_reasons == {"UNCHANGED": 2, "MISSING_BUSINESS_KEY": 1}

    def test_summary_line(self):
        summary = SyncSummary(processed=2, total=3, created=1, updated=1)
        summary.count_skip(SkipReason.LOOKUP_ERROR)
        assert summary.summary() == (
            "processed 2, skipped 1 of 3 (1 created, 1 updated) [skips: LOOKUP_ERROR=1]"
        )

    def test_summary_without_skips(self):
        assert SyncSummary().summary() == "processed 0, skipped 0 of 0 (0 created, 0 updated)"

    def test_public_surface(self):
        assert not hasattr(SyncSummary, "merge")


class TestMapResult:

    def test_ok_and_skip(self):
        assert not MapResult.ok({"productCode": "A1"}).is_skip
        skip = MapResult.skip(SkipReason.MAPPING_ERROR, "A1: bad")
        assert skip.is_skip
        assert skip.record is None
        assert skip.detail == "A1: bad"


class TestSmallModels:

    def test_progress_fraction(self):
        assert ProgressEvent(5, 20).fraction == 0.25
        assert ProgressEvent(5, 0).fraction == 0.0

    def test_salesman_doc_id(self):
        assert SalesmanEntry("john", "Άννα", "ΑΝΝΑ").doc_id == "john_ΑΝΝΑ"

    def test_rebuild_summary(self):
        text = RebuildSummary("kivos", removed=1, scanned=4, inserted=2).summary()
        assert text == "kivos: removed 1, scanned 4 documents, inserted 2 salesmen"

    def test_entity_parse(self):
        assert Entity.parse(" Products ") is Entity.PRODUCTS
        with pytest.raises(ConfigError):
            Entity.parse("invoices")
