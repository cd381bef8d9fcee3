"""Tests for brandsync.maintenance -- bulk deletes and owner counts."""

from brandsync.maintenance import (
    UNKNOWN_OWNER,
    delete_all_in_collection,
    delete_filtered_by,
    list_owner_counts,
    value_candidates,
)


def _seed_orders(store, n_u1=7, n_u2=3):
    batch = store.batch()
    for i in range(n_u1):
        batch.set("orders_kivos", f"a{i:02d}", {"userId": "u1", "total": i})
    for i in range(n_u2):
        batch.set("orders_kivos", f"b{i:02d}", {"userId": "u2", "total": i})
    batch.commit()


class TestDeleteAll:

    def test_removes_everything_in_pages(self, store):
        _seed_orders(store)
        events = []
        deleted = delete_all_in_collection(store, "orders_kivos", page_size=4,
                                           on_progress=events.append)
        assert deleted == 10
        assert store.count("orders_kivos") == 0
        assert [e.current for e in events] == [4, 8, 10]
        assert all(e.total == 0 for e in events)

    def test_empty_collection(self, store):
        assert delete_all_in_collection(store, "nothing") == 0

    def test_other_collections_untouched(self, store):
        _seed_orders(store)
        batch = store.batch()
        batch.set("products_kivos", "A1", {"userId": "u1"})
        batch.commit()
        delete_all_in_collection(store, "orders_kivos")
        assert store.count("products_kivos") == 1


class TestDeleteFiltered:

    def test_only_matching_documents(self, store):
        _seed_orders(store)
        deleted = delete_filtered_by(store, "orders_kivos", "userId", "u1", page_size=3)
        assert deleted == 7
        remaining = store.query("orders_kivos")
        assert {d.data["userId"] for d in remaining} == {"u2"}
        assert len(remaining) == 3

    def test_no_match(self, store):
        _seed_orders(store)
        assert delete_filtered_by(store, "orders_kivos", "userId", "nobody") == 0
        assert store.count("orders_kivos") == 10


class TestOwnerCounts:

    def test_sorted_by_count_then_owner(self, store):
        _seed_orders(store, n_u1=2, n_u2=2)
        batch = store.batch()
        batch.set("orders_kivos", "c00", {"userId": "u0"})
        batch.set("orders_kivos", "c01", {"userId": "u0"})
        batch.set("orders_kivos", "c02", {"userId": "u0"})
        batch.set("orders_kivos", "d00", {"total": 1})
        batch.commit()
        assert list_owner_counts(store, "orders_kivos", page_size=2) == [
            ("u0", 3),
            ("u1", 2),
            ("u2", 2),
            (UNKNOWN_OWNER, 1),
        ]

    def test_custom_field(self, store):
        batch = store.batch()
        batch.set("orders", "o1", {"createdBy": "maria"})
        batch.commit()
        assert list_owner_counts(store, "orders", "createdBy") == [("maria", 1)]


class TestValueCandidates:

    def test_text_and_number_forms(self):
        assert value_candidates("42") == ["42", 42]
        assert value_candidates("4.5") == ["4.5", 4.5]
        assert value_candidates("u-42") == ["u-42"]

    def test_numeric_owner_deleted_by_listed_value(self, store):
        batch = store.batch()
        batch.set("orders_kivos", "n1", {"userId": 42})
        batch.set("orders_kivos", "s1", {"userId": "42"})
        batch.set("orders_kivos", "o1", {"userId": 7})
        batch.commit()

        owner, _ = list_owner_counts(store, "orders_kivos")[0]
        deleted = sum(delete_filtered_by(store, "orders_kivos", "userId", value)
                      for value in value_candidates(owner))
        assert deleted == 2
        assert [d.id for d in store.query("orders_kivos")] == ["o1"]
