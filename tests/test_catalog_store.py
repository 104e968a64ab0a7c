"""
Tests for the in-memory catalog store: indexing, updates, lookups and bulk load.
"""

import pytest

from catalog_search.core.errors import NotFoundError, ValidationError
from catalog_search.data.catalog_store import FALLBACK_MAX_RATING_COUNT, FALLBACK_MAX_UNITS_SOLD

from conftest import CATALOG, make_product


def _ids_in_indexes(store):
    ids = set()
    for index in (store.token_index, store.category_index, store.brand_index,
                  store.price_range_index, store.rating_bucket_index, store.stock_status_index):
        for posting in index.values():
            ids |= posting
    return ids


class TestAdd:
    def test_assigns_sequential_ids(self, store):
        assert store.add(make_product("First")) == 1
        assert store.add(make_product("Second")) == 2
        assert len(store) == 2

    def test_explicit_id_is_kept(self, store):
        assert store.add(make_product("Fixed", productId=40)) == 40
        assert store.add(make_product("Next")) == 41

    def test_duplicate_id_rejected(self, store):
        store.add(make_product("Fixed", productId=7))
        with pytest.raises(ValidationError):
            store.add(make_product("Again", productId=7))
        assert len(store) == 1

    def test_invalid_product_not_stored(self, store):
        with pytest.raises(ValidationError):
            store.add({"title": "Broken", "price": -5})
        assert len(store) == 0
        assert _ids_in_indexes(store) == set()

    def test_indexes_populated(self, loaded_store):
        assert 1 in loaded_store.token_index["samsung"]
        assert loaded_store.category_index["mobile phones"] == {1, 2, 3}
        assert loaded_store.brand_index["dell"] == {4}
        assert 5 in loaded_store.stock_status_index["OUT_OF_STOCK"]
        assert 6 in loaded_store.price_range_index["0-1000"]
        loaded_store.verify_integrity()


class TestUpdate:
    def test_update_reindexes(self, loaded_store):
        loaded_store.update(4, {"brand": "HP", "title": "HP Pavilion 15 Laptop", "description": "Thin and light"})
        assert "dell" not in loaded_store.brand_index
        assert loaded_store.brand_index["hp"] == {4}
        assert "inspiron" not in loaded_store.token_index
        assert 4 in loaded_store.token_index["pavilion"]
        loaded_store.verify_integrity()

    def test_update_changes_buckets(self, loaded_store):
        loaded_store.update(6, {"price": 1200, "mrp": 1500, "stock": 5})
        assert 6 in loaded_store.price_range_index["1000-5000"]
        assert 6 in loaded_store.stock_status_index["LOW_STOCK"]
        loaded_store.verify_integrity()

    def test_update_unknown_id(self, loaded_store):
        with pytest.raises(NotFoundError):
            loaded_store.update(999, {"title": "Ghost"})

    def test_invalid_update_leaves_store_unchanged(self, loaded_store):
        before = loaded_store.get_by_id(2)
        with pytest.raises(ValidationError):
            loaded_store.update(2, {"price": -1})
        assert loaded_store.get_by_id(2) is before
        loaded_store.verify_integrity()

    def test_immutable_fields_ignored(self, loaded_store):
        created = loaded_store.get_by_id(1).created_at
        updated = loaded_store.update(1, {"productId": 77, "createdAt": "2000-01-01", "stock": 3})
        assert updated.product_id == 1
        assert updated.created_at == created
        assert updated.stock == 3

    def test_update_metadata_merges(self, loaded_store):
        loaded_store.update_metadata(4, {"ram": "16GB"})
        updated = loaded_store.update_metadata(4, {"processor": "Ryzen"})
        assert updated.metadata == {"ram": "16GB", "processor": "Ryzen"}
        assert 4 in loaded_store.token_index["ryzen"]
        loaded_store.verify_integrity()

    def test_update_analytics(self, loaded_store):
        updated = loaded_store.update_analytics(2, {"isOnSale": True})
        assert updated.analytics.is_on_sale is True
        assert updated.analytics.units_sold == 4000

    def test_update_stock_clamps(self, loaded_store):
        assert loaded_store.update_stock(1, -10).stock == 0
        assert 1 in loaded_store.stock_status_index["OUT_OF_STOCK"]

    def test_soft_delete(self, loaded_store):
        loaded_store.delete(3)
        assert loaded_store.get_by_id(3).is_active is False
        assert all(p.product_id != 3 for p in loaded_store.all_products(active_only=True))


class TestIndexSymmetry:
    def test_removed_product_leaves_no_postings(self, store):
        store.add(make_product("Only Item", brand="Solo", category="Misc"))
        store.clear()
        assert _ids_in_indexes(store) == set()
        assert store.token_index == {}

    def test_retokenised_product_drops_old_tokens(self, loaded_store):
        loaded_store.update(5, {"title": "Boat Rockerz Earbuds", "description": "", "tags": []})
        for token, ids in loaded_store.token_index.items():
            if token in ("wired", "headphones"):
                assert 5 not in ids
        loaded_store.verify_integrity()


class TestSearch:
    def test_union_of_tokens(self, loaded_store):
        ids = [p.product_id for p in loaded_store.search(["dell", "iphone"])]
        assert ids == [3, 4]

    def test_category_filter_case_insensitive(self, loaded_store):
        ids = [p.product_id for p in loaded_store.search(["phone"], category="MOBILE PHONES")]
        assert ids == [1, 2, 3]

    def test_in_stock_filter(self, loaded_store):
        ids = [p.product_id for p in loaded_store.search(["audio", "mobile"], in_stock=True)]
        assert 5 not in ids

    def test_unknown_token(self, loaded_store):
        assert loaded_store.search(["zzzz"]) == []


class TestLookups:
    def test_categories_and_brands_sorted(self, loaded_store):
        assert loaded_store.get_categories() == ["accessories", "audio", "laptops", "mobile phones"]
        assert loaded_store.get_brands() == ["apple", "boat", "dell", "samsung", "universal"]

    def test_get_by_brand_limit(self, loaded_store):
        products = loaded_store.get_by_brand("Samsung", limit=1)
        assert [p.product_id for p in products] == [1]

    def test_get_by_ids_skips_unknown(self, loaded_store):
        assert [p.product_id for p in loaded_store.get_by_ids([2, 99, 1])] == [2, 1]

    def test_popularity_maxima(self, loaded_store):
        assert loaded_store.popularity_maxima() == (12000, 5000)

    def test_popularity_maxima_fallback(self, store):
        store.add(make_product("Quiet"))
        assert store.popularity_maxima() == (FALLBACK_MAX_UNITS_SOLD, FALLBACK_MAX_RATING_COUNT)

    def test_maxima_refresh_after_mutation(self, loaded_store):
        loaded_store.update_analytics(6, {"unitsSold": 50000})
        assert loaded_store.popularity_maxima()[0] == 50000


class TestBulkLoad:
    def test_counts_failures(self, store):
        result = store.bulk_load([
            make_product("Good One"),
            {"title": "", "price": 10},
            {"price": 10},
            make_product("Good Two"),
        ])
        assert result == {"successCount": 2, "errorCount": 2}
        assert len(store) == 2

    def test_stats(self, loaded_store):
        stats = loaded_store.get_stats()
        assert stats["totalProducts"] == len(CATALOG)
        assert stats["activeProducts"] == len(CATALOG)
        assert stats["totalIndexEntries"] > 0
        assert set(stats["indexSizes"]) == {"token", "category", "brand", "price_range",
                                            "rating_bucket", "stock_status"}
