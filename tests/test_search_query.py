"""
Tests for SearchQuery construction, validation, filtering and cache keys.
"""

import pytest

from catalog_search.core.errors import ValidationError
from catalog_search.data.product import Product
from catalog_search.parsing.search_query import SearchQuery, SortBy


class TestFromParams:
    def test_defaults(self):
        query = SearchQuery.from_params({})
        assert query.query == ""
        assert query.terms == ()
        assert query.limit == 20
        assert query.offset == 0
        assert query.sort_by == SortBy.RELEVANCE
        assert query.in_stock is False

    def test_string_params_are_parsed(self):
        query = SearchQuery.from_params({
            "query": "Sasta Phone",
            "limit": "5",
            "offset": "10",
            "sortBy": "price_low",
            "minPrice": "100",
            "maxPrice": "2000.5",
            "minRating": "4",
            "inStock": "true",
        })
        assert query.query == "cheap phone"
        assert query.terms == ("cheap", "phone")
        assert (query.limit, query.offset) == (5, 10)
        assert query.sort_by == SortBy.PRICE_LOW
        assert query.max_price == 2000.5
        assert query.in_stock is True

    def test_snake_case_keys(self):
        query = SearchQuery.from_params({"sort_by": "newest", "min_price": 10, "in_stock": True})
        assert query.sort_by == SortBy.NEWEST
        assert query.min_price == 10
        assert query.in_stock is True

    @pytest.mark.parametrize("params", [
        {"limit": 0},
        {"limit": 101},
        {"limit": "abc"},
        {"offset": -1},
        {"sortBy": "cheapest"},
        {"minPrice": 0},
        {"minPrice": 500, "maxPrice": 100},
        {"minPrice": "nan"},
        {"maxPrice": "inf"},
        {"minRating": float("nan")},
        {"minRating": 6},
        {"priceRange": "50000+"},
        {"ratingRange": "4.0+"},
        {"inStock": "maybe"},
        {"query": "x" * 201},
    ])
    def test_invalid_params_rejected(self, params):
        with pytest.raises(ValidationError):
            SearchQuery.from_params(params)

    def test_custom_limits(self):
        with pytest.raises(ValidationError):
            SearchQuery.from_params({"limit": 30}, max_limit=25)
        assert SearchQuery.from_params({}, default_limit=7).limit == 7


class TestMatchesFilters:
    product = Product(title="Phone", price=12000, brand="Samsung", category="Mobile Phones",
                      rating=4.2, stock=5)

    def test_case_insensitive_category_and_brand(self):
        query = SearchQuery.from_params({"category": "mobile PHONES", "brand": "SAMSUNG"})
        assert query.matches_filters(self.product)

    def test_price_bounds_inclusive(self):
        assert SearchQuery.from_params({"minPrice": 12000, "maxPrice": 12000}).matches_filters(self.product)
        assert not SearchQuery.from_params({"minPrice": 12001}).matches_filters(self.product)

    def test_rating_and_buckets(self):
        assert SearchQuery.from_params({"ratingRange": "4.0-4.5"}).matches_filters(self.product)
        assert not SearchQuery.from_params({"priceRange": "0-1000"}).matches_filters(self.product)
        assert not SearchQuery.from_params({"minRating": 4.5}).matches_filters(self.product)

    def test_inactive_never_matches(self):
        inactive = self.product.evolve(is_active=False)
        assert not SearchQuery.from_params({}).matches_filters(inactive)

    def test_in_stock(self):
        sold_out = self.product.evolve(stock=0)
        assert not SearchQuery.from_params({"inStock": True}).matches_filters(sold_out)


class TestCacheKey:
    def test_deterministic(self):
        a = SearchQuery.from_params({"query": "phone", "brand": "Apple", "limit": 10})
        b = SearchQuery.from_params({"limit": "10", "brand": "Apple", "query": "phone"})
        assert a.cache_key() == b.cache_key()

    def test_normalized_query_shares_key(self):
        a = SearchQuery.from_params({"query": "sasta phone"})
        b = SearchQuery.from_params({"query": "CHEAP phone"})
        assert a.cache_key() == b.cache_key()

    @pytest.mark.parametrize("change", [
        {"offset": 20},
        {"sortBy": "rating"},
        {"inStock": True},
        {"minRating": 3},
    ])
    def test_output_affecting_fields_change_key(self, change):
        base = SearchQuery.from_params({"query": "phone"})
        other = SearchQuery.from_params({"query": "phone", **change})
        assert base.cache_key() != other.cache_key()

    def test_key_format(self):
        key = SearchQuery.from_params({}).cache_key()
        assert key.startswith("search:")
        assert len(key) == len("search:") + 64
