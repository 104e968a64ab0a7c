"""Pytest configuration for catalog search tests."""

from datetime import datetime, timezone

import pytest

from catalog_search.cache.result_cache import ResultCache
from catalog_search.core.config import CatalogSearchConfig
from catalog_search.core.search_service import SearchService
from catalog_search.data.catalog_store import CatalogStore
from catalog_search.recommendation.ranking import RankingEngine

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)
LAST_YEAR = datetime(2024, 6, 15, tzinfo=timezone.utc)


def make_product(title="Generic Product", price=1000, **fields):
    """Product payload with stable timestamps."""
    payload = {
        "title": title,
        "price": price,
        "description": fields.pop("description", f"{title} description"),
        "stock": fields.pop("stock", 20),
        "createdAt": fields.pop("createdAt", LAST_YEAR.isoformat()),
    }
    payload.update(fields)
    return payload


CATALOG = [
    make_product("Samsung Galaxy S24 128GB Black", 65000, mrp=75000, category="Mobile Phones",
                 brand="Samsung", rating=4.5, ratingCount=3000, stock=120,
                 imageUrls=["a.jpg", "b.jpg", "c.jpg", "d.jpg"],
                 analytics={"unitsSold": 9000, "isTrending": True}, tags=["mobile", "phone"]),
    make_product("Samsung Galaxy A54", 28000, mrp=32000, category="Mobile Phones",
                 brand="Samsung", rating=4.1, ratingCount=1500, stock=60,
                 analytics={"unitsSold": 4000}, tags=["mobile", "phone"]),
    make_product("Apple iPhone 15 256GB Blue", 80000, mrp=89900, category="Mobile Phones",
                 brand="Apple", rating=4.7, ratingCount=5000, stock=8,
                 analytics={"unitsSold": 12000, "profitMargin": 0.35}, tags=["mobile", "phone", "iphone"]),
    make_product("Dell Inspiron 15 Laptop", 55000, mrp=60000, category="Laptops",
                 brand="Dell", rating=4.2, ratingCount=800, stock=30,
                 analytics={"unitsSold": 1500}, tags=["laptop"]),
    make_product("Boat Wired Headphones", 900, mrp=1500, category="Audio",
                 brand="Boat", rating=3.8, ratingCount=2500, stock=0,
                 analytics={"unitsSold": 7000}, tags=["audio", "music"]),
    make_product("Universal Cheap Phone Cover", 250, mrp=499, category="Accessories",
                 brand="Universal", rating=3.2, ratingCount=90, stock=500,
                 tags=["accessory", "cover"]),
]


@pytest.fixture
def store():
    """Fresh empty catalog."""
    return CatalogStore()


@pytest.fixture
def loaded_store(store):
    """Catalog holding the small fixed CATALOG (ids 1..6 in order)."""
    result = store.bulk_load(CATALOG)
    assert result == {"successCount": len(CATALOG), "errorCount": 0}
    return store


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def engine(loaded_store, clock):
    return RankingEngine(loaded_store, clock=clock)


@pytest.fixture
def service(loaded_store, engine):
    return SearchService(loaded_store, ranking=engine, cache=ResultCache(), config=CatalogSearchConfig())
