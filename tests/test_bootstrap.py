"""
Tests for initial data loading and service wiring.
"""

import json

import pytest

from catalog_search.core.bootstrap import build_search_service
from catalog_search.core.config import CatalogSearchConfig
from catalog_search.core.errors import ValidationError
from catalog_search.data.seed import generate_sample_products, load_products_file
from catalog_search.recommendation.boosts import FestiveSeasonBoost

from conftest import make_product


class TestSampleCatalog:
    def test_deterministic(self):
        assert generate_sample_products(7) == generate_sample_products(7)
        assert generate_sample_products(7) != generate_sample_products(8)

    def test_covers_categories(self):
        categories = {p["category"] for p in generate_sample_products()}
        assert categories == {"Mobile Phones", "Laptops", "Accessories", "Audio"}


class TestProductsFile:
    def test_missing_file(self, tmp_path):
        assert load_products_file(tmp_path / "absent.json") is None

    def test_empty_array(self, tmp_path):
        path = tmp_path / "products.json"
        path.write_text("[]")
        assert load_products_file(path) is None

    def test_not_an_array(self, tmp_path):
        path = tmp_path / "products.json"
        path.write_text('{"title": "x"}')
        with pytest.raises(ValidationError):
            load_products_file(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "products.json"
        path.write_text("[{")
        with pytest.raises(ValidationError):
            load_products_file(path)


class TestBuildSearchService:
    def test_loads_file(self, tmp_path):
        path = tmp_path / "products.json"
        path.write_text(json.dumps([make_product("Dell XPS 13 Laptop", 90000), {"title": "bad"}]))
        service = build_search_service(CatalogSearchConfig(products_file=str(path)))
        assert len(service.store) == 1
        assert service.search({"query": "xps"})["totalResults"] == 1

    def test_seeds_when_file_absent(self, tmp_path):
        config = CatalogSearchConfig(products_file=str(tmp_path / "absent.json"), seed=3)
        service = build_search_service(config)
        assert len(service.store) == len(generate_sample_products(3))

    def test_empty_catalog_when_seeding_disabled(self, tmp_path):
        config = CatalogSearchConfig(products_file=str(tmp_path / "absent.json"), seed_on_empty=False)
        assert len(build_search_service(config).store) == 0

    def test_explicit_products(self):
        service = build_search_service(CatalogSearchConfig(), products=[make_product("Only One")])
        assert len(service.store) == 1

    def test_festive_boost_toggle(self):
        config = CatalogSearchConfig(enable_festive_boost=True)
        service = build_search_service(config, load_initial_data=False)
        assert any(isinstance(f, FestiveSeasonBoost) for f in service.ranking.boost_factors)
        plain = build_search_service(CatalogSearchConfig(), load_initial_data=False)
        assert not any(isinstance(f, FestiveSeasonBoost) for f in plain.ranking.boost_factors)


class TestConfig:
    def test_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("search:\n  max_limit: 50\ncache:\n  ttl_seconds: 10\nranking:\n  popular_brands: [Sony]\n")
        config = CatalogSearchConfig.from_yaml(path)
        assert config.max_limit == 50
        assert config.cache_ttl_seconds == 10
        assert config.popular_brands == ["sony"]
        assert config.default_limit == 20

    def test_missing_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CATALOG_DATA_FILE", raising=False)
        monkeypatch.delenv("CATALOG_SEED_ON_EMPTY", raising=False)
        config = CatalogSearchConfig.from_yaml(tmp_path / "none.yaml")
        assert config.max_limit == 100
        assert config.products_file == "data/products.json"
