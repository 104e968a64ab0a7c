"""
Tests for the FastAPI transport: routes, status codes and the error envelope.
"""

import pytest
from fastapi.testclient import TestClient

from catalog_search.api.server import create_app

from conftest import make_product


@pytest.fixture
def client(service):
    return TestClient(create_app(service))


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["total_products"] == 6

    def test_api_info(self, client):
        assert client.get("/api/v1").json()["status"] == "success"

    def test_metrics_records_requests(self, client):
        client.get("/api/v1/search/product", params={"query": "phone"})
        summary = client.get("/metrics").json()
        assert "GET /api/v1/search/product" in summary["endpoints"]
        assert "hitRate" in summary["cache"]


class TestSearchRoutes:
    def test_search(self, client):
        response = client.get("/api/v1/search/product", params={"query": "samsung", "limit": 1})
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert len(body["data"]) == 1
        assert body["pagination"]["hasNext"] is True

    def test_invalid_sort_is_400(self, client):
        response = client.get("/api/v1/search/product", params={"sortBy": "cheapest"})
        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["path"] == "/api/v1/search/product"
        assert body["method"] == "GET"
        assert "timestamp" in body

    def test_advanced(self, client):
        response = client.post("/api/v1/search/advanced", json={"query": "phone", "inStock": True})
        assert response.status_code == 200
        assert response.json()["analytics"]["searchType"] == "advanced"

    def test_suggestions(self, client):
        body = client.get("/api/v1/search/suggestions", params={"query": "sam"}).json()
        assert body["data"] == ["samsung"]
        assert body["count"] == 1

    def test_suggestions_require_query(self, client):
        assert client.get("/api/v1/search/suggestions").status_code == 400

    def test_filters(self, client):
        data = client.get("/api/v1/search/filters").json()["data"]
        assert set(data) == {"categories", "brands", "priceRanges", "ratingRanges"}

    def test_similar(self, client):
        body = client.get("/api/v1/search/similar/1").json()
        assert [p["productId"] for p in body["data"]] == [3]

    def test_similar_unknown_product(self, client):
        response = client.get("/api/v1/search/similar/999")
        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_analytics(self, client):
        client.get("/api/v1/search/product", params={"query": "phone"})
        data = client.get("/api/v1/search/analytics").json()["data"]
        assert data["search"]["totalProducts"] == 6


class TestProductRoutes:
    def test_create_and_get(self, client):
        response = client.post("/api/v1/product", json=make_product("Sony Bluetooth Speaker", 2999, stock=40))
        assert response.status_code == 201
        product_id = response.json()["productId"]
        data = client.get(f"/api/v1/product/{product_id}").json()["data"]
        assert data["title"] == "Sony Bluetooth Speaker"
        assert data["stockStatus"] == "MEDIUM_STOCK"

    def test_create_invalid(self, client):
        response = client.post("/api/v1/product", json={"title": "No", "price": -1, "stock": 1})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_mrp_below_price(self, client):
        response = client.post("/api/v1/product", json=make_product("Odd Pricing", 500, mrp=400))
        assert response.status_code == 400

    def test_get_missing_is_404(self, client):
        response = client.get("/api/v1/product/999")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_non_numeric_id_is_400(self, client):
        assert client.get("/api/v1/product/abc").status_code == 400

    def test_update(self, client):
        response = client.put("/api/v1/product/2", json={"stock": 0, "isActive": True})
        assert response.status_code == 200
        assert response.json()["data"]["stockStatus"] == "OUT_OF_STOCK"

    def test_update_missing(self, client):
        assert client.put("/api/v1/product/999", json={"stock": 1}).status_code == 404

    def test_update_metadata(self, client):
        response = client.put("/api/v1/product/meta-data", json={"productId": 4, "metadata": {"ram": "16GB"}})
        assert response.status_code == 200
        assert response.json()["metadata"] == {"ram": "16GB"}

    def test_delete_is_soft(self, client, loaded_store):
        assert client.delete("/api/v1/product/3").status_code == 200
        assert loaded_store.get_by_id(3).is_active is False
        search = client.get("/api/v1/search/product", params={"query": "iphone"}).json()
        assert search["totalResults"] == 0

    def test_bulk(self, client):
        response = client.post("/api/v1/product/bulk", json={"products": [
            make_product("Mi Power Bank", 1500, mrp=1999),
            make_product("Bad Power Bank", 1500, mrp=1000),
        ]})
        assert response.status_code == 201
        assert response.json()["summary"] == {"total": 2, "successful": 1, "failed": 1}

    def test_bulk_limits(self, client):
        assert client.post("/api/v1/product/bulk", json={"products": []}).status_code == 400

    def test_categories_and_brands(self, client):
        categories = client.get("/api/v1/product/categories").json()
        assert categories["data"] == ["accessories", "audio", "laptops", "mobile phones"]
        assert categories["count"] == 4
        assert "dell" in client.get("/api/v1/product/brands").json()["data"]

    def test_by_category_and_brand(self, client):
        body = client.get("/api/v1/product/category/Mobile Phones", params={"limit": 2}).json()
        assert [p["productId"] for p in body["data"]] == [1, 2]
        body = client.get("/api/v1/product/brand/apple").json()
        assert [p["productId"] for p in body["data"]] == [3]

    def test_unknown_route_uses_envelope(self, client):
        response = client.get("/api/v1/nothing-here")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"
