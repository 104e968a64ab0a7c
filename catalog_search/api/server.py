"""
FastAPI server for catalog search.

Provides the REST API over a ``SearchService``.

Usage:
    python -m catalog_search.api.server
    # or
    uvicorn catalog_search.api.server:create_app --factory --reload --port 3000
"""
import os
import time
import traceback
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog_search.api.models import (
    BulkProductRequest,
    HealthResponse,
    MetadataUpdateRequest,
    ProductCreateRequest,
    ProductUpdateRequest,
)
from catalog_search.core.bootstrap import build_search_service
from catalog_search.core.errors import CatalogSearchError, NotFoundError, ValidationError
from catalog_search.core.search_service import SearchService, to_search_result
from catalog_search.data.product import utcnow
from catalog_search.utils.logger import get_logger, log_performance
from catalog_search.utils.metrics import MetricsCollector

logger = get_logger("api.server")

API_PREFIX = "/api/v1"

STATUS_BY_CODE = {
    ValidationError.code: 400,
    NotFoundError.code: 404,
}


def error_response(request: Request, status_code: int, code: str, message: str, details: Any = None) -> JSONResponse:
    """Error envelope shared by every failure path."""
    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "timestamp": utcnow().isoformat(),
            "path": request.url.path,
            "method": request.method,
        },
    )


def _success(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {**payload, "status": "success"}


def create_app(service: Optional[SearchService] = None) -> FastAPI:
    """
    Build the application around ``service``.

    Without a service the default one is built from configuration, which loads
    the product file or the sample catalog.
    """
    service = service or build_search_service()
    metrics = MetricsCollector()

    app = FastAPI(
        title="Catalog Search API",
        description="Product catalog search with ranking, suggestions and facets",
        version="1.0.0",
    )
    app.state.service = service
    app.state.metrics = metrics

    # Enable CORS for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def record_metrics(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        route = request.scope.get("route")
        endpoint = f"{request.method} {getattr(route, 'path', request.url.path)}"
        metrics.record_latency(endpoint, (time.perf_counter() - start) * 1000.0)
        if response.status_code >= 400:
            metrics.record_error(endpoint)
        return response

    # ------------------------------------------------------------------
    # Error handlers
    # ------------------------------------------------------------------

    @app.exception_handler(CatalogSearchError)
    async def catalog_error_handler(request: Request, exc: CatalogSearchError):
        status_code = STATUS_BY_CODE.get(exc.code, 500)
        logger.warning("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.code)
        return error_response(request, status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ]
        logger.warning("%s %s rejected: %s", request.method, request.url.path, details)
        return error_response(request, 400, ValidationError.code, "Invalid request parameters", details)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        code = NotFoundError.code if exc.status_code == 404 else "HTTP_ERROR"
        return error_response(request, exc.status_code, code, str(exc.detail))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Log unhandled exceptions and return 500."""
        logger.error("Unhandled exception: %s\n%s", exc, traceback.format_exc())
        is_dev = os.getenv("ENV", "development").lower() in ("development", "dev", "")
        message = str(exc) if is_dev else "Internal server error"
        return error_response(request, 500, "INTERNAL_ERROR", message)

    # ------------------------------------------------------------------
    # Health / info
    # ------------------------------------------------------------------

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(
            status="healthy",
            timestamp=utcnow().isoformat(),
            uptime_seconds=round((utcnow() - metrics.start_time).total_seconds(), 2),
            total_products=len(service.store),
        )

    @app.get("/metrics")
    def get_metrics():
        summary = metrics.get_summary()
        summary["cache"] = service.cache.get_stats()
        return summary

    @app.get(API_PREFIX)
    def api_info():
        return {
            "name": app.title,
            "version": app.version,
            "endpoints": {
                "search": f"{API_PREFIX}/search/product",
                "suggestions": f"{API_PREFIX}/search/suggestions",
                "filters": f"{API_PREFIX}/search/filters",
                "product": f"{API_PREFIX}/product",
            },
            "status": "success",
        }

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    @app.get(f"{API_PREFIX}/search/product")
    def search_products(request: Request):
        params = dict(request.query_params)
        logger.info("Search query received: query=%r sortBy=%s", params.get("query"), params.get("sortBy"))
        return _success(service.search(params))

    @app.post(f"{API_PREFIX}/search/advanced")
    def advanced_search(request: Request, body: Optional[Dict[str, Any]] = Body(default=None)):
        start = time.perf_counter()
        params = {**dict(request.query_params), **(body or {})}
        results = service.advanced_search(params)
        log_performance(logger, "Advanced search completed", start,
                        filters_applied=results["analytics"]["filterCount"],
                        total=results["totalResults"])
        return _success(results)

    @app.get(f"{API_PREFIX}/search/suggestions")
    def search_suggestions(
        query: str = Query(..., min_length=1, max_length=100),
        limit: int = Query(10, ge=1, le=20),
    ):
        suggestions = service.get_suggestions(query, limit)
        return _success({"data": suggestions, "query": query, "count": len(suggestions)})

    @app.get(f"{API_PREFIX}/search/filters")
    def search_filters():
        return _success({"data": service.get_search_filters()})

    @app.get(f"{API_PREFIX}/search/similar/{{product_id}}")
    def similar_products(product_id: int, limit: int = Query(10, ge=1, le=20)):
        return _success(service.get_similar_products(product_id, limit))

    @app.get(f"{API_PREFIX}/search/analytics")
    def search_analytics():
        return _success({
            "data": {
                "search": service.get_stats(),
                "requests": metrics.get_summary(),
            },
            "timestamp": utcnow().isoformat(),
        })

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    @app.post(f"{API_PREFIX}/product", status_code=201)
    def create_product(request: ProductCreateRequest):
        product_id = service.store.add(request.model_dump(by_alias=True, exclude_none=True))
        return _success({"productId": product_id, "message": "Product created successfully"})

    @app.post(f"{API_PREFIX}/product/bulk", status_code=201)
    def bulk_create_products(request: BulkProductRequest):
        start = time.perf_counter()
        results = []
        for item in request.products:
            payload = item.model_dump(by_alias=True, exclude_none=True)
            try:
                product_id = service.store.add(payload)
                results.append({"productId": product_id, "status": "success", "title": item.title})
            except CatalogSearchError as e:
                results.append({"status": "error", "error": e.message, "title": item.title})
        successful = sum(1 for r in results if r["status"] == "success")
        log_performance(logger, "Bulk product creation completed", start,
                        total=len(results), successful=successful)
        return {
            "results": results,
            "summary": {"total": len(results), "successful": successful, "failed": len(results) - successful},
            "status": "completed",
        }

    @app.put(f"{API_PREFIX}/product/meta-data")
    def update_metadata(request: MetadataUpdateRequest):
        product = service.store.update_metadata(request.product_id, request.metadata)
        return _success({
            "productId": product.product_id,
            "metadata": product.metadata,
            "message": "Metadata updated successfully",
        })

    @app.get(f"{API_PREFIX}/product/categories")
    def get_categories():
        categories = service.get_categories()
        return _success({"data": categories, "count": len(categories)})

    @app.get(f"{API_PREFIX}/product/brands")
    def get_brands():
        brands = service.get_brands()
        return _success({"data": brands, "count": len(brands)})

    @app.get(f"{API_PREFIX}/product/category/{{category}}")
    def get_by_category(category: str, limit: int = Query(20, ge=1, le=100)):
        products = service.store.get_by_category(category, limit)
        data = [to_search_result(p, 0.0, service.config.max_image_urls) for p in products]
        return _success({"data": data, "category": category, "count": len(data)})

    @app.get(f"{API_PREFIX}/product/brand/{{brand}}")
    def get_by_brand(brand: str, limit: int = Query(20, ge=1, le=100)):
        products = service.store.get_by_brand(brand, limit)
        data = [to_search_result(p, 0.0, service.config.max_image_urls) for p in products]
        return _success({"data": data, "brand": brand, "count": len(data)})

    @app.get(f"{API_PREFIX}/product/{{product_id}}")
    def get_product(product_id: int):
        product = service.store.get_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", {"productId": product_id})
        return _success({"data": product.to_dict()})

    @app.put(f"{API_PREFIX}/product/{{product_id}}")
    def update_product(product_id: int, request: ProductUpdateRequest):
        changes = request.model_dump(by_alias=True, exclude_unset=True)
        if not changes:
            raise ValidationError("No fields to update")
        product = service.store.update(product_id, changes)
        return _success({"data": product.to_dict(), "message": "Product updated successfully"})

    @app.delete(f"{API_PREFIX}/product/{{product_id}}")
    def delete_product(product_id: int):
        service.store.delete(product_id)
        return _success({"productId": product_id, "message": "Product deleted successfully"})

    return app


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "3000"))
    logger.info("Catalog Search API starting on port %d (docs at /docs)", port)
    uvicorn.run(create_app(), host="0.0.0.0", port=port)
