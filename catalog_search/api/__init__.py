"""
API module for catalog search.

Provides REST API endpoints for product management and search.
"""
from catalog_search.api.models import (
    ProductCreateRequest,
    ProductUpdateRequest,
    MetadataUpdateRequest,
    BulkProductRequest,
    HealthResponse,
)

__all__ = [
    "ProductCreateRequest",
    "ProductUpdateRequest",
    "MetadataUpdateRequest",
    "BulkProductRequest",
    "HealthResponse",
]
