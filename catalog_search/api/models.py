"""
Pydantic models for catalog search API requests and responses.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any, List


class ProductCreateRequest(BaseModel):
    """Request model for creating a product."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=3, max_length=200, description="Product title")
    description: str = Field(default="", max_length=2000)
    category: Optional[str] = Field(default=None, max_length=100)
    subcategory: Optional[str] = Field(default=None, max_length=100)
    brand: Optional[str] = Field(default=None, max_length=100)
    model: Optional[str] = Field(default=None, max_length=100)
    price: float = Field(gt=0, description="Selling price")
    mrp: Optional[float] = Field(default=None, gt=0, description="Maximum retail price, not below price")
    currency: str = Field(default="INR", pattern="^(INR|USD)$")
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    rating_count: Optional[int] = Field(default=None, ge=0, alias="ratingCount")
    stock: int = Field(ge=0)
    image_urls: Optional[List[str]] = Field(default=None, alias="imageUrls")
    metadata: Optional[Dict[str, Any]] = None
    analytics: Optional[Dict[str, Any]] = None
    tags: Optional[List[str]] = None


class ProductUpdateRequest(BaseModel):
    """Partial product update; only the fields sent are applied."""
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    category: Optional[str] = Field(default=None, max_length=100)
    subcategory: Optional[str] = Field(default=None, max_length=100)
    brand: Optional[str] = Field(default=None, max_length=100)
    model: Optional[str] = Field(default=None, max_length=100)
    price: Optional[float] = Field(default=None, gt=0)
    mrp: Optional[float] = Field(default=None, gt=0)
    currency: Optional[str] = Field(default=None, pattern="^(INR|USD)$")
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    rating_count: Optional[int] = Field(default=None, ge=0, alias="ratingCount")
    stock: Optional[int] = Field(default=None, ge=0)
    image_urls: Optional[List[str]] = Field(default=None, alias="imageUrls")
    metadata: Optional[Dict[str, Any]] = None
    analytics: Optional[Dict[str, Any]] = None
    tags: Optional[List[str]] = None
    is_active: Optional[bool] = Field(default=None, alias="isActive")


class MetadataUpdateRequest(BaseModel):
    """Request model for merging metadata into a product."""
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(gt=0, alias="productId")
    metadata: Dict[str, Any]


class BulkProductRequest(BaseModel):
    """Request model for bulk product creation."""
    products: List[ProductCreateRequest] = Field(min_length=1, max_length=100)


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str
    timestamp: str
    uptime_seconds: float
    total_products: int
