"""
Product record and its derived search fields.

A ``Product`` is treated as a value: the catalog store never edits one in place,
it builds a replacement with ``Product.evolve`` so searchable text, stock status
and the price / rating buckets are recomputed from the new field values.
"""
from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from catalog_search.core.errors import ValidationError


class StockStatus(str, Enum):
    OUT_OF_STOCK = "OUT_OF_STOCK"
    LOW_STOCK = "LOW_STOCK"
    MEDIUM_STOCK = "MEDIUM_STOCK"
    HIGH_STOCK = "HIGH_STOCK"


LOW_STOCK_MAX = 10
MEDIUM_STOCK_MAX = 50

# (exclusive upper bound, label); the last bucket is open-ended
PRICE_BUCKETS: List[Tuple[float, str]] = [
    (1000, "0-1000"),
    (5000, "1000-5000"),
    (10000, "5000-10000"),
    (25000, "10000-25000"),
    (50000, "25000-50000"),
    (100000, "50000-100000"),
]
PRICE_BUCKET_OPEN = "100000+"

# (inclusive lower bound, label), checked top-down
RATING_BUCKETS: List[Tuple[float, str]] = [
    (4.5, "4.5+"),
    (4.0, "4.0-4.5"),
    (3.5, "3.5-4.0"),
    (3.0, "3.0-3.5"),
    (2.0, "2.0-3.0"),
]
RATING_BUCKET_LOWEST = "below-2.0"

PRICE_BUCKET_LABELS = [label for _, label in PRICE_BUCKETS] + [PRICE_BUCKET_OPEN]
RATING_BUCKET_LABELS = [label for _, label in RATING_BUCKETS] + [RATING_BUCKET_LOWEST]

DEFAULT_CURRENCY = "INR"

# camelCase keys accepted from JSON payloads
_FIELD_ALIASES = {
    "productId": "product_id",
    "ratingCount": "rating_count",
    "isActive": "is_active",
    "imageUrls": "image_urls",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

_ANALYTICS_ALIASES = {
    "unitsSold": "units_sold",
    "returnRate": "return_rate",
    "profitMargin": "profit_margin",
    "isTrending": "is_trending",
    "isOnSale": "is_on_sale",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def stock_status_for(stock: int) -> StockStatus:
    """Classify a stock level: 0 / 1-10 / 11-50 / above 50."""
    if stock <= 0:
        return StockStatus.OUT_OF_STOCK
    if stock <= LOW_STOCK_MAX:
        return StockStatus.LOW_STOCK
    if stock <= MEDIUM_STOCK_MAX:
        return StockStatus.MEDIUM_STOCK
    return StockStatus.HIGH_STOCK


def price_bucket_for(price: float) -> str:
    for upper, label in PRICE_BUCKETS:
        if price < upper:
            return label
    return PRICE_BUCKET_OPEN


def rating_bucket_for(rating: float) -> str:
    for lower, label in RATING_BUCKETS:
        if rating >= lower:
            return label
    return RATING_BUCKET_LOWEST


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise ValidationError(f"Invalid timestamp: {value!r}") from e
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        # epoch milliseconds, as written by JavaScript clients
        parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    else:
        raise ValidationError(f"Invalid timestamp: {value!r}")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _as_number(name: str, value: Any, integer: bool = False) -> Any:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number")
    try:
        number = int(value) if integer else float(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise ValidationError(f"{name} must be a number", {"field": name, "value": value}) from e
    if not integer and not math.isfinite(number):
        raise ValidationError(f"{name} must be a finite number", {"field": name, "value": value})
    return number


@dataclass
class ProductAnalytics:
    """
    Optional sales signals. Missing values stay ``None`` here; scoring code
    calls ``resolve()`` once to get a fully-populated view.
    """
    units_sold: Optional[int] = None
    return_rate: Optional[float] = None
    profit_margin: Optional[float] = None
    is_trending: Optional[bool] = None
    is_on_sale: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ProductAnalytics":
        if data is None:
            return cls()
        if isinstance(data, ProductAnalytics):
            return data
        known = {f.name for f in dataclasses.fields(cls)}
        values = {}
        for key, value in data.items():
            name = _ANALYTICS_ALIASES.get(key, key)
            if name in known:
                values[name] = value
        return cls(**values)

    def merged(self, partial: Dict[str, Any]) -> "ProductAnalytics":
        update = ProductAnalytics.from_dict(partial)
        changes = {f.name: getattr(update, f.name) for f in dataclasses.fields(update)
                   if getattr(update, f.name) is not None}
        return dataclasses.replace(self, **changes)

    def resolve(self) -> "ResolvedAnalytics":
        return ResolvedAnalytics(
            units_sold=self.units_sold if self.units_sold is not None else ANALYTICS_DEFAULTS.units_sold,
            return_rate=self.return_rate if self.return_rate is not None else ANALYTICS_DEFAULTS.return_rate,
            profit_margin=self.profit_margin if self.profit_margin is not None else ANALYTICS_DEFAULTS.profit_margin,
            is_trending=bool(self.is_trending),
            is_on_sale=bool(self.is_on_sale),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unitsSold": self.units_sold,
            "returnRate": self.return_rate,
            "profitMargin": self.profit_margin,
            "isTrending": self.is_trending,
            "isOnSale": self.is_on_sale,
        }


@dataclass(frozen=True)
class ResolvedAnalytics:
    units_sold: int
    return_rate: float
    profit_margin: float
    is_trending: bool
    is_on_sale: bool


ANALYTICS_DEFAULTS = ResolvedAnalytics(
    units_sold=0,
    return_rate=0.1,
    profit_margin=0.2,
    is_trending=False,
    is_on_sale=False,
)


@dataclass
class Product:
    """A catalog product. Construction validates and computes derived fields."""

    title: str
    price: float
    product_id: Optional[int] = None
    description: str = ""
    category: Optional[str] = None
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    mrp: Optional[float] = None
    currency: str = DEFAULT_CURRENCY
    rating: float = 0.0
    rating_count: int = 0
    stock: int = 0
    is_active: bool = True
    image_urls: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    analytics: ProductAnalytics = field(default_factory=ProductAnalytics)
    tags: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    # Derived; never accepted from callers
    searchable_text: str = field(init=False, default="")
    stock_status: StockStatus = field(init=False, default=StockStatus.OUT_OF_STOCK)
    price_range: str = field(init=False, default="")
    rating_bucket: str = field(init=False, default="")

    def __post_init__(self) -> None:
        self.validate()
        self.searchable_text = self.generate_searchable_text()
        self.stock_status = stock_status_for(self.stock)
        self.price_range = price_bucket_for(self.price)
        self.rating_bucket = rating_bucket_for(self.rating)

    def validate(self) -> None:
        if not isinstance(self.title, str) or not self.title.strip():
            raise ValidationError("Product title is required", {"field": "title"})
        self.price = _as_number("price", self.price)
        if self.price <= 0:
            raise ValidationError("Product price must be greater than 0", {"field": "price", "value": self.price})
        if self.mrp is not None:
            self.mrp = _as_number("mrp", self.mrp)
            if self.mrp < self.price:
                raise ValidationError("MRP cannot be lower than price", {"field": "mrp", "value": self.mrp})
        self.rating = _as_number("rating", self.rating or 0)
        if not 0 <= self.rating <= 5:
            raise ValidationError("Rating must be between 0 and 5", {"field": "rating", "value": self.rating})
        self.rating_count = _as_number("rating_count", self.rating_count or 0, integer=True)
        if self.rating_count < 0:
            raise ValidationError("Rating count cannot be negative", {"field": "rating_count"})
        self.stock = _as_number("stock", self.stock or 0, integer=True)
        if self.stock < 0:
            raise ValidationError("Stock cannot be negative", {"field": "stock", "value": self.stock})
        if self.product_id is not None:
            self.product_id = _as_number("product_id", self.product_id, integer=True)
        if not isinstance(self.analytics, ProductAnalytics):
            self.analytics = ProductAnalytics.from_dict(self.analytics)
        self.metadata = dict(self.metadata or {})
        self.tags = list(self.tags or [])
        self.image_urls = list(self.image_urls or [])
        self.created_at = _parse_datetime(self.created_at) or utcnow()
        self.updated_at = _parse_datetime(self.updated_at) or self.created_at

    def generate_searchable_text(self) -> str:
        parts = [
            self.title,
            self.description,
            self.brand,
            self.model,
            self.category,
            self.subcategory,
            *self.tags,
            *(str(v) for v in self.metadata.values() if v is not None and v != ""),
        ]
        return " ".join(str(p) for p in parts if p).lower()

    def calculate_discount(self) -> int:
        """Whole-number discount percentage of price against MRP."""
        if not self.mrp or self.mrp <= self.price:
            return 0
        # half rounds up, so 12.5% shows as 13
        return math.floor((self.mrp - self.price) / self.mrp * 100 + 0.5)

    @property
    def category_key(self) -> Optional[str]:
        return self.category.lower() if self.category else None

    @property
    def brand_key(self) -> Optional[str]:
        return self.brand.lower() if self.brand else None

    def evolve(self, **changes: Any) -> "Product":
        """Return a validated copy with ``changes`` applied and derived fields recomputed."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        """Build a product from a JSON-style payload (camelCase or snake_case keys)."""
        if not isinstance(data, dict):
            raise ValidationError("Product payload must be an object")
        init_fields = {f.name for f in dataclasses.fields(cls) if f.init}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = _FIELD_ALIASES.get(key, key)
            if name in init_fields:
                values[name] = value
        if "title" not in values:
            raise ValidationError("Product title is required", {"field": "title"})
        if "price" not in values or values["price"] is None:
            raise ValidationError("Product price must be greater than 0", {"field": "price"})
        if values.get("currency") is None:
            values.pop("currency", None)
        if "is_active" in values and values["is_active"] is None:
            values.pop("is_active")
        values["analytics"] = ProductAnalytics.from_dict(values.get("analytics"))
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "subcategory": self.subcategory,
            "brand": self.brand,
            "model": self.model,
            "price": self.price,
            "mrp": self.mrp,
            "currency": self.currency,
            "rating": self.rating,
            "ratingCount": self.rating_count,
            "stock": self.stock,
            "stockStatus": self.stock_status.value,
            "isActive": self.is_active,
            "imageUrls": list(self.image_urls),
            "metadata": dict(self.metadata),
            "analytics": self.analytics.to_dict(),
            "searchableText": self.searchable_text,
            "tags": list(self.tags),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
