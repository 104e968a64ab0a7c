"""
Validated, immutable search request.

``SearchQuery.from_params`` accepts the loosely-typed parameter mapping handed
over by the transport layer (query strings arrive as text) and either returns a
normalized query or raises ``ValidationError``.
"""
from __future__ import annotations

import hashlib
import json
import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from catalog_search.core.errors import ValidationError
from catalog_search.data.product import PRICE_BUCKET_LABELS, RATING_BUCKET_LABELS, Product
from catalog_search.parsing.query_normalizer import extract_tokens, normalize_query

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
MAX_QUERY_LENGTH = 200

_TRUE_STRINGS = {"true", "1", "yes"}
_FALSE_STRINGS = {"false", "0", "no", ""}


class SortBy(str, Enum):
    RELEVANCE = "relevance"
    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    RATING = "rating"
    POPULARITY = "popularity"
    NEWEST = "newest"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _parse_int(name: str, value: Any, default: int) -> int:
    if not _present(value):
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer", {"field": name, "value": value})
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be an integer", {"field": name, "value": value}) from e
    if not number.is_integer():
        raise ValidationError(f"{name} must be an integer", {"field": name, "value": value})
    return int(number)


def _parse_float(name: str, value: Any) -> Optional[float]:
    if not _present(value):
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number", {"field": name, "value": value})
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a number", {"field": name, "value": value}) from e
    if not math.isfinite(number):
        raise ValidationError(f"{name} must be a finite number", {"field": name, "value": value})
    return number


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValidationError(f"{name} must be a boolean", {"field": name, "value": value})


def _parse_text(name: str, value: Any, max_length: int = 100) -> Optional[str]:
    if not _present(value):
        return None
    text = str(value).strip()
    if len(text) > max_length:
        raise ValidationError(f"{name} must be at most {max_length} characters", {"field": name})
    return text or None


@dataclass(frozen=True)
class SearchQuery:
    """A normalized search request. Build with ``from_params``."""

    query: str = ""
    terms: Tuple[str, ...] = field(default_factory=tuple)
    limit: int = DEFAULT_LIMIT
    offset: int = 0
    sort_by: SortBy = SortBy.RELEVANCE
    category: Optional[str] = None
    brand: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    in_stock: bool = False
    price_range: Optional[str] = None
    rating_range: Optional[str] = None

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any],
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
        max_query_length: int = MAX_QUERY_LENGTH,
    ) -> "SearchQuery":
        """
        Validate raw parameters (camelCase or snake_case keys).

        Raises:
            ValidationError: out-of-range limit/offset/price/rating, unknown
                sortBy or bucket label, min price above max price
        """
        params = params or {}

        def get(camel: str, snake: Optional[str] = None) -> Any:
            if camel in params:
                return params[camel]
            return params.get(snake) if snake else None

        raw_query = get("query", "q")
        raw_query = "" if raw_query is None else str(raw_query)
        if len(raw_query) > max_query_length:
            raise ValidationError(f"query must be at most {max_query_length} characters", {"field": "query"})

        limit = _parse_int("limit", get("limit"), default_limit)
        if not 1 <= limit <= max_limit:
            raise ValidationError(f"limit must be between 1 and {max_limit}", {"field": "limit", "value": limit})

        offset = _parse_int("offset", get("offset"), 0)
        if offset < 0:
            raise ValidationError("offset must be 0 or greater", {"field": "offset", "value": offset})

        raw_sort = get("sortBy", "sort_by")
        sort_value = raw_sort.value if isinstance(raw_sort, SortBy) else (raw_sort or SortBy.RELEVANCE.value)
        try:
            sort_by = SortBy(sort_value)
        except ValueError as e:
            raise ValidationError(
                f"Invalid sortBy value. Allowed values: {', '.join(SortBy.values())}",
                {"field": "sortBy", "value": raw_sort},
            ) from e

        min_price = _parse_float("minPrice", get("minPrice", "min_price"))
        max_price = _parse_float("maxPrice", get("maxPrice", "max_price"))
        for name, value in (("minPrice", min_price), ("maxPrice", max_price)):
            if value is not None and value <= 0:
                raise ValidationError(f"{name} must be greater than 0", {"field": name, "value": value})
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError("Minimum price cannot be greater than maximum price",
                                  {"field": "minPrice", "value": min_price})

        min_rating = _parse_float("minRating", get("minRating", "min_rating"))
        if min_rating is not None and not 0 <= min_rating <= 5:
            raise ValidationError("Rating must be between 0 and 5", {"field": "minRating", "value": min_rating})

        price_range = _parse_text("priceRange", get("priceRange", "price_range"))
        if price_range is not None and price_range not in PRICE_BUCKET_LABELS:
            raise ValidationError("Unknown priceRange", {"field": "priceRange", "allowed": PRICE_BUCKET_LABELS})

        rating_range = _parse_text("ratingRange", get("ratingRange", "rating_range"))
        if rating_range is not None and rating_range not in RATING_BUCKET_LABELS:
            raise ValidationError("Unknown ratingRange", {"field": "ratingRange", "allowed": RATING_BUCKET_LABELS})

        normalized, _ = normalize_query(raw_query)
        return cls(
            query=normalized,
            terms=tuple(extract_tokens(normalized)),
            limit=limit,
            offset=offset,
            sort_by=sort_by,
            category=_parse_text("category", get("category")),
            brand=_parse_text("brand", get("brand")),
            min_price=min_price,
            max_price=max_price,
            min_rating=min_rating,
            in_stock=_parse_bool("inStock", get("inStock", "in_stock")),
            price_range=price_range,
            rating_range=rating_range,
        )

    def matches_filters(self, product: Product) -> bool:
        """Exact-match predicate over the non-text filters. Inactive products never match."""
        if not product.is_active:
            return False
        if self.category and product.category_key != self.category.lower():
            return False
        if self.brand and product.brand_key != self.brand.lower():
            return False
        if self.min_price is not None and product.price < self.min_price:
            return False
        if self.max_price is not None and product.price > self.max_price:
            return False
        if self.min_rating is not None and product.rating < self.min_rating:
            return False
        if self.in_stock and product.stock <= 0:
            return False
        if self.price_range and product.price_range != self.price_range:
            return False
        if self.rating_range and product.rating_bucket != self.rating_range:
            return False
        return True

    def filters(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "brand": self.brand,
            "minPrice": self.min_price,
            "maxPrice": self.max_price,
            "minRating": self.min_rating,
            "inStock": self.in_stock,
            "priceRange": self.price_range,
            "ratingRange": self.rating_range,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "limit": self.limit,
            "offset": self.offset,
            "sortBy": self.sort_by.value,
            **self.filters(),
        }

    def cache_key(self) -> str:
        """
        SHA-256 over every field that shapes the response.

        ``terms`` is derived from ``query`` so it is left out.
        """
        payload = asdict(self)
        payload.pop("terms")
        payload["sort_by"] = self.sort_by.value
        encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        return "search:" + hashlib.sha256(encoded.encode("utf-8")).hexdigest()
