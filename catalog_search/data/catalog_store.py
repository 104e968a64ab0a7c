"""
In-memory product catalog with secondary indexes.

The store owns the primary ``product_id -> Product`` map and six inverted
indexes (token, category, brand, price bucket, rating bucket, stock status).
Every mutation builds the replacement product first, then swaps it into the
primary map and the indexes under one lock, so a reader never sees a product
that is only partly indexed.
"""
from __future__ import annotations

import sys
import threading
import time
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from catalog_search.core.errors import NotFoundError, ValidationError
from catalog_search.data.product import Product, StockStatus, utcnow
from catalog_search.parsing.query_normalizer import extract_tokens
from catalog_search.utils.logger import get_logger, log_performance

logger = get_logger("data.catalog_store")

IN_STOCK_STATUSES = (StockStatus.LOW_STOCK, StockStatus.MEDIUM_STOCK, StockStatus.HIGH_STOCK)

# Used when every product reports zero, so log-normalisation never divides by log(1)
FALLBACK_MAX_UNITS_SOLD = 10000
FALLBACK_MAX_RATING_COUNT = 1000

# Payload keys that callers may not overwrite through update()
_IMMUTABLE_KEYS = {"productId", "product_id", "createdAt", "created_at"}
_DERIVED_KEYS = {"searchableText", "searchable_text", "stockStatus", "stock_status",
                 "price_range", "rating_bucket", "updatedAt", "updated_at"}

Index = Dict[str, Set[int]]


def _index_add(index: Index, key: Optional[str], product_id: int) -> None:
    if key is None:
        return
    index.setdefault(key, set()).add(product_id)


def _index_remove(index: Index, key: Optional[str], product_id: int) -> None:
    if key is None:
        return
    ids = index.get(key)
    if ids is None:
        return
    ids.discard(product_id)
    if not ids:
        del index[key]


class CatalogStore:
    """
    Authoritative product map plus secondary indexes.

    One instance per process, created by the composition root and passed to
    whoever needs it.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._products: Dict[int, Product] = {}
        self._position: Dict[int, int] = {}
        self._next_position = 0
        self._next_id = 1
        self._version = 0
        self._maxima_cache: Optional[Tuple[int, Tuple[int, int]]] = None
        self._last_updated = utcnow()

        self.token_index: Index = {}
        self.category_index: Index = {}
        self.brand_index: Index = {}
        self.price_range_index: Index = {}
        self.rating_bucket_index: Index = {}
        self.stock_status_index: Index = {}

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, product_data: Any) -> int:
        """
        Validate, assign an id if missing, store and index a product.

        Raises:
            ValidationError: invalid fields or an id that is already taken
        """
        product = product_data if isinstance(product_data, Product) else Product.from_dict(product_data)
        with self._lock:
            if product.product_id is None:
                product = product.evolve(product_id=self._next_id)
            elif product.product_id in self._products:
                raise ValidationError(f"Product with ID {product.product_id} already exists",
                                      {"field": "productId", "value": product.product_id})
            self._next_id = max(self._next_id, product.product_id + 1)

            self._products[product.product_id] = product
            self._position[product.product_id] = self._next_position
            self._next_position += 1
            self._index_product(product)
            self._touch()

        logger.info("Product added: id=%s title=%r total=%d",
                    product.product_id, product.title, len(self._products))
        return product.product_id

    def update(self, product_id: int, partial: Dict[str, Any]) -> Product:
        """
        Merge ``partial`` into an existing product and re-index it.

        ``metadata`` in ``partial`` replaces the whole map; ``analytics`` is merged.

        Raises:
            NotFoundError: unknown id
            ValidationError: the merged product is invalid (store left unchanged)
        """
        with self._lock:
            existing = self._require(product_id)
            changes = self._changes_from_payload(existing, partial)
            updated = existing.evolve(updated_at=utcnow(), **changes)

            self._deindex_product(existing)
            self._products[product_id] = updated
            self._index_product(updated)
            self._touch()

        logger.info("Product updated: id=%s changes=%s", product_id, sorted(changes))
        return updated

    def update_metadata(self, product_id: int, metadata: Dict[str, Any]) -> Product:
        """Merge new metadata keys; only the token index depends on metadata."""
        if not isinstance(metadata, dict):
            raise ValidationError("Metadata must be an object", {"field": "metadata"})
        with self._lock:
            existing = self._require(product_id)
            updated = existing.evolve(metadata={**existing.metadata, **metadata}, updated_at=utcnow())

            self._remove_tokens(existing)
            self._products[product_id] = updated
            self._add_tokens(updated)
            self._touch()

        logger.info("Product metadata updated: id=%s keys=%s", product_id, sorted(metadata))
        return updated

    def update_analytics(self, product_id: int, analytics: Dict[str, Any]) -> Product:
        """Merge analytics signals. Analytics feed scoring only, so no index changes."""
        with self._lock:
            existing = self._require(product_id)
            updated = existing.evolve(analytics=existing.analytics.merged(analytics), updated_at=utcnow())
            self._products[product_id] = updated
            self._touch()
        return updated

    def update_stock(self, product_id: int, quantity: int) -> Product:
        """Set the stock level, clamped at zero."""
        return self.update(product_id, {"stock": max(0, int(quantity))})

    def delete(self, product_id: int) -> Product:
        """Soft delete: mark inactive and keep the product indexed."""
        product = self.update(product_id, {"is_active": False})
        logger.info("Product deactivated: id=%s", product_id)
        return product

    def bulk_load(self, products: Iterable[Any]) -> Dict[str, int]:
        """
        Add products one at a time, counting failures instead of aborting.

        Returns:
            ``{"successCount": n, "errorCount": m}``
        """
        start = time.perf_counter()
        success_count = 0
        error_count = 0
        for product_data in products:
            try:
                self.add(product_data)
                success_count += 1
            except ValidationError as e:
                error_count += 1
                title = product_data.get("title") if isinstance(product_data, dict) else None
                logger.warning("Skipping product during bulk load: %s (title=%r)", e.message, title or "Unknown product")

        log_performance(logger, "Bulk load completed", start,
                        success_count=success_count, error_count=error_count,
                        total_products=len(self._products))
        return {"successCount": success_count, "errorCount": error_count}

    def clear(self) -> None:
        """Drop every product and index entry and restart id assignment."""
        with self._lock:
            self._products.clear()
            self._position.clear()
            self._next_position = 0
            self._next_id = 1
            for index in self._indexes().values():
                index.clear()
            self._touch()
        logger.info("Catalog cleared")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, product_id: int) -> Optional[Product]:
        return self._products.get(product_id)

    def get_by_ids(self, product_ids: Iterable[int]) -> List[Product]:
        products = []
        for product_id in product_ids:
            product = self._products.get(product_id)
            if product is not None:
                products.append(product)
        return products

    def all_products(self, active_only: bool = False) -> List[Product]:
        """Products in insertion order."""
        with self._lock:
            products = list(self._products.values())
        if active_only:
            return [p for p in products if p.is_active]
        return products

    def search(
        self,
        tokens: Iterable[str],
        category: Optional[str] = None,
        brand: Optional[str] = None,
        price_range: Optional[str] = None,
        rating_range: Optional[str] = None,
        in_stock: bool = False,
        stock_status: Optional[str] = None,
    ) -> List[Product]:
        """
        Candidate lookup.

        Union of the token postings (a product matching any token is a
        candidate), intersected with each index filter that is supplied.
        Results come back in catalog insertion order.
        """
        start = time.perf_counter()
        tokens = list(tokens)
        with self._lock:
            candidate_ids: Set[int] = set()
            for token in tokens:
                candidate_ids |= self.token_index.get(token, set())

            if category:
                candidate_ids &= self.category_index.get(category.lower(), set())
            if brand:
                candidate_ids &= self.brand_index.get(brand.lower(), set())
            if price_range:
                candidate_ids &= self.price_range_index.get(price_range, set())
            if rating_range:
                candidate_ids &= self.rating_bucket_index.get(rating_range, set())
            if in_stock:
                in_stock_ids: Set[int] = set()
                for status in IN_STOCK_STATUSES:
                    in_stock_ids |= self.stock_status_index.get(status.value, set())
                candidate_ids &= in_stock_ids
            if stock_status:
                candidate_ids &= self.stock_status_index.get(stock_status, set())

            ordered = sorted(candidate_ids, key=self._position.__getitem__)
            products = [self._products[pid] for pid in ordered]

        duration_ms = (time.perf_counter() - start) * 1000.0
        logger.debug("Candidate lookup: tokens=%d candidates=%d (%.2fms)", len(tokens), len(products), duration_ms)
        return products

    def get_by_category(self, category: str, limit: int = 100) -> List[Product]:
        return self._lookup(self.category_index, category.lower(), limit)

    def get_by_brand(self, brand: str, limit: int = 100) -> List[Product]:
        return self._lookup(self.brand_index, brand.lower(), limit)

    def get_categories(self) -> List[str]:
        return sorted(self.category_index)

    def get_brands(self) -> List[str]:
        return sorted(self.brand_index)

    def vocabulary(self) -> List[str]:
        """Every token currently in the token index."""
        with self._lock:
            return list(self.token_index)

    def popularity_maxima(self) -> Tuple[int, int]:
        """
        (max units sold, max rating count) across the whole catalog.

        Memoized until the next mutation.
        """
        with self._lock:
            if self._maxima_cache is not None and self._maxima_cache[0] == self._version:
                return self._maxima_cache[1]
            max_units = 0
            max_ratings = 0
            for product in self._products.values():
                max_units = max(max_units, product.analytics.resolve().units_sold)
                max_ratings = max(max_ratings, product.rating_count)
            maxima = (max_units or FALLBACK_MAX_UNITS_SOLD, max_ratings or FALLBACK_MAX_RATING_COUNT)
            self._maxima_cache = (self._version, maxima)
            return maxima

    @property
    def version(self) -> int:
        """Monotonic counter bumped by every mutation."""
        return self._version

    def __len__(self) -> int:
        return len(self._products)

    def __contains__(self, product_id: int) -> bool:
        return product_id in self._products

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "totalProducts": len(self._products),
                "activeProducts": sum(1 for p in self._products.values() if p.is_active),
                "totalIndexEntries": sum(len(index) for index in self._indexes().values()),
                "indexSizes": {name: len(index) for name, index in self._indexes().items()},
                "lastUpdated": self._last_updated.isoformat(),
                "memoryUsage": self._estimate_memory(),
            }

    def verify_integrity(self) -> None:
        """
        Assert that the primary map and every index agree.

        A failure here is a programming error, not a caller error.
        """
        with self._lock:
            expected = {name: {} for name in self._indexes()}
            for product in self._products.values():
                for name, keys in self._index_keys(product).items():
                    for key in keys:
                        expected[name].setdefault(key, set()).add(product.product_id)
            for name, index in self._indexes().items():
                assert all(index.values()), f"{name} holds an empty key"
                assert index == expected[name], f"{name} is out of sync with the product map"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, product_id: int) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError("Product", {"productId": product_id})
        return product

    def _lookup(self, index: Index, key: str, limit: int) -> List[Product]:
        with self._lock:
            ids = sorted(index.get(key, ()), key=self._position.__getitem__)[:max(0, limit)]
            return [self._products[pid] for pid in ids]

    def _changes_from_payload(self, existing: Product, partial: Dict[str, Any]) -> Dict[str, Any]:
        """Map an update payload onto Product field names; evolve() validates the values."""
        if not isinstance(partial, dict):
            raise ValidationError("Update payload must be an object")
        changes: Dict[str, Any] = {}
        for key, value in partial.items():
            if key in _IMMUTABLE_KEYS or key in _DERIVED_KEYS:
                continue
            if key == "analytics":
                changes["analytics"] = existing.analytics.merged(value or {})
                continue
            name = _UPDATE_ALIASES.get(key, key)
            if name in _UPDATABLE_FIELDS:
                changes[name] = value
        return changes

    def _index_keys(self, product: Product) -> Dict[str, Set[str]]:
        return {
            "token": set(extract_tokens(product.searchable_text)),
            "category": {product.category_key} if product.category_key else set(),
            "brand": {product.brand_key} if product.brand_key else set(),
            "price_range": {product.price_range},
            "rating_bucket": {product.rating_bucket},
            "stock_status": {product.stock_status.value},
        }

    def _indexes(self) -> Dict[str, Index]:
        return {
            "token": self.token_index,
            "category": self.category_index,
            "brand": self.brand_index,
            "price_range": self.price_range_index,
            "rating_bucket": self.rating_bucket_index,
            "stock_status": self.stock_status_index,
        }

    def _index_product(self, product: Product) -> None:
        self._add_tokens(product)
        _index_add(self.category_index, product.category_key, product.product_id)
        _index_add(self.brand_index, product.brand_key, product.product_id)
        _index_add(self.price_range_index, product.price_range, product.product_id)
        _index_add(self.rating_bucket_index, product.rating_bucket, product.product_id)
        _index_add(self.stock_status_index, product.stock_status.value, product.product_id)

    def _deindex_product(self, product: Product) -> None:
        self._remove_tokens(product)
        _index_remove(self.category_index, product.category_key, product.product_id)
        _index_remove(self.brand_index, product.brand_key, product.product_id)
        _index_remove(self.price_range_index, product.price_range, product.product_id)
        _index_remove(self.rating_bucket_index, product.rating_bucket, product.product_id)
        _index_remove(self.stock_status_index, product.stock_status.value, product.product_id)

    def _add_tokens(self, product: Product) -> None:
        for token in set(extract_tokens(product.searchable_text)):
            _index_add(self.token_index, token, product.product_id)

    def _remove_tokens(self, product: Product) -> None:
        for token in set(extract_tokens(product.searchable_text)):
            _index_remove(self.token_index, token, product.product_id)

    def _touch(self) -> None:
        self._version += 1
        self._last_updated = utcnow()

    def _estimate_memory(self) -> Dict[str, float]:
        """Rough shallow footprint of the primary map and indexes, in KB."""
        products_bytes = sys.getsizeof(self._products) + sum(
            sys.getsizeof(p) + sys.getsizeof(p.searchable_text) + sys.getsizeof(p.title)
            for p in self._products.values()
        )
        index_bytes = 0
        for index in self._indexes().values():
            index_bytes += sys.getsizeof(index) + sum(sys.getsizeof(ids) for ids in index.values())
        return {
            "productsKb": round(products_bytes / 1024, 1),
            "indexesKb": round(index_bytes / 1024, 1),
        }


_UPDATE_ALIASES = {
    "ratingCount": "rating_count",
    "isActive": "is_active",
    "imageUrls": "image_urls",
}

_UPDATABLE_FIELDS = {
    "title", "description", "category", "subcategory", "brand", "model", "price", "mrp",
    "currency", "rating", "rating_count", "stock", "is_active", "image_urls", "metadata", "tags",
}
