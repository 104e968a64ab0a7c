"""
Search orchestration: the single entry point for search callers.

Flow for ``search(params)``:
1. Validate and normalize params into a ``SearchQuery``
2. Return the cached response if there is one
3. Candidate lookup (token index, or every active product without terms)
4. Exact-match filter pass
5. Score, sort, paginate and project
6. Cache and return
"""
from __future__ import annotations

import time
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional

from catalog_search.cache.result_cache import ResultCache
from catalog_search.core.config import CatalogSearchConfig
from catalog_search.data.catalog_store import CatalogStore
from catalog_search.data.product import PRICE_BUCKETS, PRICE_BUCKET_OPEN, RATING_BUCKETS, RATING_BUCKET_LOWEST, Product
from catalog_search.parsing.query_normalizer import MIN_TOKEN_LENGTH, extract_tokens
from catalog_search.parsing.search_query import SearchQuery, SortBy
from catalog_search.recommendation.ranking import RankingEngine, ScoredProduct
from catalog_search.utils.logger import get_logger, log_performance

logger = get_logger("core.search_service")

SIMILAR_PRICE_BAND = 0.3


def to_search_result(product: Product, score: float, max_images: int = 3) -> Dict[str, Any]:
    """Public projection of a product inside a search response."""
    return {
        "productId": product.product_id,
        "title": product.title,
        "description": product.description,
        "price": product.price,
        "mrp": product.mrp,
        "currency": product.currency,
        "discount": product.calculate_discount(),
        "rating": product.rating,
        "ratingCount": product.rating_count,
        "stock": product.stock,
        "stockStatus": product.stock_status.value,
        "brand": product.brand,
        "category": product.category,
        "imageUrls": list(product.image_urls[:max_images]),
        "metadata": dict(product.metadata),
        "relevanceScore": round(score, 2),
        "tags": list(product.tags),
    }


def _price_range_facets() -> List[Dict[str, Any]]:
    facets = []
    lower = 0
    for upper, label in PRICE_BUCKETS:
        facets.append({"label": f"₹{lower:,} - ₹{upper:,}", "value": label, "min": lower, "max": upper})
        lower = upper
    facets.append({"label": f"₹{lower:,}+", "value": PRICE_BUCKET_OPEN, "min": lower, "max": None})
    return facets


def _rating_range_facets() -> List[Dict[str, Any]]:
    facets = []
    upper = 5.0
    for lower, label in RATING_BUCKETS:
        facets.append({"label": f"{label} Stars", "value": label, "min": lower, "max": upper})
        upper = lower
    facets.append({"label": "Below 2.0 Stars", "value": RATING_BUCKET_LOWEST, "min": 0.0, "max": upper})
    return facets


class SearchService:
    """
    Orchestrates the store, ranking engine and result cache.

    All three are injected; the composition root in ``core.bootstrap`` wires
    the defaults.
    """

    def __init__(
        self,
        store: CatalogStore,
        ranking: Optional[RankingEngine] = None,
        cache: Optional[ResultCache] = None,
        config: Optional[CatalogSearchConfig] = None,
    ):
        self.config = config or CatalogSearchConfig()
        self.store = store
        self.ranking = ranking or RankingEngine(store)
        self.cache = cache or ResultCache(self.config.cache_ttl_seconds, self.config.cache_max_entries)
        self._cache_version = store.version

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def parse_query(self, params: Mapping[str, Any]) -> SearchQuery:
        return SearchQuery.from_params(
            params,
            default_limit=self.config.default_limit,
            max_limit=self.config.max_limit,
            max_query_length=self.config.max_query_length,
        )

    def search(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Run a search.

        Raises:
            ValidationError: params fail validation
        """
        start = time.perf_counter()
        query = self.parse_query(params)
        version = self._invalidate_if_catalog_changed()

        key = query.cache_key()
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Search served from cache: query=%r", query.query)
            return cached

        response = self._execute(query, start)
        # a mutation during execution would leave a stale response behind
        if self.store.version == version:
            self.cache.put(key, response)

        log_performance(
            logger, "Search completed", start,
            query=query.query, results=len(response["data"]),
            total=response["totalResults"], cache_hit_rate=self.cache.hit_rate,
        )
        return response

    def advanced_search(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """``search`` plus an ``analytics`` block describing the request."""
        results = dict(self.search(params))
        filter_count = sum(1 for value in params.values() if value is not None and value != "")
        results["analytics"] = {
            "searchType": "advanced",
            "filterCount": filter_count,
            "executionTime": results["executionTime"],
        }
        return results

    def _execute(self, query: SearchQuery, start: float) -> Dict[str, Any]:
        if query.terms:
            candidates = self.store.search(
                query.terms,
                category=query.category,
                brand=query.brand,
                price_range=query.price_range,
                rating_range=query.rating_range,
                in_stock=query.in_stock,
            )
        else:
            candidates = self.store.all_products(active_only=True)

        matched = [p for p in candidates if query.matches_filters(p)]
        ranked: List[ScoredProduct] = self.ranking.rank(matched, query.terms, query.sort_by)

        total = len(ranked)
        page = ranked[query.offset:query.offset + query.limit]
        max_images = self.config.max_image_urls

        execution_ms = round((time.perf_counter() - start) * 1000)
        return {
            "data": [to_search_result(item.product, item.score, max_images) for item in page],
            "totalResults": total,
            "query": query.query,
            "filters": query.filters(),
            "pagination": {
                "limit": query.limit,
                "offset": query.offset,
                "hasNext": query.offset + query.limit < total,
                "hasPrevious": query.offset > 0,
            },
            "sortBy": query.sort_by.value,
            "executionTime": f"{execution_ms}ms",
        }

    def _invalidate_if_catalog_changed(self) -> int:
        """Drop cached responses once the catalog has been mutated; returns the version seen."""
        version = self.store.version
        if version != self._cache_version:
            self.cache.clear()
            self._cache_version = version
        return version

    # ------------------------------------------------------------------
    # Suggestions, similar products, facets
    # ------------------------------------------------------------------

    def get_suggestions(self, partial_query: str, limit: int = 10) -> List[str]:
        """
        Completions for the last word of ``partial_query``.

        Index tokens starting with that prefix are counted across title, brand,
        category, tags and searchable text of every product; most frequent
        first, ties alphabetical.
        """
        terms = (partial_query or "").lower().split()
        if not terms:
            return []
        prefix = terms[-1]
        if len(prefix) < MIN_TOKEN_LENGTH:
            return []
        limit = max(1, min(int(limit), self.config.max_suggestions))

        candidates = {token for token in self.store.vocabulary() if token.startswith(prefix)}
        if not candidates:
            return []

        counts: Counter = Counter()
        for product in self.store.all_products():
            fields = [product.title, product.brand, product.category, *product.tags, product.searchable_text]
            for text in fields:
                for token in extract_tokens(text or ""):
                    if token in candidates:
                        counts[token] += 1

        ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [word for word, _ in ordered[:limit]]

    def get_similar_products(self, product_id: int, limit: int = 10) -> Dict[str, Any]:
        """
        Products in the same category and within ±30% of the base price.

        An unknown product id yields an empty result.
        """
        limit = max(1, min(int(limit), 20))
        product = self.store.get_by_id(product_id)
        if product is None:
            logger.info("Similar products requested for unknown id %s", product_id)
            return {"data": [], "baseProduct": None, "count": 0}

        params = {
            "query": " ".join(p for p in (product.brand, product.category) if p),
            "category": product.category,
            "minPrice": product.price * (1 - SIMILAR_PRICE_BAND),
            "maxPrice": product.price * (1 + SIMILAR_PRICE_BAND),
            "limit": min(limit + 1, self.config.max_limit),
            "sortBy": SortBy.RELEVANCE.value,
        }
        results = self.search(params)
        similar = [item for item in results["data"] if item["productId"] != product_id][:limit]
        return {
            "data": similar,
            "baseProduct": {
                "productId": product.product_id,
                "title": product.title,
                "category": product.category,
                "brand": product.brand,
                "price": product.price,
            },
            "count": len(similar),
        }

    def get_search_filters(self) -> Dict[str, Any]:
        return {
            "categories": [{"label": c.capitalize(), "value": c} for c in self.store.get_categories()],
            "brands": [{"label": b.capitalize(), "value": b} for b in self.store.get_brands()],
            "priceRanges": _price_range_facets(),
            "ratingRanges": _rating_range_facets(),
        }

    def get_categories(self) -> List[str]:
        return self.store.get_categories()

    def get_brands(self) -> List[str]:
        return self.store.get_brands()

    def get_stats(self) -> Dict[str, Any]:
        store_stats = self.store.get_stats()
        return {
            "totalProducts": store_stats["totalProducts"],
            "totalIndexEntries": store_stats["totalIndexEntries"],
            "cacheHitRate": self.cache.hit_rate,
            "cacheStats": self.cache.get_stats(),
            "cacheSize": len(self.cache),
            "repository": store_stats,
        }
