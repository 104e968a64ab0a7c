"""
Relevance scoring and result ordering.

score = 0.40 * text + 0.25 * quality + 0.20 * popularity + 0.15 * business,
then multiplied by every boost factor and clamped to [0, 1].

Only the text component depends on the query. Popularity is normalized
against the catalog-wide maxima held by the store.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from catalog_search.data.catalog_store import CatalogStore
from catalog_search.data.product import Product, utcnow
from catalog_search.parsing.query_normalizer import fuzzy_similarity
from catalog_search.parsing.search_query import SortBy
from catalog_search.recommendation.boosts import BoostFactor, default_boost_factors
from catalog_search.utils.logger import get_logger

logger = get_logger("recommendation.ranking")

WEIGHTS = {
    "text": 0.40,
    "quality": 0.25,
    "popularity": 0.20,
    "business": 0.15,
}

NEUTRAL_TEXT_SCORE = 0.5
FUZZY_WEIGHT = 0.3


@dataclass
class ScoredProduct:
    product: Product
    score: float


@dataclass
class ScoreBreakdown:
    text: float
    quality: float
    popularity: float
    business: float
    base: float
    boost: float
    score: float

    def to_dict(self) -> Dict[str, float]:
        return {k: round(v, 4) for k, v in self.__dict__.items()}


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def text_relevance(product: Product, terms: Sequence[str]) -> float:
    """
    Average per-term match credit over title, description and searchable text.

    Each term earns at most 1.0. No terms gives the neutral 0.5.
    """
    if not terms:
        return NEUTRAL_TEXT_SCORE

    title = product.title.lower()
    description = (product.description or "").lower()
    searchable = product.searchable_text

    total = 0.0
    for term in terms:
        credit = 0.0
        if title == term:
            credit += 1.0
        elif title.startswith(term) or title.endswith(term):
            credit += 0.8
        elif term in title:
            credit += 0.6

        if term in description:
            credit += 0.4
        if term in searchable:
            credit += 0.2

        credit += fuzzy_similarity(term, product.title) * FUZZY_WEIGHT
        total += min(1.0, credit)

    return total / len(terms)


def quality_score(product: Product) -> float:
    analytics = product.analytics.resolve()
    return 0.6 * (product.rating / 5.0) + 0.4 * (1.0 - min(1.0, analytics.return_rate))


def popularity_score(product: Product, maxima: Tuple[int, int]) -> float:
    max_units, max_ratings = maxima
    units = product.analytics.resolve().units_sold
    units_part = math.log(units + 1) / math.log(max_units + 1) if max_units > 0 else 0.0
    ratings_part = math.log(product.rating_count + 1) / math.log(max_ratings + 1) if max_ratings > 0 else 0.0
    return 0.7 * min(1.0, units_part) + 0.3 * min(1.0, ratings_part)


def stock_score(stock: int) -> float:
    if stock > 100:
        return 1.0
    if stock > 10:
        return 0.8
    if stock > 0:
        return 0.5
    return 0.0


def business_score(product: Product) -> float:
    analytics = product.analytics.resolve()
    price_competitiveness = min(1.0, product.calculate_discount() / 50.0)
    margin = min(1.0, max(0.0, analytics.profit_margin) / 0.5)
    return 0.5 * stock_score(product.stock) + 0.3 * price_competitiveness + 0.2 * margin


def _sort_key(sort_by: SortBy) -> Callable[[ScoredProduct], object]:
    if sort_by == SortBy.PRICE_LOW:
        return lambda item: item.product.price
    if sort_by == SortBy.PRICE_HIGH:
        return lambda item: -item.product.price
    if sort_by == SortBy.RATING:
        return lambda item: (-item.product.rating, -item.product.rating_count)
    if sort_by == SortBy.POPULARITY:
        return lambda item: -item.product.analytics.resolve().units_sold
    if sort_by == SortBy.NEWEST:
        return lambda item: -item.product.created_at.timestamp()
    return lambda item: -item.score


def sort_results(items: List[ScoredProduct], sort_by: SortBy) -> List[ScoredProduct]:
    """Stable sort; equal keys keep their incoming order."""
    return sorted(items, key=_sort_key(sort_by))


class RankingEngine:
    """
    Scores products for a query.

    Args:
        store: catalog used for the popularity maxima
        boost_factors: multiplicative factors; defaults to the standard set
        clock: returns "now" for time-dependent boosts
    """

    def __init__(
        self,
        store: CatalogStore,
        boost_factors: Optional[List[BoostFactor]] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.boost_factors = boost_factors if boost_factors is not None else default_boost_factors()
        self.clock = clock

    def explain(
        self,
        product: Product,
        terms: Sequence[str],
        maxima: Optional[Tuple[int, int]] = None,
        now: Optional[datetime] = None,
    ) -> ScoreBreakdown:
        maxima = maxima or self.store.popularity_maxima()
        now = now or self.clock()

        text = text_relevance(product, terms)
        quality = quality_score(product)
        popularity = popularity_score(product, maxima)
        business = business_score(product)
        base = (
            WEIGHTS["text"] * text
            + WEIGHTS["quality"] * quality
            + WEIGHTS["popularity"] * popularity
            + WEIGHTS["business"] * business
        )

        boost = 1.0
        for factor in self.boost_factors:
            boost *= factor(product, now)

        return ScoreBreakdown(
            text=text,
            quality=quality,
            popularity=popularity,
            business=business,
            base=base,
            boost=boost,
            score=_clamp(base * boost),
        )

    def score(self, product: Product, terms: Sequence[str], **kwargs) -> float:
        return self.explain(product, terms, **kwargs).score

    def rank(self, products: Sequence[Product], terms: Sequence[str], sort_by: SortBy = SortBy.RELEVANCE) -> List[ScoredProduct]:
        """Score every product once and sort."""
        maxima = self.store.popularity_maxima()
        now = self.clock()
        scored = [ScoredProduct(p, self.score(p, terms, maxima=maxima, now=now)) for p in products]
        logger.debug("Ranked %d products (sort=%s)", len(scored), sort_by.value)
        return sort_results(scored, sort_by)
