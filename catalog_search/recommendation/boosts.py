"""
Multiplicative boost factors applied after the weighted relevance sum.

Each factor is a callable ``(product, now) -> multiplier``; ``1.0`` means no
boost. Factors are independent of one another, so their order does not matter.
The ranking engine takes the list as a constructor argument, which is how the
optional festive-season boost is switched on.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, List, Optional, Sequence

from catalog_search.data.product import LOW_STOCK_MAX, Product

BoostFactor = Callable[[Product, datetime], float]

TRENDING_BOOST = 1.1
ON_SALE_BOOST = 1.15
LOW_STOCK_BOOST = 1.05
HIGH_MARGIN_THRESHOLD = 0.3
HIGH_MARGIN_BOOST = 1.1
POPULAR_BRAND_BOOST = 1.05
PRICE_BAND_BOOST = 1.1
MAX_RECENCY_BOOST = 2.0


@dataclass
class RecencyBoost:
    """Up to 2x for a brand-new product, decaying linearly to 1x at the end of the window."""
    window_days: int = 30

    def __call__(self, product: Product, now: datetime) -> float:
        window = timedelta(days=self.window_days)
        age = max(now - product.created_at, timedelta(0))
        if age >= window:
            return 1.0
        freshness = 1.0 - age / window
        return 1.0 + (MAX_RECENCY_BOOST - 1.0) * freshness


def trending_boost(product: Product, now: datetime) -> float:
    return TRENDING_BOOST if product.analytics.resolve().is_trending else 1.0


def on_sale_boost(product: Product, now: datetime) -> float:
    return ON_SALE_BOOST if product.analytics.resolve().is_on_sale else 1.0


def low_stock_boost(product: Product, now: datetime) -> float:
    """Urgency for stock in (0, 10]."""
    return LOW_STOCK_BOOST if 0 < product.stock <= LOW_STOCK_MAX else 1.0


def high_margin_boost(product: Product, now: datetime) -> float:
    return HIGH_MARGIN_BOOST if product.analytics.resolve().profit_margin > HIGH_MARGIN_THRESHOLD else 1.0


@dataclass
class PopularBrandBoost:
    brands: Sequence[str] = ("apple", "samsung", "oneplus", "xiaomi", "dell", "hp")

    def __post_init__(self) -> None:
        self._brands = {b.lower() for b in self.brands}

    def __call__(self, product: Product, now: datetime) -> float:
        return POPULAR_BRAND_BOOST if product.brand_key in self._brands else 1.0


@dataclass
class PriceBandBoost:
    """Sweet-spot price band, bounds inclusive."""
    low: float = 5000.0
    high: float = 30000.0

    def __call__(self, product: Product, now: datetime) -> float:
        return PRICE_BAND_BOOST if self.low <= product.price <= self.high else 1.0


# ---------------------------------------------------------------------------
# Festive season (optional)
# ---------------------------------------------------------------------------

FESTIVE_CATEGORIES = [
    "diwali", "dussehra", "holi", "christmas", "eid", "rakhi",
    "karva-chauth", "ganesh-chaturthi", "navratri", "valentine",
]

FESTIVE_KEYWORDS = [
    "festive", "celebration", "gift", "traditional", "ethnic",
    "decoration", "pooja", "wedding", "party", "special occasion",
]


@dataclass(frozen=True)
class FestiveSeason:
    name: str
    start: tuple  # (month, day)
    end: tuple
    peak: tuple
    categories: Sequence[str] = ()
    keywords: Sequence[str] = ()

    def window(self, year: int) -> tuple:
        return (date(year, *self.start), date(year, *self.end), date(year, *self.peak))


DEFAULT_SEASONS = [
    FestiveSeason("Diwali", (10, 15), (11, 15), (11, 1),
                  ("electronics", "fashion", "home-decor", "jewelry", "gifts"),
                  ("diwali", "deepavali", "lights", "rangoli", "sweets", "gifts")),
    FestiveSeason("Dussehra", (9, 20), (10, 20), (10, 5),
                  ("traditional-wear", "jewelry", "home-decor", "electronics"),
                  ("dussehra", "navratri", "garba", "traditional")),
    FestiveSeason("Christmas", (12, 1), (12, 31), (12, 25),
                  ("gifts", "electronics", "fashion", "toys"),
                  ("christmas", "xmas", "gifts", "celebration")),
    FestiveSeason("Valentine", (2, 1), (2, 20), (2, 14),
                  ("gifts", "jewelry", "fashion", "flowers"),
                  ("valentine", "love", "romantic", "couple", "gifts")),
]


def current_season(now: datetime, seasons: Iterable[FestiveSeason] = DEFAULT_SEASONS) -> Optional[FestiveSeason]:
    """First season whose window contains ``now`` (inclusive)."""
    today = now.date()
    for season in seasons:
        start, end, _ = season.window(today.year)
        if start <= today <= end:
            return season
    return None


def is_festive_product(product: Product) -> bool:
    category = (product.category or "").lower()
    if any(name in category for name in FESTIVE_CATEGORIES):
        return True
    tags = {t.lower() for t in product.tags}
    if tags & set(FESTIVE_CATEGORIES) or tags & set(FESTIVE_KEYWORDS):
        return True
    text = f"{product.title} {product.description or ''}".lower()
    return any(keyword in text for keyword in FESTIVE_KEYWORDS)


@dataclass
class FestiveSeasonBoost:
    """
    Boost festive products while a season is running, more strongly near its peak.

    Peak distance of 3/7/14 days gives 1.4/1.3/1.2, otherwise 1.1; products in
    one of the season's categories get a further 1.1x.
    """
    seasons: List[FestiveSeason] = field(default_factory=lambda: list(DEFAULT_SEASONS))

    def __call__(self, product: Product, now: datetime) -> float:
        season = current_season(now, self.seasons)
        if season is None or not is_festive_product(product):
            return 1.0
        _, _, peak = season.window(now.year)
        days_to_peak = abs((peak - now.date()).days)
        if days_to_peak <= 3:
            boost = 1.4
        elif days_to_peak <= 7:
            boost = 1.3
        elif days_to_peak <= 14:
            boost = 1.2
        else:
            boost = 1.1
        if product.category_key in season.categories:
            boost *= 1.1
        return boost


def default_boost_factors(
    recency_window_days: int = 30,
    popular_brands: Optional[Sequence[str]] = None,
    sweet_spot: tuple = (5000.0, 30000.0),
    festive: bool = False,
) -> List[BoostFactor]:
    factors: List[BoostFactor] = [
        RecencyBoost(recency_window_days),
        trending_boost,
        on_sale_boost,
        low_stock_boost,
        high_margin_boost,
        PopularBrandBoost(popular_brands) if popular_brands is not None else PopularBrandBoost(),
        PriceBandBoost(*sweet_spot),
    ]
    if festive:
        factors.append(FestiveSeasonBoost())
    return factors
