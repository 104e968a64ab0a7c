"""
Relevance ranking for catalog search.

- ranking: weighted text/quality/popularity/business score and sort orders
- boosts: multiplicative boost factors, including the optional festive-season boost
"""
from catalog_search.recommendation.ranking import RankingEngine, ScoredProduct, sort_results
from catalog_search.recommendation.boosts import default_boost_factors, FestiveSeasonBoost

__all__ = [
    "RankingEngine",
    "ScoredProduct",
    "sort_results",
    "default_boost_factors",
    "FestiveSeasonBoost",
]
