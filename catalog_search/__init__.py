"""
Catalog Search - in-memory product catalog search service

A product search system with:
- Inverted token index plus category/brand/price/rating/stock indexes
- Regional-term and misspelling query normalization
- Weighted relevance ranking with boost factors
- TTL result cache
"""

from catalog_search.core.config import CatalogSearchConfig, get_config, set_config
from catalog_search.core.bootstrap import build_search_service
from catalog_search.core.search_service import SearchService

__all__ = [
    'CatalogSearchConfig',
    'get_config',
    'set_config',
    'build_search_service',
    'SearchService',
]

__version__ = '1.0.0'
