"""
Composition root: builds the store, ranking engine, cache and search service.

Nothing here is global; callers own the returned service and pass it along.
"""
import time
from typing import Any, Iterable, Optional

from catalog_search.cache.result_cache import ResultCache
from catalog_search.core.config import CatalogSearchConfig, get_config
from catalog_search.core.search_service import SearchService
from catalog_search.data.catalog_store import CatalogStore
from catalog_search.data.seed import generate_sample_products, load_products_file
from catalog_search.recommendation.boosts import default_boost_factors
from catalog_search.recommendation.ranking import RankingEngine
from catalog_search.utils.logger import get_logger, log_performance

logger = get_logger("core.bootstrap")


def build_search_service(
    config: Optional[CatalogSearchConfig] = None,
    products: Optional[Iterable[Any]] = None,
    load_initial_data: bool = True,
) -> SearchService:
    """
    Wire a ready-to-use search service.

    Args:
        config: Settings; defaults to ``get_config()``
        products: Payloads to bulk-load instead of the configured data file
        load_initial_data: When False the catalog starts empty
    """
    config = config or get_config()
    store = CatalogStore()
    ranking = RankingEngine(
        store,
        boost_factors=default_boost_factors(
            recency_window_days=config.recency_window_days,
            popular_brands=config.popular_brands,
            sweet_spot=(config.sweet_spot_min, config.sweet_spot_max),
            festive=config.enable_festive_boost,
        ),
    )
    cache = ResultCache(config.cache_ttl_seconds, config.cache_max_entries)
    service = SearchService(store, ranking=ranking, cache=cache, config=config)

    if products is not None:
        store.bulk_load(products)
    elif load_initial_data:
        load_initial_catalog(store, config)
    return service


def load_initial_catalog(store: CatalogStore, config: CatalogSearchConfig) -> dict:
    """Load the configured product file, or the sample catalog when it is absent."""
    start = time.perf_counter()
    payloads = load_products_file(config.resolve_path(config.products_file))
    if payloads is None:
        if not config.seed_on_empty:
            logger.info("No initial products loaded")
            return {"successCount": 0, "errorCount": 0}
        logger.info("No existing data found, generating sample products")
        payloads = generate_sample_products(config.seed)

    result = store.bulk_load(payloads)
    log_performance(logger, "Initial data loading completed", start,
                    product_count=len(store), **result)
    return result
