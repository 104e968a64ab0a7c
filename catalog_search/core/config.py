"""
Configuration management for the catalog search service.

Loads settings from a YAML config file and provides typed access.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import yaml

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


def _project_root() -> Path:
    """Return project root (parent of the catalog_search package)."""
    return Path(__file__).resolve().parent.parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"

DEFAULT_POPULAR_BRANDS = ["apple", "samsung", "oneplus", "xiaomi", "dell", "hp"]


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes")


@dataclass
class CatalogSearchConfig:
    """Configuration for the catalog search service."""

    # Search request limits
    default_limit: int = 20
    max_limit: int = 100
    max_query_length: int = 200

    # Result cache
    cache_ttl_seconds: float = 300.0
    cache_max_entries: int = 1000

    # Ranking
    recency_window_days: int = 30
    enable_festive_boost: bool = False
    popular_brands: List[str] = field(default_factory=lambda: list(DEFAULT_POPULAR_BRANDS))
    sweet_spot_min: float = 5000.0
    sweet_spot_max: float = 30000.0

    # Data loading
    products_file: str = "data/products.json"
    seed_on_empty: bool = True
    seed: int = 42

    # Response shaping
    max_image_urls: int = 3
    max_suggestions: int = 20

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "CatalogSearchConfig":
        """Load configuration from YAML file, then apply environment overrides."""
        env_path = os.getenv("CATALOG_SEARCH_CONFIG")
        path = Path(config_path or env_path or DEFAULT_CONFIG_PATH)
        data = {}
        if path.exists():
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}

        search_config = data.get('search', {})
        cache_config = data.get('cache', {})
        ranking_config = data.get('ranking', {})
        data_config = data.get('data', {})
        api_config = data.get('api', {})

        return cls(
            default_limit=search_config.get('default_limit', 20),
            max_limit=search_config.get('max_limit', 100),
            max_query_length=search_config.get('max_query_length', 200),
            cache_ttl_seconds=cache_config.get('ttl_seconds', 300.0),
            cache_max_entries=cache_config.get('max_entries', 1000),
            recency_window_days=ranking_config.get('recency_window_days', 30),
            enable_festive_boost=ranking_config.get('enable_festive_boost', False),
            popular_brands=[b.lower() for b in ranking_config.get('popular_brands', DEFAULT_POPULAR_BRANDS)],
            sweet_spot_min=ranking_config.get('sweet_spot_min', 5000.0),
            sweet_spot_max=ranking_config.get('sweet_spot_max', 30000.0),
            products_file=os.getenv("CATALOG_DATA_FILE", data_config.get('products_file', "data/products.json")),
            seed_on_empty=_env_flag("CATALOG_SEED_ON_EMPTY", data_config.get('seed_on_empty', True)),
            seed=data_config.get('seed', 42),
            max_image_urls=api_config.get('max_image_urls', 3),
            max_suggestions=api_config.get('max_suggestions', 20),
        )

    def resolve_path(self, relative: str) -> Path:
        """Resolve a data path relative to the project root."""
        path = Path(relative)
        if path.is_absolute():
            return path
        return _project_root() / path


# Global config instance
_config: Optional[CatalogSearchConfig] = None


def get_config() -> CatalogSearchConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = CatalogSearchConfig.from_yaml()
    return _config


def set_config(config: CatalogSearchConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
