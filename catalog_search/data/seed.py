"""
Initial catalog data.

``load_products_file`` reads a JSON array of product payloads. When no file is
available, ``generate_sample_products`` builds a deterministic sample catalog
(phones, laptops, accessories, audio) from a seeded ``random.Random``.
"""

import json
import random
from pathlib import Path
from typing import Any, Dict, List, Optional

from catalog_search.core.errors import ValidationError
from catalog_search.utils.logger import get_logger

logger = get_logger("data.seed")

PHONE_MODELS = {
    "Apple": (70000, ["iPhone 13", "iPhone 14", "iPhone 15", "iPhone 16"]),
    "Samsung": (25000, ["Galaxy S23", "Galaxy S24", "Galaxy A54", "Galaxy M34"]),
    "OnePlus": (30000, ["OnePlus 11", "OnePlus 12", "OnePlus Nord"]),
    "Xiaomi": (15000, ["Mi 13", "Redmi Note 12", "Poco F5"]),
    "Realme": (12000, ["Realme GT 6", "Realme 11 Pro"]),
    "Oppo": (18000, ["Oppo Reno 10", "Oppo F23"]),
    "Vivo": (16000, ["Vivo V29", "Vivo Y56"]),
}

LAPTOP_MODELS = {
    "Dell": (45000, ["Inspiron 15", "XPS 13", "Latitude 14", "Vostro 15"]),
    "HP": (42000, ["Pavilion 15", "Envy 13", "Elite Book", "Omen 15"]),
    "Lenovo": (40000, ["ThinkPad E14", "IdeaPad 3", "Legion 5", "Yoga 7"]),
    "Asus": (38000, ["VivoBook 15", "ZenBook 14", "ROG Strix", "TUF Gaming"]),
    "Acer": (35000, ["Aspire 5", "Swift 3", "Nitro 5", "Predator Helios"]),
    "Apple": (95000, ["MacBook Air M2", "MacBook Pro 14", "MacBook Pro 16"]),
}

ACCESSORIES = [
    ("Phone Case", ["Apple", "Samsung", "OnePlus"], (500, 2000)),
    ("Screen Guard", ["Universal", "Apple", "Samsung"], (200, 1000)),
    ("Charger", ["Apple", "Samsung", "OnePlus", "Universal"], (800, 3000)),
    ("Power Bank", ["Mi", "Realme", "Ambrane", "Syska"], (1000, 5000)),
    ("Cable", ["Apple", "Samsung", "Universal"], (300, 1500)),
]

AUDIO_BRANDS = ["Sony", "JBL", "Boat", "Sennheiser", "Audio-Technica", "Realme", "Mi"]
AUDIO_TYPES = {
    "Wireless Earbuds": 2000,
    "Bluetooth Headphones": 3000,
    "Wired Headphones": 800,
    "Bluetooth Speaker": 2500,
}

COLORS = ["Black", "White", "Blue", "Red", "Green", "Gold", "Silver"]
STORAGE_OPTIONS = ["64GB", "128GB", "256GB", "512GB"]
RAM_OPTIONS = ["4GB", "6GB", "8GB", "12GB", "16GB"]


def load_products_file(path: Path) -> Optional[List[Dict[str, Any]]]:
    """
    Read a JSON array of product payloads.

    Returns:
        The payloads, or None when the file does not exist or holds an empty array

    Raises:
        ValidationError: the file is not a JSON array
    """
    path = Path(path)
    if not path.exists():
        logger.info("No product file at %s", path)
        return None
    with open(path, "r", encoding="utf-8") as f:
        try:
            products = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Product file is not valid JSON: {path}", {"error": str(e)}) from e
    if not isinstance(products, list):
        raise ValidationError(f"Product file must hold a JSON array: {path}")
    logger.info("Read %d products from %s", len(products), path)
    return products or None


def _analytics(rng: random.Random, max_units: int, return_rate: float, margin: tuple, trending: float, sale: float) -> Dict[str, Any]:
    return {
        "unitsSold": rng.randint(100, max_units),
        "returnRate": round(rng.random() * return_rate, 3),
        "profitMargin": round(rng.uniform(*margin), 3),
        "isTrending": rng.random() > trending,
        "isOnSale": rng.random() > sale,
    }


def _phones(rng: random.Random) -> List[Dict[str, Any]]:
    products = []
    for brand, (base_price, models) in PHONE_MODELS.items():
        for model in models:
            for _ in range(3):
                color = rng.choice(COLORS)
                storage = rng.choice(STORAGE_OPTIONS)
                ram = rng.choice(RAM_OPTIONS)
                price = base_price + rng.randrange(10000)
                products.append({
                    "title": f"{brand} {model} {storage} {color}",
                    "description": f"{brand} {model} smartphone with {storage} storage, {ram} RAM in {color} color.",
                    "category": "Mobile Phones",
                    "subcategory": "Smartphones",
                    "brand": brand,
                    "model": model,
                    "price": price,
                    "mrp": price + rng.randrange(5000) + 1000,
                    "rating": round(rng.uniform(3.0, 5.0), 1),
                    "ratingCount": rng.randint(100, 5100),
                    "stock": rng.randint(10, 510),
                    "imageUrls": [f"https://example.com/images/{brand.lower()}-{model.lower().replace(' ', '-')}-{color.lower()}.jpg"],
                    "metadata": {"storage": storage, "ram": ram, "color": color},
                    "analytics": _analytics(rng, 10000, 0.15, (0.1, 0.4), 0.8, 0.9),
                    "tags": ["mobile", "phone", "smartphone", brand.lower(), model.lower(), color.lower()],
                })
    return products


def _laptops(rng: random.Random) -> List[Dict[str, Any]]:
    products = []
    for brand, (base_price, models) in LAPTOP_MODELS.items():
        for model in models:
            for _ in range(2):
                ram = rng.choice(["8GB", "16GB", "32GB"])
                price = base_price + rng.randrange(20000)
                products.append({
                    "title": f"{brand} {model} Laptop",
                    "description": f"{brand} {model} laptop with {ram} RAM for work and entertainment.",
                    "category": "Laptops",
                    "subcategory": "Laptops",
                    "brand": brand,
                    "model": model,
                    "price": price,
                    "mrp": price + rng.randrange(10000) + 2000,
                    "rating": round(rng.uniform(3.5, 5.0), 1),
                    "ratingCount": rng.randint(50, 3050),
                    "stock": rng.randint(5, 205),
                    "imageUrls": [f"https://example.com/images/{brand.lower()}-{model.lower().replace(' ', '-')}.jpg"],
                    "metadata": {"ram": ram},
                    "analytics": _analytics(rng, 5000, 0.12, (0.08, 0.33), 0.85, 0.92),
                    "tags": ["laptop", "computer", brand.lower()],
                })
    return products


def _accessories(rng: random.Random) -> List[Dict[str, Any]]:
    products = []
    for kind, brands, (low, high) in ACCESSORIES:
        for brand in brands:
            for _ in range(2):
                price = rng.randint(low, high)
                products.append({
                    "title": f"{brand} {kind}",
                    "description": f"{kind} from {brand}, compatible with popular smartphones.",
                    "category": "Accessories",
                    "subcategory": kind,
                    "brand": brand,
                    "price": price,
                    "mrp": price + rng.randrange(500) + 100,
                    "rating": round(rng.uniform(3.0, 5.0), 1),
                    "ratingCount": rng.randint(20, 2020),
                    "stock": rng.randint(50, 1050),
                    "analytics": _analytics(rng, 15000, 0.08, (0.15, 0.55), 0.8, 0.85),
                    "tags": ["accessory", kind.lower(), brand.lower(), "mobile"],
                })
    return products


def _audio(rng: random.Random) -> List[Dict[str, Any]]:
    products = []
    for brand in AUDIO_BRANDS:
        for kind, base_price in AUDIO_TYPES.items():
            for _ in range(3):
                price = base_price + rng.randrange(base_price // 2)
                products.append({
                    "title": f"{brand} {kind}",
                    "description": f"Premium {kind.lower()} from {brand} with excellent sound quality.",
                    "category": "Audio",
                    "subcategory": kind,
                    "brand": brand,
                    "model": kind,
                    "price": price,
                    "mrp": price + rng.randrange(2000) + 500,
                    "rating": round(rng.uniform(3.5, 5.0), 1),
                    "ratingCount": rng.randint(100, 4100),
                    "stock": rng.randint(20, 320),
                    "metadata": {"connectivity": "Wired" if kind.startswith("Wired") else "Bluetooth"},
                    "analytics": _analytics(rng, 8000, 0.1, (0.12, 0.47), 0.75, 0.88),
                    "tags": ["audio", kind.lower(), brand.lower(), "music"],
                })
    return products


def generate_sample_products(seed: int = 42) -> List[Dict[str, Any]]:
    """Deterministic sample catalog; the same seed always yields the same payloads."""
    rng = random.Random(seed)
    products = _phones(rng) + _laptops(rng) + _accessories(rng) + _audio(rng)
    logger.info("Generated %d sample products (seed=%d)", len(products), seed)
    return products
