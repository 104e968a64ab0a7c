"""
In-process cache for complete search responses.

Keys are ``SearchQuery.cache_key()`` strings (``search:{sha256}``). Entries
expire ``ttl_seconds`` after insertion. When full, the oldest-inserted entry
is evicted; reads do not refresh an entry's position.
"""

import threading
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, Optional, Tuple

from catalog_search.utils.logger import get_logger

logger = get_logger("cache.result_cache")


class ResultCache:
    """
    TTL + bounded FIFO cache with hit/miss/eviction counters.

    Args:
        ttl_seconds: Lifetime of an entry from insertion
        max_entries: Capacity; inserting beyond it evicts the oldest key
        clock: Monotonic seconds source (injectable for tests)
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max(1, int(max_entries))
        self.clock = clock

        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._order: Deque[str] = deque()

        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None on a miss. Expired entries are dropped."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            value, inserted_at = entry
            if self.clock() - inserted_at >= self.ttl_seconds:
                self._remove(key)
                self.misses += 1
                return None
            self.hits += 1
        logger.debug("Cache hit: %s", key[:24])
        return value

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            if key in self._entries:
                self._remove(key)
            while len(self._entries) >= self.max_entries and self._order:
                oldest = self._order.popleft()
                self._entries.pop(oldest, None)
                self.evictions += 1
            self._entries[key] = (value, self.clock())
            self._order.append(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._order.clear()
        logger.info("Result cache cleared")

    def _remove(self, key: str) -> None:
        self._entries.pop(key, None)
        try:
            self._order.remove(key)
        except ValueError:
            logger.debug("Key missing from eviction order: %s", key[:24])

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage, 2 decimals."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return round(self.hits / total * 100.0, 2)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "size": len(self._entries),
            "maxEntries": self.max_entries,
            "ttlSeconds": self.ttl_seconds,
            "hitRate": self.hit_rate,
        }
