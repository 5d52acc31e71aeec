"""
Text Cache

Bounded, time-boxed in-memory store used to memoize expensive fetches
(scraped strategy pages).
"""

import time
import threading
from typing import Any, Callable, Optional
from collections import OrderedDict
from dataclasses import dataclass
import logging

from config.constants import CACHE_MAX_ENTRIES, CACHE_TTL_SECONDS

from .base import CacheStats

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Single cache entry"""
    data: Any
    timestamp: float


class TextCache:
    """
    Insertion-ordered cache with read-time expiry.

    - Holds at most max_entries; the oldest insertion is evicted first.
      Re-setting a key counts as a new insertion.
    - Expiry is decided by the reader: get(key, ttl) drops entries older
      than ttl seconds and reports a miss.
    - Mutations are guarded by an RLock, so sharing with worker threads is safe.
    """

    def __init__(
        self,
        max_entries: int = CACHE_MAX_ENTRIES,
        default_ttl: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.default_ttl = default_ttl
        self._clock = clock
        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()
        self._stats = CacheStats(max_size=max_entries)

    def get(self, key: str, ttl: Optional[float] = None) -> Optional[Any]:
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._stats.misses += 1
                return None

            if self._clock() - entry.timestamp > ttl:
                del self._cache[key]
                self._stats.expirations += 1
                self._stats.misses += 1
                logger.debug(f"Cache entry expired: {key}")
                return None

            self._stats.hits += 1
            return entry.data

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._cache.pop(key, None)
            self._cache[key] = CacheEntry(data=value, timestamp=self._clock())

            while len(self._cache) > self.max_entries:
                evicted, _ = self._cache.popitem(last=False)
                self._stats.evictions += 1
                logger.debug(f"Cache full, evicted oldest entry: {evicted}")

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._cache.pop(key, None) is not None

    def clear(self) -> int:
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            return count

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def stats(self) -> CacheStats:
        with self._lock:
            self._stats.size = len(self._cache)
            return self._stats
