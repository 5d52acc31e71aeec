"""
Cache Module

Exports:
- TextCache, CacheEntry (bounded in-memory cache with read-time TTL)
- CacheStats (hit/miss/eviction counters)
"""

from .base import CacheStats
from .memory_cache import CacheEntry, TextCache

__all__ = [
    'CacheStats',
    'CacheEntry',
    'TextCache',
]
