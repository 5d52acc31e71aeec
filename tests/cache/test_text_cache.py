#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Unit Tests for the Text Cache

Tests cover:
- Insertion-order eviction at capacity
- Read-time TTL expiry
- Statistics tracking
- Thread safety
"""

import threading

import pytest

from tactician.cache import CacheEntry, TextCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestEviction:
    """Capacity is enforced oldest-insertion first"""

    def test_101st_entry_evicts_oldest(self):
        cache = TextCache(max_entries=100)
        for i in range(101):
            cache.set(f"key-{i}", i)

        assert len(cache) == 100
        assert "key-0" not in cache
        assert cache.get("key-1") == 1
        assert cache.get("key-100") == 100

    def test_reads_do_not_refresh_position(self):
        """Eviction is by insertion order, not recency of use"""
        cache = TextCache(max_entries=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)

        assert "a" not in cache
        assert "b" in cache and "c" in cache

    def test_reset_counts_as_fresh_insertion(self):
        cache = TextCache(max_entries=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)
        cache.set("c", 3)

        assert "b" not in cache
        assert cache.get("a") == 10

    def test_eviction_counted(self):
        cache = TextCache(max_entries=1)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.stats().evictions == 1

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            TextCache(max_entries=0)


class TestExpiry:
    """Entries expire lazily, on read, against the caller's TTL"""

    def test_entry_older_than_ttl_is_removed(self):
        clock = FakeClock()
        cache = TextCache(clock=clock)
        cache.set("page", "content")

        clock.now += 61
        assert cache.get("page", ttl=60) is None
        assert "page" not in cache
        assert cache.stats().expirations == 1

    def test_entry_within_ttl_is_returned(self):
        clock = FakeClock()
        cache = TextCache(clock=clock)
        cache.set("page", "content")

        clock.now += 30
        assert cache.get("page", ttl=60) == "content"

    def test_default_ttl_applies(self):
        clock = FakeClock()
        cache = TextCache(default_ttl=10, clock=clock)
        cache.set("page", "content")

        clock.now += 11
        assert cache.get("page") is None

    def test_expired_entry_stays_until_read(self):
        clock = FakeClock()
        cache = TextCache(clock=clock)
        cache.set("page", "content")

        clock.now += 10_000_000
        assert len(cache) == 1


class TestOperations:

    def test_get_missing(self):
        cache = TextCache()
        assert cache.get("nope") is None
        assert cache.stats().misses == 1

    def test_delete(self):
        cache = TextCache()
        cache.set("a", 1)
        assert cache.delete("a") is True
        assert cache.delete("a") is False

    def test_clear(self):
        cache = TextCache()
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.clear() == 2
        assert len(cache) == 0

    def test_stats_hit_rate(self):
        cache = TextCache()
        cache.set("a", 1)
        cache.get("a")
        cache.get("missing")

        stats = cache.stats()
        assert stats.hits == 1
        assert stats.misses == 1
        assert stats.hit_rate == 0.5
        assert stats.to_dict()["size"] == 1

    def test_cache_entry_holds_timestamp(self):
        entry = CacheEntry(data="x", timestamp=5.0)
        assert entry.timestamp == 5.0


class TestThreadSafety:

    def test_concurrent_writers_respect_capacity(self):
        cache = TextCache(max_entries=50)

        def writer(prefix):
            for i in range(200):
                cache.set(f"{prefix}-{i}", i)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 50
