"""Tests for caching utilities."""

import time

import pytest

from graphrag_core.utils.cache import CacheStats, EmbeddingCache, LRUCache


class TestLRUCache:
    """Tests for LRUCache."""

    def test_basic_get_set(self):
        """Test basic get and set operations."""
        cache: LRUCache[str] = LRUCache(max_size=10)
        cache.set("key1", "value1")

        assert cache.get("key1") == "value1"
        assert cache.get("nonexistent") is None

    def test_lru_eviction(self):
        """Test LRU eviction when cache is full."""
        cache: LRUCache[int] = LRUCache(max_size=3)

        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)

        # Access "a" to make it recently used (moves to end)
        assert cache.get("a") == 1

        cache.set("d", 4)

        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("c") == 3
        assert cache.get("d") == 4
        assert cache.get_stats().evictions == 1

    def test_ttl_expiry(self):
        """Test TTL-based expiry."""
        cache: LRUCache[str] = LRUCache(max_size=10, ttl_seconds=0.1)
        cache.set("key", "value")

        assert cache.get("key") == "value"

        time.sleep(0.15)

        assert cache.get("key") is None

    def test_invalidate_and_clear(self):
        cache: LRUCache[int] = LRUCache(max_size=10)
        cache.set("a", 1)
        cache.set("b", 2)

        assert cache.invalidate("a") is True
        assert cache.invalidate("a") is False
        cache.clear()
        assert cache.get("b") is None
        assert cache.get_stats().size == 0

    def test_rejects_empty_capacity(self):
        with pytest.raises(ValueError):
            LRUCache(max_size=0)


class TestCacheStats:
    """Tests for CacheStats."""

    def test_hit_rate(self):
        assert CacheStats().hit_rate == 0.0
        assert CacheStats(hits=3, misses=1).hit_rate == 0.75


class TestEmbeddingCache:
    """Tests for EmbeddingCache."""

    def test_keyed_by_model(self):
        cache = EmbeddingCache(max_size=10)
        cache.set("hello", [0.1, 0.2], model="voyage-3.5")

        assert cache.get("hello", model="voyage-3.5") == [0.1, 0.2]
        assert cache.get("hello", model="other") is None
        stats = cache.get_stats()
        assert stats.hits == 1
        assert stats.misses == 1
