"""LRU caching for query embeddings."""

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """Single cache entry with expiry."""

    value: T
    expires_at: float | None
    hits: int = 0


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    size: int = 0
    max_size: int = 0

    @property
    def hit_rate(self) -> float:
        """Cache hit rate (0.0-1.0)."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class LRUCache(Generic[T]):
    """LRU cache with optional TTL, safe to share between threads."""

    def __init__(
        self,
        max_size: int = 1000,
        ttl_seconds: float | None = None,
        name: str = "cache",
    ):
        """Initialize LRU cache.

        Args:
            max_size: Maximum number of entries
            ttl_seconds: Time-to-live for entries (None = no expiry)
            name: Cache name for logging
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl = ttl_seconds
        self.name = name
        self._lock = threading.Lock()
        self._cache: OrderedDict[str, CacheEntry[T]] = OrderedDict()
        self._stats = CacheStats(max_size=max_size)

    def get(self, key: str) -> T | None:
        """Get a value, or None when missing or expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._stats.misses += 1
                return None

            if entry.expires_at is not None and time.monotonic() > entry.expires_at:
                del self._cache[key]
                self._stats.size = len(self._cache)
                self._stats.misses += 1
                return None

            self._cache.move_to_end(key)
            entry.hits += 1
            self._stats.hits += 1
            return entry.value

    def set(self, key: str, value: T, ttl: float | None = None) -> None:
        """Set a value, evicting the least recently used entry when full."""
        entry_ttl = ttl if ttl is not None else self.ttl
        expires_at = time.monotonic() + entry_ttl if entry_ttl else None

        with self._lock:
            self._cache.pop(key, None)
            while len(self._cache) >= self.max_size:
                self._cache.popitem(last=False)
                self._stats.evictions += 1
            self._cache[key] = CacheEntry(value=value, expires_at=expires_at)
            self._stats.size = len(self._cache)

    def invalidate(self, key: str) -> bool:
        """Drop one entry. Returns True if it existed."""
        with self._lock:
            existed = self._cache.pop(key, None) is not None
            self._stats.size = len(self._cache)
            return existed

    def clear(self) -> None:
        """Clear all entries."""
        with self._lock:
            self._cache.clear()
            self._stats.size = 0
        logger.info(f"Cache '{self.name}' cleared")

    def get_stats(self) -> CacheStats:
        """Get cache statistics."""
        return self._stats


class EmbeddingCache:
    """Cache of text embeddings keyed by a hash of model and text."""

    def __init__(self, max_size: int = 5000, ttl_seconds: float | None = 3600):
        self._cache: LRUCache[list[float]] = LRUCache(
            max_size=max_size,
            ttl_seconds=ttl_seconds,
            name="embeddings",
        )

    @staticmethod
    def _make_key(text: str, model: str) -> str:
        content = f"{model}:{text}"
        return hashlib.sha256(content.encode()).hexdigest()[:32]

    def get(self, text: str, model: str = "default") -> list[float] | None:
        return self._cache.get(self._make_key(text, model))

    def set(self, text: str, embedding: list[float], model: str = "default") -> None:
        self._cache.set(self._make_key(text, model), embedding)

    def get_stats(self) -> CacheStats:
        return self._cache.get_stats()
