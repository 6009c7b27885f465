"""Shared utilities: logging, caching and locking."""

from .cache import CacheStats, EmbeddingCache, LRUCache
from .locks import ReadWriteLock
from .logging import setup_logging

__all__ = [
    "CacheStats",
    "EmbeddingCache",
    "LRUCache",
    "ReadWriteLock",
    "setup_logging",
]
