"""Cache storage backends."""

from .cache_storage import (
    CacheStorage,
    CacheStorageError,
    InMemoryCacheStorage,
    RedisCacheStorage,
)

__all__ = ["CacheStorage", "CacheStorageError", "InMemoryCacheStorage", "RedisCacheStorage"]
