"""Repository cache: key builders, the cache service and cached repository decorators."""

from .cache_keys import CacheKeys
from .cache_service import DEFAULT_EXPIRATION, CacheService, CacheStatistics, create_cache_service

__all__ = ["CacheKeys", "CacheService", "CacheStatistics", "DEFAULT_EXPIRATION", "create_cache_service"]
