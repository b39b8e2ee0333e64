"""Read-through cache with tag-based invalidation.

Values are serialized to JSON with a pydantic ``TypeAdapter`` built for the
requested type, so entities, lists of entities and paged results survive a
round trip through any backend. Tags live in the backend next to the entries:
a key set with ``tags=("entity:page",)`` is evicted by
``remove_by_tag("entity:page")`` from any process sharing that backend.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from datetime import timedelta
from typing import Any, TypeVar

from cachetools.func import lru_cache
from loguru import logger
from pydantic import BaseModel, TypeAdapter, computed_field

from src.cms.core.storage.cache_storage import (
    CacheStorage,
    CacheStorageError,
    InMemoryCacheStorage,
    RedisCacheStorage,
)
from src.cms.runtime.config.config_data import ConfigData
from src.cms.runtime.context import get_config

T = TypeVar("T")

DEFAULT_EXPIRATION = timedelta(minutes=30)

# Raised by a backend or while decoding a stale payload; the cache treats both as a miss.
_CACHE_ERRORS = (CacheStorageError, ValueError)


@lru_cache(maxsize=256)
def _adapter(value_type: Any) -> TypeAdapter:
    return TypeAdapter(value_type)


class CacheStatistics(BaseModel):
    hits: int = 0
    misses: int = 0
    sets: int = 0
    removals: int = 0
    errors: int = 0
    key_count: int = 0
    tag_count: int = 0

    @computed_field
    @property
    def hit_ratio(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


class CacheService:
    """Typed cache facade over a ``CacheStorage`` backend."""

    def __init__(
        self,
        storage: CacheStorage,
        default_expiration: timedelta = DEFAULT_EXPIRATION,
        enabled: bool = True,
    ):
        self._storage = storage
        self._default_expiration = default_expiration
        self._enabled = enabled
        self._lock = threading.RLock()
        self._stats = {"hits": 0, "misses": 0, "sets": 0, "removals": 0, "errors": 0}

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def storage(self) -> CacheStorage:
        return self._storage

    def _count(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._stats[name] += amount

    def _failed(self, action: str, key: str, e: Exception) -> None:
        self._count("errors")
        logger.warning(
            "Cache {} failed for key {}",
            action,
            key,
            extra={"error_type": type(e).__name__, "error_message": str(e)},
        )

    def _ttl_seconds(self, expiration: timedelta | None) -> int:
        if expiration is None:
            expiration = self._default_expiration
        return int(expiration.total_seconds())

    # ------------------------------------------------------------------
    # Basic operations
    # ------------------------------------------------------------------

    def get(self, key: str, value_type: type[T] | Any) -> T | None:
        if not self._enabled:
            return None
        try:
            payload = self._storage.get(key)
            if payload is None:
                self._count("misses")
                return None
            value = _adapter(value_type).validate_json(payload)
        except _CACHE_ERRORS as e:
            self._failed("get", key, e)
            self._count("misses")
            return None
        self._count("hits")
        return value

    def set(
        self,
        key: str,
        value: Any,
        expiration: timedelta | None = None,
        tags: Iterable[str] = (),
        value_type: Any = None,
    ) -> None:
        """Store ``value``; None is never cached."""
        if not self._enabled or value is None:
            return
        try:
            payload = _adapter(value_type or type(value)).dump_json(value).decode("utf-8")
            self._storage.set(key, payload, self._ttl_seconds(expiration))
        except _CACHE_ERRORS as e:
            self._failed("set", key, e)
            return
        self._count("sets")
        if tags:
            self._tag(key, tags, expiration)

    def get_or_set(
        self,
        key: str,
        factory: Callable[[], T],
        value_type: type[T] | Any,
        expiration: timedelta | None = None,
        tags: Iterable[str] = (),
    ) -> T:
        """Return the cached value, or compute it with ``factory`` and cache it.

        A None result is returned but not cached. Cache failures are logged and
        the factory result is returned; errors raised by the factory propagate.
        """
        cached = self.get(key, value_type)
        if cached is not None:
            return cached

        value = factory()
        if value is not None:
            self.set(key, value, expiration, tags, value_type=value_type)
        return value

    def exists(self, key: str) -> bool:
        if not self._enabled:
            return False
        try:
            return self._storage.exists(key)
        except CacheStorageError as e:
            self._failed("exists", key, e)
            return False

    def remove(self, key: str) -> bool:
        try:
            removed = self._storage.delete(key)
        except CacheStorageError as e:
            self._failed("remove", key, e)
            return False
        if removed:
            self._count("removals")
        return removed

    def remove_many(self, keys: Iterable[str]) -> int:
        keys = list(keys)
        try:
            removed = self._storage.delete_many(keys)
        except CacheStorageError as e:
            self._failed("remove", ",".join(keys), e)
            return 0
        self._count("removals", removed)
        return removed

    def clear(self) -> None:
        try:
            self._storage.clear()
        except CacheStorageError as e:
            self._failed("clear", "*", e)
            return
        logger.info("Cache cleared")

    # ------------------------------------------------------------------
    # Tags and patterns
    # ------------------------------------------------------------------

    def _tag(self, key: str, tags: Iterable[str], expiration: timedelta | None = None) -> None:
        try:
            self._storage.add_tags(key, tags, self._ttl_seconds(expiration))
        except CacheStorageError as e:
            self._failed("tag", key, e)

    def set_tags(self, key: str, *tags: str) -> None:
        """Tag an existing entry; tags outlive it by at most the default expiration."""
        if self._enabled and tags:
            self._tag(key, tags)

    def get_keys_by_tag(self, tag: str) -> set[str]:
        try:
            return self._storage.keys_for_tag(tag)
        except CacheStorageError as e:
            self._failed("read tag", tag, e)
            return set()

    def remove_by_tag(self, tag: str) -> int:
        """Evict every live key tagged ``tag``, whichever process cached it."""
        keys = self.get_keys_by_tag(tag)
        removed = self.remove_many(keys) if keys else 0
        try:
            self._storage.delete_tag(tag)
        except CacheStorageError as e:
            self._failed("remove tag", tag, e)
        if removed:
            logger.debug("Evicted {} cache keys tagged {}", removed, tag)
        return removed

    def remove_by_pattern(self, pattern: str) -> int:
        """Remove keys matching a glob pattern such as ``"page:*"``."""
        try:
            keys = self._storage.list_keys(pattern)
        except CacheStorageError as e:
            self._failed("remove by pattern", pattern, e)
            return 0
        return self.remove_many(keys)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def statistics(self) -> CacheStatistics:
        try:
            key_count = len(self._storage.list_keys("*"))
            tag_count = self._storage.tag_count()
        except CacheStorageError as e:
            self._failed("statistics", "*", e)
            key_count = tag_count = 0
        with self._lock:
            return CacheStatistics(**self._stats, key_count=key_count, tag_count=tag_count)

    def reset_statistics(self) -> None:
        with self._lock:
            for name in self._stats:
                self._stats[name] = 0


def create_cache_service(config: ConfigData | None = None, redis_client: Any = None) -> CacheService:
    """Build the cache service described by the ``cache`` config section.

    The redis backend needs a client; without one the in-memory backend is
    used and a warning is logged.
    """
    cache_config = (config or get_config()).cache
    if cache_config.backend == "redis" and redis_client is not None:
        storage: CacheStorage = RedisCacheStorage(redis_client, key_prefix=cache_config.key_prefix)
    else:
        if cache_config.backend == "redis":
            logger.warning("Redis cache backend requested but Redis is unavailable, using memory")
        storage = InMemoryCacheStorage(max_entries=cache_config.max_entries)

    return CacheService(
        storage,
        default_expiration=timedelta(seconds=cache_config.default_expiration_seconds),
        enabled=cache_config.enabled,
    )
