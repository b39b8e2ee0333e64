"""Cache storage interface and implementations.

Backends store opaque strings (serialized JSON) with a per-entry lifetime,
plus the tag index used for bulk eviction. ``InMemoryCacheStorage`` keeps
both in process; ``RedisCacheStorage`` keeps both in Redis so every process
sharing the server sees the same tags.
"""

from __future__ import annotations

import fnmatch
import threading
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Callable, Iterable
from typing import Any

from cachetools import TLRUCache
from loguru import logger

# Namespace of tag sets inside the Redis key prefix; never returned by list_keys.
TAG_NAMESPACE = "__tag__:"


class CacheStorageError(RuntimeError):
    """A cache backend could not complete an operation."""


class CacheStorage(ABC):
    """Abstract interface for cache storage backends."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored payload, or None when missing or expired."""

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a payload for ``ttl_seconds``."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a key; True when something was removed."""

    def delete_many(self, keys: Iterable[str]) -> int:
        return sum(1 for key in keys if self.delete(key))

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def list_keys(self, pattern: str = "*") -> list[str]:
        """List live keys matching a glob-style pattern (e.g. ``"page:*"``)."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry and every tag."""

    @abstractmethod
    def is_available(self) -> bool:
        pass

    # Members whose entry expired or was evicted are dropped when a tag is read.

    @abstractmethod
    def add_tags(self, key: str, tags: Iterable[str], ttl_seconds: int) -> None:
        """Record ``key`` under each of ``tags`` for at least ``ttl_seconds``."""

    @abstractmethod
    def keys_for_tag(self, tag: str) -> set[str]:
        """Live keys recorded under ``tag``."""

    @abstractmethod
    def delete_tag(self, tag: str) -> None:
        pass

    @abstractmethod
    def tag_count(self) -> int:
        """Number of tags currently indexed."""


def _expires_at(_key: str, value: tuple[str, int], now: float) -> float:
    return now + value[1]


class InMemoryCacheStorage(CacheStorage):
    """Process-local storage with per-entry TTL and LRU eviction.

    The tag index is pruned against the live entries every ``max_entries``
    tag writes, so it never holds much more than the cache itself.
    """

    def __init__(self, max_entries: int = 10000, timer: Callable[[], float] = time.monotonic):
        self._cache: TLRUCache[str, tuple[str, int]] = TLRUCache(
            maxsize=max_entries, ttu=_expires_at, timer=timer
        )
        self._max_entries = max_entries
        self._tags: dict[str, set[str]] = defaultdict(set)
        self._tag_writes = 0
        self._lock = threading.RLock()

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._cache.get(key)
        return entry[0] if entry is not None else None

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            self.delete(key)
            return
        with self._lock:
            self._cache[key] = (value, ttl_seconds)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._cache.pop(key, None) is not None

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._cache

    def list_keys(self, pattern: str = "*") -> list[str]:
        with self._lock:
            self._cache.expire()
            return [key for key in list(self._cache) if fnmatch.fnmatchcase(key, pattern)]

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._tags.clear()
            self._tag_writes = 0

    def is_available(self) -> bool:
        """In-memory storage is always available."""
        return True

    def _prune_tags(self) -> None:
        self._cache.expire()
        for tag in list(self._tags):
            live = {key for key in self._tags[tag] if key in self._cache}
            if live:
                self._tags[tag] = live
            else:
                del self._tags[tag]
        self._tag_writes = 0

    def add_tags(self, key: str, tags: Iterable[str], ttl_seconds: int) -> None:
        with self._lock:
            if key not in self._cache:
                return
            for tag in tags:
                self._tags[tag].add(key)
                self._tag_writes += 1
            if self._tag_writes >= self._max_entries:
                self._prune_tags()

    def keys_for_tag(self, tag: str) -> set[str]:
        with self._lock:
            keys = self._tags.get(tag)
            if keys is None:
                return set()
            live = {key for key in keys if key in self._cache}
            if live:
                self._tags[tag] = live
            else:
                del self._tags[tag]
            return set(live)

    def delete_tag(self, tag: str) -> None:
        with self._lock:
            self._tags.pop(tag, None)

    def tag_count(self) -> int:
        with self._lock:
            self._prune_tags()
            return len(self._tags)

    def tagged_key_count(self) -> int:
        """Memberships currently held by the tag index, live or not."""
        with self._lock:
            return sum(len(keys) for keys in self._tags.values())

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)


class RedisCacheStorage(CacheStorage):
    """Redis-backed storage; every key is namespaced with ``key_prefix``.

    Each tag is a Redis set of unprefixed keys, kept alive as long as its
    longest-lived member.
    """

    def __init__(self, redis_client: Any, key_prefix: str = "cms:"):
        self._redis = redis_client
        self._prefix = key_prefix
        self._available = True

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self._prefix}{TAG_NAMESPACE}{tag}"

    @staticmethod
    def _decode(value: str | bytes) -> str:
        return value.decode("utf-8") if isinstance(value, bytes) else value

    def _strip(self, key: str | bytes) -> str:
        key = self._decode(key)
        return key[len(self._prefix):] if key.startswith(self._prefix) else key

    def _call(self, operation: str, func, *args, **kwargs):
        try:
            result = func(*args, **kwargs)
            self._available = True
            return result
        except Exception as e:
            self._available = False
            logger.error(
                "Redis cache {} failed",
                operation,
                extra={"error_type": type(e).__name__, "error_message": str(e)},
            )
            raise CacheStorageError(f"Redis {operation} failed: {e}") from e

    def _scan(self, match: str) -> list[str]:
        keys = self._call("scan", lambda: list(self._redis.scan_iter(match=match, count=100)))
        return [self._strip(key) for key in keys]

    def get(self, key: str) -> str | None:
        data = self._call("get", self._redis.get, self._key(key))
        return self._decode(data) if data is not None else None

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            self.delete(key)
            return
        self._call("set", self._redis.setex, self._key(key), ttl_seconds, value)

    def delete(self, key: str) -> bool:
        return bool(self._call("delete", self._redis.delete, self._key(key)))

    def delete_many(self, keys: Iterable[str]) -> int:
        prefixed = [self._key(key) for key in keys]
        if not prefixed:
            return 0
        return int(self._call("delete", self._redis.delete, *prefixed))

    def exists(self, key: str) -> bool:
        return bool(self._call("exists", self._redis.exists, self._key(key)))

    def list_keys(self, pattern: str = "*") -> list[str]:
        """List keys matching a pattern using Redis SCAN."""
        return [key for key in self._scan(self._key(pattern)) if not key.startswith(TAG_NAMESPACE)]

    def clear(self) -> None:
        self.delete_many(self._scan(self._key("*")))

    def is_available(self) -> bool:
        return self._available

    def add_tags(self, key: str, tags: Iterable[str], ttl_seconds: int) -> None:
        for tag in tags:
            tag_key = self._tag_key(tag)
            self._call("tag", self._redis.sadd, tag_key, key)
            # ttl is -1 for a set without expiry
            if self._call("tag", self._redis.ttl, tag_key) < ttl_seconds:
                self._call("tag", self._redis.expire, tag_key, ttl_seconds)

    def keys_for_tag(self, tag: str) -> set[str]:
        tag_key = self._tag_key(tag)
        members = {self._decode(m) for m in self._call("tag", self._redis.smembers, tag_key)}
        stale = [key for key in members if not self.exists(key)]
        if stale:
            self._call("tag", self._redis.srem, tag_key, *stale)
        return members.difference(stale)

    def delete_tag(self, tag: str) -> None:
        self._call("tag", self._redis.delete, self._tag_key(tag))

    def tag_count(self) -> int:
        return len(self._scan(self._tag_key("*")))

    def ping(self) -> bool:
        try:
            self._redis.ping()
            self._available = True
            return True
        except Exception as e:
            logger.warning("Redis cache ping failed: {}", e)
            self._available = False
            return False
