"""Lifecycle of the Redis client behind the shared cache backend."""

from typing import Any

import redis
from loguru import logger
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

from src.cms.runtime.config.config_data import ConfigData, RedisConfig
from src.cms.runtime.context import get_config


def _connect(redis_config: RedisConfig, client_name: str) -> redis.Redis:
    return redis.Redis.from_url(
        redis_config.connection_string,
        encoding="utf-8",
        decode_responses=redis_config.decode_responses,
        max_connections=redis_config.max_connections,
        socket_timeout=redis_config.socket_timeout,
        socket_connect_timeout=redis_config.socket_connect_timeout,
        socket_keepalive=True,
        health_check_interval=30,
        retry=Retry(ExponentialBackoff(base=1, cap=10), retries=3),
        client_name=client_name,
    )


class RedisService:
    """Owns one synchronous Redis client, or none when Redis is off.

    A ``client`` passed in is used as is, which is how tests plug in fakeredis.
    """

    def __init__(self, config: ConfigData | None = None, client: Any = None):
        config = config or get_config()
        self._client = client
        self._enabled = client is not None or self._configure(config)

    def _configure(self, config: ConfigData) -> bool:
        redis_config = config.redis
        if not redis_config.enabled:
            logger.info("Redis disabled; cache will stay in process")
            return False
        if not redis_config.url:
            logger.warning("Redis enabled without a URL; cache will stay in process")
            return False

        logger.info("Connecting to Redis at {}", redis_config.sanitized_connection_string)
        try:
            self._client = _connect(redis_config, client_name=config.app.name)
        except (redis.RedisError, ValueError) as e:
            logger.error("Could not create Redis client: {}: {}", type(e).__name__, e)
            if config.app.environment == "production":
                raise
            return False
        return True

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def get_client(self) -> Any:
        return self._client if self._enabled else None

    def health_check(self) -> bool:
        """True when the server answers PING."""
        if self.get_client() is None:
            return False
        try:
            return bool(self._client.ping())
        except redis.RedisError as e:
            logger.error("Redis ping failed: {}", e)
            return False

    def get_info(self) -> dict[str, Any] | None:
        if self.get_client() is None:
            return None
        try:
            info = self._client.info()
        except redis.RedisError as e:
            logger.error("Redis INFO failed: {}", e)
            return None
        return {
            "version": info.get("redis_version"),
            "uptime_seconds": info.get("uptime_in_seconds"),
            "connected_clients": info.get("connected_clients"),
            "used_memory_human": info.get("used_memory_human"),
        }

    def close(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        logger.info("Closing Redis client")
        try:
            client.close()
        except redis.RedisError as e:
            logger.error("Error closing Redis client: {}", e)
