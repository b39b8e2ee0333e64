"""Typed view of the ``config`` section of config.yaml.

Each section of the file maps onto one model below; ``ConfigData`` is the root
and every section falls back to its defaults when omitted.
"""

import os
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, computed_field
from sqlalchemy.engine import make_url

Environment = Literal["development", "production", "test"]


class AppConfig(BaseModel):
    environment: Environment = "development"
    name: str = Field(default="cms-backend", description="Service name reported by /health")
    host: str = "localhost"
    port: int = Field(default=8000, gt=0, lt=65536)

    @property
    def base_url(self) -> str:
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}"


class DatabaseConfig(BaseModel):
    """Engine settings; pool options are ignored for SQLite."""

    url: str = Field(default="sqlite:///./cms.db", description="SQLAlchemy database URL")
    echo: bool = Field(default=False, description="Log every SQL statement")
    pool_size: int = Field(default=20, gt=0)
    max_overflow: int = Field(default=10, ge=0)
    pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    pool_recycle: int = Field(default=1800, description="Seconds before a connection is recycled")
    password_env_var: str | None = Field(
        default=None,
        description="Name of the variable holding the password, kept out of the URL",
    )

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.url).get_backend_name() == "sqlite"

    @computed_field
    @property
    def connection_string(self) -> str:
        """The URL with the password from ``password_env_var`` filled in."""
        if self.is_sqlite or not self.password_env_var:
            return self.url

        password = os.getenv(self.password_env_var)
        if not password:
            raise ValueError(f"Environment variable {self.password_env_var} not set")

        url = make_url(self.url)
        if url.password and url.password != password:
            logger.warning(
                "Database URL carries a password that differs from {}; using the variable",
                self.password_env_var,
            )
        return url.set(password=password).render_as_string(hide_password=False)


class RedisConfig(BaseModel):
    enabled: bool = Field(default=False, description="Connect to Redis at startup")
    url: str = Field(default="", description="redis:// or rediss:// URL")
    password: str | None = Field(default=None, description="Injected when the URL has no credentials")
    decode_responses: bool = True
    max_connections: int = Field(default=20, gt=0)
    socket_timeout: float = Field(default=5.0, description="Seconds per command")
    socket_connect_timeout: float = Field(default=5.0, description="Seconds to connect")

    @computed_field
    @property
    def connection_string(self) -> str:
        scheme, separator, rest = self.url.partition("://")
        if not self.password or not separator or "@" in rest:
            return self.url
        return f"{scheme}://:{self.password}@{rest}"

    @property
    def sanitized_connection_string(self) -> str:
        """``connection_string`` with credentials replaced by ``***``."""
        scheme, _, rest = self.connection_string.partition("://")
        _, at, location = rest.rpartition("@")
        if not at:
            return self.connection_string
        return f"{scheme}://***@{location}"


class CacheConfig(BaseModel):
    """Repository read cache."""

    enabled: bool = True
    backend: Literal["memory", "redis"] = Field(
        default="memory", description="redis falls back to memory when Redis is unavailable"
    )
    default_expiration_seconds: int = Field(
        default=1800, ge=0, description="Entry lifetime; 0 disables storing"
    )
    max_entries: int = Field(default=10000, gt=0, description="Capacity of the in-memory backend")
    key_prefix: str = Field(default="cms:", description="Namespace for keys in Redis")


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: Literal["json", "plain"] = Field(default="plain", description="json serializes records")
    file: str | None = Field(default=None, description="Also write to this file when set")
    max_size_mb: int = Field(default=10, description="Rotate the log file at this size")
    backup_count: int = Field(default=5, description="Rotated files to keep")


class ConfigData(BaseModel):
    """Root of the configuration tree."""

    app: AppConfig = Field(default_factory=AppConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
