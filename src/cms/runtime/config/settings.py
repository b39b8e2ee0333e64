from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentVariables(BaseSettings):
    """Bootstrap values read from the process environment and ``.env``.

    Only used to locate config.yaml, or to build a configuration when that file
    is absent.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = Field(
        default="development", validation_alias="APP_ENVIRONMENT"
    )
    config_file: str = Field(default="config.yaml", validation_alias="CMS_CONFIG_FILE")
    log_level: str = "INFO"

    database_url: str = "sqlite:///./cms.db"
    redis_url: str | None = None
    cache_backend: Literal["memory", "redis"] = Field(
        default="memory", validation_alias="CMS_CACHE_BACKEND"
    )
