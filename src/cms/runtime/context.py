"""Context-local configuration and acting user.

The active ``AppContext`` lives in a ``ContextVar`` so request handlers and
tests can swap the configuration or the acting user for a block without
touching global state.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel

from src.cms.runtime.config.config_data import (
    AppConfig,
    CacheConfig,
    ConfigData,
    DatabaseConfig,
    LoggingConfig,
    RedisConfig,
)
from src.cms.runtime.config.config_template import load_templated_yaml
from src.cms.runtime.config.settings import EnvironmentVariables


@dataclass(frozen=True)
class AppContext:
    config: ConfigData
    user_id: int | None = None


def load_default_config(env: EnvironmentVariables) -> ConfigData:
    """Read ``env.config_file``; without it, derive a configuration from ``env``."""
    path = Path(env.config_file)
    if path.exists():
        return load_templated_yaml(path)

    logger.warning("{} not found, using environment defaults", path)
    return ConfigData(
        app=AppConfig(environment=env.environment),
        database=DatabaseConfig(url=env.database_url),
        redis=RedisConfig(enabled=env.redis_url is not None, url=env.redis_url or ""),
        cache=CacheConfig(backend=env.cache_backend),
        logging=LoggingConfig(level=env.log_level),
    )


_app_context: ContextVar[AppContext] = ContextVar(
    "app_context", default=AppContext(config=load_default_config(EnvironmentVariables()))
)


def get_context() -> AppContext:
    return _app_context.get()


def set_context(context: AppContext) -> Token[AppContext]:
    """Make ``context`` current; keep the token to restore the previous one."""
    return _app_context.set(context)


def _overlay(base: dict[str, Any], override: BaseModel) -> dict[str, Any]:
    """Write the fields set on ``override`` over ``base``.

    Nested models with set fields of their own are merged key by key. A nested
    model assigned with only defaults replaces the section wholesale.
    """
    merged = dict(base)
    for name in type(override).model_fields:
        value = getattr(override, name)
        if isinstance(value, BaseModel) and value.model_fields_set:
            merged[name] = _overlay(merged.get(name) or {}, value)
        elif isinstance(value, BaseModel) and name in override.model_fields_set:
            merged[name] = value.model_dump()
        elif name in override.model_fields_set:
            merged[name] = value
    return merged


@contextmanager
def _scoped(context: AppContext) -> Iterator[None]:
    token = set_context(context)
    try:
        yield
    finally:
        _app_context.reset(token)


@contextmanager
def with_context(config_override: ConfigData | None = None) -> Iterator[None]:
    """Overlay ``config_override`` on the current configuration for a block.

    Unset fields keep the enclosing values, so
    ``with_context(ConfigData(cache=CacheConfig(enabled=False)))`` only turns
    the cache off.
    """
    if config_override is None:
        yield
        return
    if not isinstance(config_override, ConfigData):
        raise ValueError(
            f"config_override must be ConfigData, or None, got {type(config_override)}"
        )

    current = get_context()
    merged = ConfigData.model_validate(_overlay(current.config.model_dump(), config_override))
    with _scoped(replace(current, config=merged)):
        yield


@contextmanager
def with_user(user_id: int | None) -> Iterator[None]:
    """Stamp audit columns written inside the block with ``user_id``."""
    with _scoped(replace(get_context(), user_id=user_id)):
        yield


def get_current_user_id() -> int | None:
    return get_context().user_id


def set_config(config: ConfigData) -> None:
    set_context(replace(get_context(), config=config))


def get_config() -> ConfigData:
    return get_context().config
