"""Loading config.yaml with ``${...}`` placeholders resolved from the environment.

Placeholder forms:

- ``${NAME}``: required, fails when ``NAME`` is unset
- ``${NAME:-fallback}``: optional, ``fallback`` when unset
- ``${NAME:?message}``: required, fails with ``message`` when unset

Variables prefixed with the upper-cased environment name win over the bare
name, so ``PRODUCTION_DATABASE_URL`` replaces ``DATABASE_URL`` when
``APP_ENVIRONMENT=production``.
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path

import yaml
from loguru import logger
from pydantic_core import ValidationError

from src.cms.runtime.config.config_data import ConfigData

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def environment_overrides(environ: Mapping[str, str], env_mode: str) -> dict[str, str]:
    """Return ``environ`` with ``<ENV>_NAME`` values copied over ``NAME``."""
    prefix = f"{env_mode.upper()}_"
    resolved = dict(environ)
    for name, value in environ.items():
        if name.startswith(prefix) and len(name) > len(prefix):
            resolved[name[len(prefix):]] = value
            logger.debug("Using {} for {}", name, name[len(prefix):])
    return resolved


def _resolve(expression: str, environ: Mapping[str, str]) -> str:
    if ":-" in expression:
        name, _, fallback = expression.partition(":-")
        return environ.get(name, fallback)

    name, required, message = expression.partition(":?")
    value = environ.get(name)
    if value is not None:
        return value
    if required:
        raise ValueError(f"Required environment variable {name}: {message}")
    raise ValueError(f"Required environment variable {name} not set")


def substitute_env_vars(text: str, environ: Mapping[str, str] | None = None) -> str:
    """Replace every placeholder in ``text``; ``environ`` defaults to ``os.environ``."""
    values = os.environ if environ is None else environ
    return _PLACEHOLDER.sub(lambda match: _resolve(match.group(1), values), text)


def load_templated_yaml(file_path: Path) -> ConfigData:
    """Read ``file_path`` and validate its ``config`` section.

    Raises:
        FileNotFoundError: the file does not exist
        ValueError: a required variable is missing, or the YAML or its values are invalid
    """
    content = Path(file_path).read_text()
    env_mode = os.getenv("APP_ENVIRONMENT", "development")
    logger.info("Loading configuration {} for environment: {}", file_path, env_mode)

    substituted = substitute_env_vars(content, environment_overrides(os.environ, env_mode))
    try:
        loaded = yaml.safe_load(substituted)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e
    if not loaded:
        raise ValueError("Failed to parse YAML")

    try:
        config = ConfigData.model_validate(loaded.get("config") or {})
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e

    if config.cache.backend == "redis" and not config.redis.enabled:
        logger.warning("Cache backend is redis but Redis is disabled; the in-memory cache will be used")
    return config
