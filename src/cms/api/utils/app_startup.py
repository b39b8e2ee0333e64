"""Loguru setup shared by the HTTP app.

Records from the standard ``logging`` module (SQLAlchemy, uvicorn) are routed
into loguru so every line carries the same format and request id.
"""

import logging
import sys
from pathlib import Path

from loguru import logger

from src.cms.runtime.config.config_data import ConfigData
from src.cms.runtime.context import get_config

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "[<cyan>{extra[request_id]}</cyan>] | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# stdlib loggers held at a minimum level; access lines come from our middleware
QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "uvicorn.access": logging.CRITICAL,
}


class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        if record.name == "uvicorn.access":
            return
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=2, exception=record.exc_info).bind(logger_name=record.name).log(
            level, record.getMessage()
        )


def _intercept_stdlib_logging() -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in list(logging.root.manager.loggerDict):
        std_logger = logging.getLogger(name)
        std_logger.handlers = []
        std_logger.propagate = True
    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def configure_logging(config: ConfigData | None = None) -> None:
    """Install the console sink, plus a rotating file sink when ``logging.file`` is set."""
    config = config or get_config()
    settings = config.logging
    verbose_errors = config.app.environment != "production"

    logger.remove()
    logger.configure(extra={"request_id": "-"})
    logger.add(
        sys.stderr,
        level=settings.level,
        format=CONSOLE_FORMAT,
        colorize=True,
        backtrace=verbose_errors,
        diagnose=verbose_errors,
    )

    if settings.file:
        log_path = Path(settings.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        serialize = settings.format == "json"
        logger.add(
            log_path,
            level=settings.level,
            format="{message}" if serialize else CONSOLE_FORMAT,
            serialize=serialize,
            rotation=f"{settings.max_size_mb} MB",
            retention=settings.backup_count,
            compression="zip",
            enqueue=True,
            backtrace=verbose_errors,
            diagnose=verbose_errors,
        )

    _intercept_stdlib_logging()
    logger.info(
        "Logging at {} for {} ({} file output)",
        settings.level,
        config.app.environment,
        settings.format if settings.file else "no",
    )
