"""The shared SQLAlchemy engine and the sessions handed to units of work."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger
from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from src.cms.runtime.config.config_data import ConfigData
from src.cms.runtime.context import get_config


def engine_options(config: ConfigData) -> dict[str, Any]:
    """Keyword arguments for ``create_engine`` suited to the configured backend."""
    db_config = config.database
    options: dict[str, Any] = {"echo": db_config.echo, "pool_pre_ping": True}

    if db_config.is_sqlite:
        if config.app.environment == "production":
            logger.warning("Running on SQLite in production; PostgreSQL is recommended")
        options["connect_args"] = {"check_same_thread": False, "timeout": 20}
        # A private in-memory database must stay on one connection.
        if db_config.url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options

    options.update(
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_recycle=db_config.pool_recycle,
    )
    if db_config.url.startswith("postgresql"):
        options["connect_args"] = {
            "application_name": f"{config.app.name}_{config.app.environment}",
            "connect_timeout": 30,
        }
    return options


class DbSessionService:
    """Owns the engine; pass ``engine`` to share an existing one."""

    def __init__(self, config: ConfigData | None = None, engine: Engine | None = None):
        config = config or get_config()
        if engine is None:
            engine = create_engine(config.database.connection_string, **engine_options(config))
            logger.info(
                "Database engine ready: {} ({} environment)",
                engine.dialect.name,
                config.app.environment,
            )
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def get_session(self) -> Session:
        return Session(self._engine, expire_on_commit=False, autoflush=True)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """A session committed when the block ends, rolled back if it raises."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error("Rolled back database session after {}: {}", type(e).__name__, e)
            raise
        finally:
            session.close()

    def health_check(self) -> bool:
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("Database health check failed: {}", e)
            return False
        return True

    def get_pool_status(self) -> dict[str, Any]:
        pool = self._engine.pool
        status: dict[str, Any] = {"pool": type(pool).__name__}
        for key, method in (
            ("size", "size"),
            ("checked_in", "checkedin"),
            ("checked_out", "checkedout"),
            ("overflow", "overflow"),
        ):
            status[key] = getattr(pool, method)() if hasattr(pool, method) else 0
        return status

    def dispose(self) -> None:
        self._engine.dispose()
