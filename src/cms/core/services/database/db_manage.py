"""Schema management for the CMS tables."""

from loguru import logger
from sqlalchemy import Engine, inspect
from sqlmodel import SQLModel


class DbManageService:
    def __init__(self, engine: Engine):
        self._engine = engine

    def create_all(self) -> list[str]:
        """Create every CMS table that does not exist yet and return the table names."""
        import src.cms.entities  # noqa: F401

        SQLModel.metadata.create_all(self._engine)
        tables = sorted(inspect(self._engine).get_table_names())
        logger.info("Database initialized with {} tables", len(tables))
        return tables

    def drop_all(self) -> None:
        import src.cms.entities  # noqa: F401

        SQLModel.metadata.drop_all(self._engine)
        logger.warning("All CMS tables dropped")
