"""Unit tests for the database and Redis services."""

import fakeredis
import pytest

from src.cms.core.services import DbManageService, DbSessionService, RedisService
from src.cms.runtime.config.config_data import AppConfig, ConfigData, DatabaseConfig, RedisConfig


def _memory_config() -> ConfigData:
    return ConfigData(app=AppConfig(environment="test"), database=DatabaseConfig(url="sqlite://"))


class TestDbSessionService:
    """Engine construction and session helpers."""

    def test_in_memory_engine(self):
        """Should build a working engine for an in-memory database."""
        service = DbSessionService(_memory_config())
        try:
            assert service.health_check() is True
            assert service.get_pool_status()["pool"] == "StaticPool"
        finally:
            service.dispose()

    def test_session_scope_commits(self, engine):
        """Should commit the work done inside the scope."""
        service = DbSessionService(engine=engine)

        with service.session_scope() as session:
            session.connection().exec_driver_sql("CREATE TABLE probe (id INTEGER PRIMARY KEY)")
            session.connection().exec_driver_sql("INSERT INTO probe (id) VALUES (1)")

        with service.session_scope() as session:
            assert session.connection().exec_driver_sql("SELECT count(*) FROM probe").scalar() == 1

    def test_session_scope_rolls_back(self, engine):
        """Should roll back and re-raise when the block fails."""
        service = DbSessionService(engine=engine)
        with service.session_scope() as session:
            session.connection().exec_driver_sql("CREATE TABLE probe (id INTEGER PRIMARY KEY)")

        with pytest.raises(RuntimeError, match="boom"):
            with service.session_scope() as session:
                session.connection().exec_driver_sql("INSERT INTO probe (id) VALUES (1)")
                raise RuntimeError("boom")

        with service.session_scope() as session:
            assert session.connection().exec_driver_sql("SELECT count(*) FROM probe").scalar() == 0


class TestDbManageService:
    """Schema creation for the CMS tables."""

    def test_create_and_drop(self):
        """Should create every table and drop them again."""
        service = DbSessionService(_memory_config())
        try:
            manager = DbManageService(service.engine)
            tables = manager.create_all()

            assert {
                "addresses",
                "categories",
                "companies",
                "contact_details",
                "files",
                "folders",
                "locations",
                "pages",
                "page_versions",
                "product_categories",
                "product_images",
                "product_variants",
                "products",
                "users",
            } <= set(tables)

            manager.drop_all()
            with service.engine.connect() as connection:
                remaining = connection.exec_driver_sql(
                    "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
                ).fetchall()
            assert remaining == []
        finally:
            service.dispose()


class TestRedisService:
    """Redis client ownership."""

    def test_disabled(self):
        """Should not connect when Redis is disabled."""
        service = RedisService(ConfigData(redis=RedisConfig(enabled=False)))

        assert service.is_enabled is False
        assert service.get_client() is None
        assert service.health_check() is False
        assert service.get_info() is None

    def test_enabled_without_url(self):
        """Should disable itself when no URL is configured."""
        service = RedisService(ConfigData(redis=RedisConfig(enabled=True, url="")))
        assert service.is_enabled is False

    def test_supplied_client(self):
        """Should use and close a supplied client."""
        client = fakeredis.FakeRedis()
        service = RedisService(ConfigData(), client=client)

        assert service.is_enabled is True
        assert service.get_client() is client
        assert service.health_check() is True

        service.close()
        assert service.get_client() is None
