from __future__ import annotations

from collections.abc import Generator

import pytest
from sqlalchemy import Engine, StaticPool
from sqlmodel import Session, SQLModel, create_engine

from src.cms.core.cache import CacheService
from src.cms.core.storage.cache_storage import InMemoryCacheStorage
from src.cms.core.unit_of_work import UnitOfWork


@pytest.fixture
def engine() -> Generator[Engine]:
    """A private in-memory database with the full CMS schema."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Registers every table on the metadata
    import src.cms.entities  # noqa: F401

    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine: Engine) -> Generator[Session]:
    """Create a fresh database session for testing."""
    with Session(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def cache() -> CacheService:
    return CacheService(InMemoryCacheStorage(max_entries=1000))


@pytest.fixture
def uow(session: Session) -> Generator[UnitOfWork]:
    """Unit of work without a cache."""
    with UnitOfWork(session) as unit_of_work:
        yield unit_of_work


@pytest.fixture
def cached_uow(session: Session, cache: CacheService) -> Generator[UnitOfWork]:
    """Unit of work whose repositories read through ``cache``."""
    with UnitOfWork(session, cache) as unit_of_work:
        yield unit_of_work
