"""FastAPI dependency implementations."""

from collections.abc import Iterator

from fastapi import Request
from sqlmodel import Session

from src.cms.api.http.app_data import ApplicationDependencies
from src.cms.core.cache import CacheService
from src.cms.core.services import DbSessionService, RedisService
from src.cms.core.unit_of_work import UnitOfWork


def _app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_database_service(request: Request) -> DbSessionService:
    return _app_dependencies(request).database_service


def get_redis_service(request: Request) -> RedisService:
    return _app_dependencies(request).redis_service


def get_cache_service(request: Request) -> CacheService:
    return _app_dependencies(request).cache_service


def get_db_session(request: Request) -> Iterator[Session]:
    """A request-scoped session, closed when the response is sent."""
    session = get_database_service(request).get_session()
    try:
        yield session
    finally:
        session.close()


def get_unit_of_work(request: Request) -> Iterator[UnitOfWork]:
    """A request-scoped unit of work sharing the application cache."""
    session = get_database_service(request).get_session()
    try:
        with UnitOfWork(session, get_cache_service(request)) as uow:
            yield uow
    finally:
        session.close()
