"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from src.cms.api.http.deps import get_cache_service, get_database_service, get_redis_service
from src.cms.core.cache import CacheService
from src.cms.core.services import DbSessionService, RedisService
from src.cms.runtime.context import get_config

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict[str, str]:
    """Liveness probe; does not touch any dependency."""
    return {"status": "healthy", "service": get_config().app.name}


@router.get("/ready", response_model=None)
def readiness(
    database: DbSessionService = Depends(get_database_service),
    redis_service: RedisService = Depends(get_redis_service),
    cache: CacheService = Depends(get_cache_service),
) -> dict[str, Any] | JSONResponse:
    """Readiness probe.

    The database is critical and turns the response into a 503. Redis is
    not: the cache falls back to process memory without it.
    """
    config = get_config()
    checks: dict[str, Any] = {}

    db_healthy = database.health_check()
    checks["database"] = {
        "status": "healthy" if db_healthy else "unhealthy",
        "type": "sqlite" if config.database.is_sqlite else database.engine.dialect.name,
        "pool": database.get_pool_status(),
    }

    if redis_service.is_enabled:
        checks["redis"] = {
            "status": "healthy" if redis_service.health_check() else "degraded",
            "type": "redis",
        }
    else:
        checks["redis"] = {"status": "disabled", "type": "in-memory"}

    checks["cache"] = {
        "status": "enabled" if cache.enabled else "disabled",
        "backend": type(cache.storage).__name__,
        "statistics": cache.statistics().model_dump(),
    }

    response = {
        "status": "ready" if db_healthy else "not_ready",
        "environment": config.app.environment,
        "checks": checks,
    }
    if not db_healthy:
        return JSONResponse(status_code=503, content=response)
    return response
