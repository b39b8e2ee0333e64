"""Application factory: services, lifespan, request logging and routes."""

import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from loguru import logger
from starlette.responses import JSONResponse

from src.cms.api.http.app_data import ApplicationDependencies
from src.cms.api.http.routers.health import router as health_router
from src.cms.api.utils.app_startup import configure_logging
from src.cms.core.cache import create_cache_service
from src.cms.core.services import DbSessionService, RedisService
from src.cms.runtime.context import get_config


def build_dependencies() -> ApplicationDependencies:
    """Create the process-wide services from the current configuration."""
    config = get_config()
    database_service = DbSessionService(config)
    redis_service = RedisService(config)
    cache_service = create_cache_service(config, redis_service.get_client())
    return ApplicationDependencies(
        database_service=database_service,
        redis_service=redis_service,
        cache_service=cache_service,
    )


async def startup(app: FastAPI) -> None:
    """Create the services unless ``create_app`` was handed some."""
    if getattr(app.state, "app_dependencies", None) is None:
        app.state.app_dependencies = build_dependencies()
    logger.info("{} started ({})", app.title, get_config().app.environment)


async def shutdown(app: FastAPI) -> None:
    deps: ApplicationDependencies | None = getattr(app.state, "app_dependencies", None)
    if deps is not None:
        deps.redis_service.close()
        deps.database_service.dispose()
    logger.info("{} stopped", app.title)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await startup(app)
    try:
        yield
    finally:
        await shutdown(app)


REQUEST_ID_HEADER = "X-Request-ID"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 1)


async def log_requests(request: Request, call_next):
    """Tag every log line of a request with its id and log the outcome."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    started = time.perf_counter()

    with logger.contextualize(request_id=request_id):
        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "{} {} failed after {} ms: {}",
                request.method,
                request.url.path,
                _elapsed_ms(started),
                type(e).__name__,
            )
            response = JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "request_id": request_id},
            )
        else:
            logger.info(
                "{} {} -> {} in {} ms",
                request.method,
                request.url.path,
                response.status_code,
                _elapsed_ms(started),
            )
    response.headers.setdefault(REQUEST_ID_HEADER, request_id)
    return response


def create_app(dependencies: ApplicationDependencies | None = None) -> FastAPI:
    """Build the application; ``dependencies`` replaces the configured services."""
    production = get_config().app.environment == "production"
    app = FastAPI(
        title=get_config().app.name,
        lifespan=lifespan,
        docs_url=None if production else "/docs",
        redoc_url=None if production else "/redoc",
    )
    app.state.app_dependencies = dependencies
    app.middleware("http")(log_requests)
    app.include_router(health_router)
    return app


configure_logging()
app = create_app()

__all__ = ["app", "create_app", "startup", "shutdown"]


if __name__ == "__main__":
    import uvicorn

    server = get_config().app
    uvicorn.run(app, host=server.host, port=server.port, access_log=False)
