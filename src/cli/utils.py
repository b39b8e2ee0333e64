"""Shared helpers for CLI commands."""

from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console

from src.cms.core.cache import create_cache_service
from src.cms.core.services import DbSessionService, RedisService
from src.cms.core.unit_of_work import UnitOfWork

console = Console()


def fail(message: str, error: Exception | None = None) -> typer.Exit:
    """Print an error and return the exit to raise."""
    console.print(f"[red]❌ {message}{f': {error}' if error else ''}[/red]")
    return typer.Exit(code=1)


@contextmanager
def open_unit_of_work(use_cache: bool = False) -> Iterator[UnitOfWork]:
    """A unit of work over the configured database, uncached unless asked."""
    database = DbSessionService()
    cache = create_cache_service(redis_client=RedisService().get_client()) if use_cache else None
    session = database.get_session()
    try:
        with UnitOfWork(session, cache) as uow:
            yield uow
    finally:
        session.close()
        database.dispose()
