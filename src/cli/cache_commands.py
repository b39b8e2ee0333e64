"""Cache inspection CLI commands."""

import typer
from rich.table import Table

from src.cms.core.cache import create_cache_service
from src.cms.core.services import RedisService

from .utils import console

cache_app = typer.Typer(help="⚡ Cache commands")


@cache_app.command("stats")
def cache_stats() -> None:
    """Show statistics for the configured cache backend."""
    redis_service = RedisService()
    try:
        cache = create_cache_service(redis_client=redis_service.get_client())
        stats = cache.statistics()
    finally:
        redis_service.close()

    table = Table(title=f"Cache ({type(cache.storage).__name__})")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("enabled", str(cache.enabled))
    for name, value in stats.model_dump().items():
        table.add_row(name, f"{value:.2f}" if isinstance(value, float) else str(value))
    console.print(table)


@cache_app.command("clear")
def cache_clear(force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation")) -> None:
    """Remove every cached entry."""
    if not force and not typer.confirm("Clear the whole cache?"):
        raise typer.Abort()
    redis_service = RedisService()
    try:
        create_cache_service(redis_client=redis_service.get_client()).clear()
    finally:
        redis_service.close()
    console.print("[green]✅ Cache cleared[/green]")
