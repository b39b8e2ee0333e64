"""Database management CLI commands."""

import typer
from rich.table import Table

from src.cms.core.services import DbManageService, DbSessionService
from src.cms.runtime.context import get_config

from .utils import console, fail

db_app = typer.Typer(help="🗄️  Database commands")


@db_app.command("init")
def init_db() -> None:
    """Create every CMS table that does not exist yet."""
    database = DbSessionService()
    try:
        tables = DbManageService(database.engine).create_all()
    except Exception as e:
        raise fail("Failed to initialize database", e) from e
    finally:
        database.dispose()

    console.print(f"[green]✅ Database ready with {len(tables)} tables[/green]")
    for name in tables:
        console.print(f"  • {name}")


@db_app.command("health")
def db_health() -> None:
    """Check database connectivity and show pool status."""
    database = DbSessionService()
    try:
        healthy = database.health_check()
        pool = database.get_pool_status()
    finally:
        database.dispose()

    table = Table(title="Database")
    table.add_column("Check", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("URL", get_config().database.url.split("@")[-1])
    table.add_row("Status", "✅ healthy" if healthy else "❌ unhealthy")
    for key, value in pool.items():
        table.add_row(f"pool.{key}", str(value))
    console.print(table)

    if not healthy:
        raise typer.Exit(code=1)
