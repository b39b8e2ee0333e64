"""Main CLI application module."""

import typer

from .cache_commands import cache_app
from .content_commands import content_app
from .db_commands import db_app

app = typer.Typer(
    help="🛠️  CMS CLI - database, content and cache tools",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(db_app, name="db")
app.add_typer(content_app, name="content")
app.add_typer(cache_app, name="cache")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
