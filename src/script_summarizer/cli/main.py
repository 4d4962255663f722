"""Main CLI entry point."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from script_summarizer.cli.commands import (
    health_command,
    init_command,
    list_command,
    migrate_command,
    rollback_command,
    search_command,
    status_command,
)

app = typer.Typer(
    name="script-summarizer",
    help="Store scripts, their summaries and evaluations",
    pretty_exceptions_enable=False,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command(name="init")(init_command)
app.command(name="status")(status_command)
app.command(name="migrate")(migrate_command)
app.command(name="rollback")(rollback_command)
app.command(name="health")(health_command)
app.command(name="list")(list_command)
app.command(name="ls")(list_command)  # Alias for list command
app.command(name="search")(search_command)


@app.callback()
def main_callback(
    ctx: typer.Context,
    db_path: Annotated[
        Path | None,
        typer.Option(
            "--db-path",
            "-d",
            help="Path to the database file",
            envvar="SCRIPT_SUMMARIZER_DATABASE_PATH",
        ),
    ] = None,
    migrations: Annotated[
        Path | None,
        typer.Option(
            "--migrations",
            "-m",
            help="Directory of migration files (defaults to the packaged ones)",
        ),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            envvar="SCRIPT_SUMMARIZER_CONFIG",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging (INFO level)"),
    ] = False,
    debug: Annotated[
        bool, typer.Option("--debug", help="Enable debug logging")
    ] = False,
) -> None:
    """Configure global options."""
    log_level = "DEBUG" if debug else "INFO" if verbose else None
    ctx.obj = {
        "db_path": db_path,
        "migrations": migrations,
        "config": config,
        "log_level": log_level,
    }


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
