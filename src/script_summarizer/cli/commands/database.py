"""CLI commands for the store and its migrations."""

from __future__ import annotations

import json
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from script_summarizer.cli.utils.error_handler import handle_cli_error
from script_summarizer.cli.utils.store import open_store
from script_summarizer.exceptions import ScriptSummarizerError

console = Console()


def init_command(ctx: typer.Context) -> None:
    """Create the store if needed and apply every pending migration."""
    try:
        with open_store(ctx) as store:
            applied = store.migrations.run_migrations()
            db_path = store.manager.db_path
    except (ScriptSummarizerError, OSError) as e:
        handle_cli_error(e)

    console.print(f"[green]✓[/green] Database ready at [bold]{db_path}[/bold]")
    if applied:
        console.print(f"Applied {len(applied)} migration(s)")


def status_command(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show applied and pending migrations."""
    try:
        with open_store(ctx) as store:
            status = store.migrations.get_status()
            descriptions = {
                unit.version: unit.description
                for unit in store.migrations.get_available_migrations()
            }
            db_path = store.manager.db_path
    except (ScriptSummarizerError, OSError) as e:
        handle_cli_error(e)

    if json_output:
        payload = {"database": str(db_path), **status.to_dict()}
        typer.echo(json.dumps(payload, indent=2))
        return

    console.print(f"[bold cyan]Database:[/bold cyan] {db_path}")
    console.print(f"Current version: {status.current_version or 'none'}\n")

    table = Table(title="Migrations")
    table.add_column("Version", style="cyan")
    table.add_column("Description")
    table.add_column("State")
    for record in status.applied:
        table.add_row(
            record.version,
            descriptions.get(record.version, "[dim]unknown[/dim]"),
            f"[green]applied {record.applied_at or ''}[/green]".strip(),
        )
    for unit in status.pending:
        table.add_row(unit.version, unit.description, "[yellow]pending[/yellow]")
    console.print(table)


def migrate_command(
    ctx: typer.Context,
    check: Annotated[
        bool,
        typer.Option(
            "--check",
            "-c",
            help="Check if migrations are needed without applying them",
        ),
    ] = False,
) -> None:
    """Apply pending migrations.

    Use --check to list pending migrations without applying them; the command
    then exits with status 1 when any are pending.
    """
    try:
        with open_store(ctx) as store:
            if check:
                pending = store.migrations.get_pending_migrations()
                if not pending:
                    console.print("[green]Database schema is up to date[/green]")
                    return
                pending_str = ", ".join(unit.version for unit in pending)
                console.print(f"[yellow]Pending migrations: {pending_str}[/yellow]")
                console.print("\nRun 'script-summarizer migrate' to apply them.")
                raise typer.Exit(1)

            applied = store.migrations.run_migrations()
            current = store.migrations.get_status().current_version
    except (ScriptSummarizerError, OSError) as e:
        handle_cli_error(e, verbose=True)

    if applied:
        console.print(
            f"[green]Successfully applied {len(applied)} migration(s)[/green]"
        )
        console.print(f"Database schema is now at version {current}")
    else:
        console.print("[green]Database schema is already up to date[/green]")


def rollback_command(
    ctx: typer.Context,
    to: Annotated[
        str | None,
        typer.Option(
            "--to",
            help="Version to keep; newer migrations are rolled back",
        ),
    ] = None,
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Roll back without asking")
    ] = False,
) -> None:
    """Roll back applied migrations, newest first."""
    if not yes:
        target = f"to version {to}" if to else "every applied migration"
        typer.confirm(f"Roll back {target}?", abort=True)

    try:
        with open_store(ctx) as store:
            rolled_back = store.migrations.rollback(to)
    except (ScriptSummarizerError, OSError) as e:
        handle_cli_error(e, verbose=True)

    if not rolled_back:
        console.print("[green]Nothing to roll back[/green]")
        return
    for unit in rolled_back:
        console.print(f"[yellow]Rolled back {unit}[/yellow]")


def health_command(ctx: typer.Context) -> None:
    """Check that the store opens and answers a query."""
    try:
        with open_store(ctx) as store:
            healthy = store.manager.health_check()
            db_path = store.manager.db_path
    except (ScriptSummarizerError, OSError) as e:
        handle_cli_error(e)

    if not healthy:
        console.print(f"[red]✗ Database at {db_path} is not healthy[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Database at {db_path} is healthy")
