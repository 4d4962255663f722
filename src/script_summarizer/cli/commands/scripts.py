"""CLI commands for browsing stored scripts."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from script_summarizer.cli.utils.error_handler import handle_cli_error
from script_summarizer.cli.utils.store import open_store
from script_summarizer.database import Script
from script_summarizer.exceptions import ScriptSummarizerError

console = Console()


def _print_scripts(scripts: list[Script], title: str) -> None:
    if not scripts:
        console.print("[yellow]No scripts found.[/yellow]")
        return

    table = Table(title=title)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("File")
    table.add_column("Words", justify="right")
    table.add_column("Created")

    for script in scripts:
        table.add_row(
            str(script.id),
            script.title,
            script.file_path,
            f"{script.word_count:,}",
            script.created_at.strftime("%Y-%m-%d %H:%M") if script.created_at else "",
        )
    console.print(table)


def list_command(ctx: typer.Context) -> None:
    """List stored scripts, newest first."""
    try:
        with open_store(ctx) as store:
            scripts = store.records.get_all_scripts()
    except (ScriptSummarizerError, OSError) as e:
        handle_cli_error(e)

    _print_scripts(scripts, "Scripts")


def search_command(
    ctx: typer.Context,
    query: Annotated[str, typer.Argument(help="Text to find in titles or paths")],
) -> None:
    """Search scripts by title or file path."""
    try:
        with open_store(ctx) as store:
            scripts = store.records.search_scripts(query)
    except (ScriptSummarizerError, OSError) as e:
        handle_cli_error(e)

    _print_scripts(scripts, f"Scripts matching '{query}'")
