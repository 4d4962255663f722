"""Error handling utilities for CLI commands."""

from __future__ import annotations

from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from script_summarizer.config import get_logger
from script_summarizer.exceptions import ScriptSummarizerError

logger = get_logger(__name__)
console = Console(stderr=True)


def handle_cli_error(
    error: Exception, verbose: bool = False, exit_code: int = 1
) -> NoReturn:
    """Print an error with its hint and exit.

    Args:
        error: The exception that was raised
        verbose: Whether to show the error details
        exit_code: Exit code to use when exiting
    """
    if isinstance(error, ScriptSummarizerError):
        console.print(f"[red]✗ {escape(error.message)}[/red]")

        if error.hint:
            console.print(f"[yellow]→ {escape(error.hint)}[/yellow]")

        if verbose and error.details:
            console.print("\n[dim]Details:[/dim]")
            for key, value in error.details.items():
                console.print(f"  [dim]{key}:[/dim] {escape(str(value))}")

        logger.error(
            "Command failed",
            error_type=type(error).__name__,
            message=error.message,
            details=error.details,
        )
    elif isinstance(error, FileNotFoundError):
        console.print(f"[red]✗ File not found: {escape(str(error))}[/red]")
        console.print("[yellow]→ Check that the file path is correct[/yellow]")
        logger.error("File not found", error=str(error))

    else:
        console.print(f"[red]✗ Unexpected error: {escape(str(error))}[/red]")
        logger.error(
            "Unexpected error occurred",
            error=str(error),
            error_type=type(error).__name__,
            exc_info=True,
        )

    raise typer.Exit(exit_code) from error
