"""Wiring of the persistence components for CLI commands."""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer

from script_summarizer.config import (
    ScriptSummarizerSettings,
    configure_logging,
    get_settings_for_cli,
)
from script_summarizer.database import ConnectionManager, MigrationEngine, RecordStore


@dataclass
class Store:
    """The components one command works with, sharing one connection."""

    settings: ScriptSummarizerSettings
    manager: ConnectionManager
    migrations: MigrationEngine
    records: RecordStore


def settings_from_context(ctx: typer.Context) -> ScriptSummarizerSettings:
    """Build settings from the global options stored on the context.

    Precedence: ``--db-path``/``--migrations`` > ``--config`` file > standard
    config files > environment > defaults.
    """
    options: dict[str, Any] = ctx.obj if isinstance(ctx.obj, dict) else {}
    config_file: Path | None = options.get("config")
    overrides = {
        "database_path": options.get("db_path"),
        "migrations_path": options.get("migrations"),
        "log_level": options.get("log_level"),
    }
    settings = get_settings_for_cli(config_file, overrides)
    if overrides["log_level"]:
        configure_logging(settings)
    return settings


@contextmanager
def open_store(ctx: typer.Context) -> Generator[Store, None, None]:
    """Connect to the configured store for the duration of a command.

    Example:
        with open_store(ctx) as store:
            store.migrations.run_migrations()
    """
    settings = settings_from_context(ctx)
    manager = ConnectionManager(settings)
    manager.connect()
    try:
        yield Store(
            settings=settings,
            manager=manager,
            migrations=MigrationEngine(manager, settings.migrations_path),
            records=RecordStore(manager),
        )
    finally:
        manager.close()
