"""Versioned migration engine for the Script Summarizer store.

Pending migrations are applied forward in one transaction, recording a ledger
row for each; rollbacks undo applied migrations newest-first in one
transaction, deleting their ledger rows. Either the whole batch commits or
nothing does.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from script_summarizer.config import get_logger
from script_summarizer.exceptions import MigrationError, RollbackError

from .connection_manager import ConnectionManager
from .migration_source import (
    MigrationSource,
    MigrationUnit,
    resolve_migration_source,
)
from .schema import LEDGER_SCHEMA_SQL, LEDGER_TABLE
from .sql import execute_script, find_transaction_control

logger = get_logger(__name__)


@dataclass(frozen=True)
class MigrationRecord:
    """A ledger row: one applied migration version."""

    version: str
    applied_at: str | None = None
    id: int | None = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> MigrationRecord:
        """Build a record from a ledger row."""
        keys = row.keys()
        return cls(
            version=str(row["version"]),
            applied_at=row["applied_at"] if "applied_at" in keys else None,
            id=row["id"] if "id" in keys else None,
        )


@dataclass
class MigrationStatus:
    """Applied ledger rows and the migrations still waiting to run."""

    applied: list[MigrationRecord] = field(default_factory=list)
    pending: list[MigrationUnit] = field(default_factory=list)

    @property
    def current_version(self) -> str | None:
        """Highest applied version, or None if nothing has been applied."""
        if not self.applied:
            return None
        return max(record.version for record in self.applied)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "current_version": self.current_version,
            "applied": [
                {"version": r.version, "applied_at": r.applied_at}
                for r in self.applied
            ],
            "pending": [
                {"version": u.version, "description": u.description}
                for u in self.pending
            ],
        }


class MigrationEngine:
    """Applies and rolls back migrations against the managed connection."""

    def __init__(
        self,
        connection_manager: ConnectionManager,
        source: MigrationSource | Path | str | None = None,
    ) -> None:
        """Initialize the migration engine.

        Args:
            connection_manager: Owner of the live connection
            source: Where migrations come from; a directory path, any
                ``MigrationSource``, or None for the packaged migrations
        """
        self.connection_manager = connection_manager
        self.source = resolve_migration_source(source)

    def get_applied_migrations(self) -> list[MigrationRecord]:
        """Read the ledger, ordered by version.

        A missing ledger table means nothing has been applied.
        """
        conn = self.connection_manager.get_connection("get_applied_migrations")
        try:
            cursor = conn.execute(f"SELECT * FROM {LEDGER_TABLE} ORDER BY version")
        except sqlite3.OperationalError as e:
            logger.warning("Migration ledger unavailable", error=str(e))
            return []
        return [MigrationRecord.from_row(row) for row in cursor.fetchall()]

    def get_available_migrations(self) -> list[MigrationUnit]:
        """Every migration the source provides, ordered by version."""
        return self.source.load()

    def get_status(self) -> MigrationStatus:
        """Report applied and pending migrations without changing anything."""
        applied = self.get_applied_migrations()
        applied_versions = {record.version for record in applied}
        pending = [
            unit
            for unit in self.get_available_migrations()
            if unit.version not in applied_versions
        ]
        return MigrationStatus(applied=applied, pending=pending)

    def get_pending_migrations(self) -> list[MigrationUnit]:
        """Migrations not yet recorded in the ledger, ascending by version."""
        return sorted(self.get_status().pending, key=lambda unit: unit.version)

    def needs_migration(self) -> bool:
        """Return True if any migration is pending."""
        return bool(self.get_status().pending)

    def run_migrations(self) -> list[MigrationUnit]:
        """Apply every pending migration in one transaction.

        Returns:
            The migrations applied, in order (empty if none were pending)

        Raises:
            MigrationError: If any forward script fails; nothing from the batch
                is kept and the error names the failing version
        """
        pending = self.get_pending_migrations()
        if not pending:
            logger.info("No pending migrations")
            return []

        for unit in pending:
            statement = find_transaction_control(unit.up)
            if statement is not None:
                raise MigrationError(
                    f"Migration {unit.version} contains transaction control: "
                    f"{statement}",
                    version=unit.version,
                    hint="Remove BEGIN, COMMIT, END and ROLLBACK statements; "
                    "each batch runs in its own transaction",
                )

        logger.info(f"Applying {len(pending)} pending migrations")
        with self.connection_manager.transaction(
            "IMMEDIATE", operation="run_migrations"
        ) as conn:
            execute_script(conn, LEDGER_SCHEMA_SQL)
            for unit in pending:
                logger.info(f"Applying {unit}")
                try:
                    execute_script(conn, unit.up)
                    conn.execute(
                        f"INSERT INTO {LEDGER_TABLE} (version) VALUES (?)",
                        (unit.version,),
                    )
                except sqlite3.Error as e:
                    raise MigrationError(
                        f"Migration {unit.version} failed: {e}",
                        version=unit.version,
                        cause=e,
                        hint="No migration from this batch was applied",
                    ) from e
                logger.info(f"Migration {unit.version} completed")

        logger.info("Database migration completed successfully")
        return pending

    def _plan_rollback(self, target_version: str | None) -> list[MigrationUnit]:
        """Resolve the units to undo, newest first, before touching the store.

        Raises:
            RollbackError: If an applied version has no unit or no backward script
        """
        applied = sorted(
            self.get_applied_migrations(),
            key=lambda record: record.version,
            reverse=True,
        )
        units = {unit.version: unit for unit in self.get_available_migrations()}

        plan: list[MigrationUnit] = []
        for record in applied:
            if target_version is not None and record.version <= target_version:
                break
            unit = units.get(record.version)
            if unit is None:
                raise RollbackError(
                    f"Cannot rollback migration {record.version}: "
                    "migration not found",
                    version=record.version,
                    hint="Restore the migration file before rolling back",
                )
            if unit.down is None:
                raise RollbackError(
                    f"Cannot rollback migration {record.version}: "
                    "no down migration found",
                    version=record.version,
                    hint="Add a '-- DOWN' section to the migration file",
                )
            statement = find_transaction_control(unit.down)
            if statement is not None:
                raise RollbackError(
                    f"Cannot rollback migration {record.version}: backward "
                    f"script contains transaction control: {statement}",
                    version=record.version,
                    hint="Remove BEGIN, COMMIT, END and ROLLBACK statements",
                )
            plan.append(unit)
        return plan

    def rollback(self, target_version: str | None = None) -> list[MigrationUnit]:
        """Undo applied migrations newer than ``target_version``.

        Args:
            target_version: Version to keep; everything above it is rolled
                back. None rolls back every applied migration.

        Returns:
            The migrations rolled back, newest first

        Raises:
            RollbackError: If a migration cannot be resolved, has no backward
                script, or its backward script fails; the ledger and schema
                are left unchanged
        """
        plan = self._plan_rollback(target_version)
        if not plan:
            logger.info("Nothing to roll back", target_version=target_version)
            return []

        with self.connection_manager.transaction(
            "IMMEDIATE", operation="rollback"
        ) as conn:
            for unit in plan:
                logger.warning(f"Rolling back {unit}")
                try:
                    # plan only holds units with a backward script
                    execute_script(conn, unit.down or "")
                    conn.execute(
                        f"DELETE FROM {LEDGER_TABLE} WHERE version = ?",
                        (unit.version,),
                    )
                except sqlite3.Error as e:
                    raise RollbackError(
                        f"Rollback of migration {unit.version} failed: {e}",
                        version=unit.version,
                        cause=e,
                    ) from e
                logger.info(f"Migration {unit.version} rolled back")

        return plan

    def get_migration_history(self) -> list[dict[str, Any]]:
        """Applied migrations joined with their descriptions, oldest first."""
        units = {unit.version: unit for unit in self.get_available_migrations()}
        history = []
        for record in self.get_applied_migrations():
            unit = units.get(record.version)
            history.append(
                {
                    "version": record.version,
                    "applied_at": record.applied_at,
                    "description": unit.description if unit else None,
                }
            )
        return history
