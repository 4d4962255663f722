"""Lifecycle management for the single connection to the embedded store.

A ``ConnectionManager`` is constructed explicitly and handed to the migration
engine and the record store. It lazily opens one SQLite connection, configures
integrity and journaling pragmas, runs the schema bootstrap, and exposes
health and lifecycle queries. Nothing else opens a second handle to the file.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from script_summarizer.config import ScriptSummarizerSettings, get_logger
from script_summarizer.exceptions import (
    DatabaseConnectionError,
    NotConnectedError,
    SchemaError,
)

from .schema import SchemaBootstrap
from .sql import register_functions

logger = get_logger(__name__)

TRANSACTION_MODES = frozenset({"DEFERRED", "IMMEDIATE", "EXCLUSIVE"})


def _handle_is_open(conn: sqlite3.Connection) -> bool:
    """Return True if the sqlite3 handle has not been closed."""
    try:
        # Any attribute that checks the handle raises once it is closed
        conn.total_changes  # noqa: B018
    except sqlite3.ProgrammingError:
        return False
    return True


class ConnectionManager:
    """Owns the one persistent connection to the store file."""

    def __init__(
        self,
        settings: ScriptSummarizerSettings,
        db_path: Path | str | None = None,
        bootstrap: SchemaBootstrap | None = None,
    ) -> None:
        """Initialize the connection manager.

        Args:
            settings: Configuration settings
            db_path: Database path (defaults to settings.database_path)
            bootstrap: Schema bootstrap run on first connect
        """
        self.settings = settings
        self.db_path = Path(db_path) if db_path is not None else settings.database_path
        self.bootstrap = bootstrap or SchemaBootstrap()
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Open the store, configure it and bootstrap the schema.

        Calling ``connect()`` again before ``close()`` returns the same handle.

        Returns:
            The live connection

        Raises:
            DatabaseConnectionError: If the file cannot be opened or the schema
                bootstrap fails
        """
        if self._conn is not None and _handle_is_open(self._conn):
            return self._conn
        self._conn = None

        conn: sqlite3.Connection | None = None
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(
                str(self.db_path),
                timeout=self.settings.database_timeout,
                isolation_level=None,  # autocommit; transactions are explicit
            )
            conn.row_factory = sqlite3.Row
            self._configure_connection(conn)
            self.bootstrap.apply(conn)
        except (OSError, sqlite3.Error, SchemaError) as e:
            if conn is not None:
                conn.close()
            logger.error(
                "Failed to connect to database",
                db_path=str(self.db_path),
                error=str(e),
            )
            raise DatabaseConnectionError(
                f"Failed to connect to database: {e}",
                db_path=self.db_path,
                cause=e,
            ) from e

        self._conn = conn
        logger.info("Database connected", db_path=str(self.db_path))
        return conn

    def _configure_connection(self, conn: sqlite3.Connection) -> None:
        """Apply integrity and durability pragmas to a fresh handle."""
        register_functions(conn)
        if self.settings.database_foreign_keys:
            conn.execute("PRAGMA foreign_keys = ON")
        else:
            conn.execute("PRAGMA foreign_keys = OFF")
        conn.execute(f"PRAGMA journal_mode = {self.settings.database_journal_mode}")
        conn.execute(f"PRAGMA synchronous = {self.settings.database_synchronous}")

    def close(self) -> None:
        """Release the handle and return to the disconnected state.

        Never raises, including when the handle was already closed elsewhere.
        """
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            if _handle_is_open(conn) and conn.in_transaction:
                conn.rollback()
            conn.close()
        except sqlite3.Error as e:
            logger.warning("Error while closing database", error=str(e))
        logger.info("Database closed", db_path=str(self.db_path))

    def is_connected(self) -> bool:
        """Return True only if a handle exists and reports itself open."""
        return self._conn is not None and _handle_is_open(self._conn)

    def get_connection(self, operation: str | None = None) -> sqlite3.Connection:
        """Return the live handle without ever opening one.

        Args:
            operation: Name of the calling operation, used in the error

        Raises:
            NotConnectedError: If never connected or currently closed
        """
        if self._conn is None or not _handle_is_open(self._conn):
            raise NotConnectedError(operation)
        return self._conn

    def health_check(self) -> bool:
        """Run a trivial round-trip query; False on any failure."""
        if self._conn is None:
            return False
        try:
            row = self._conn.execute("SELECT 1 AS ok").fetchone()
        except sqlite3.Error:
            return False
        return row is not None and row["ok"] == 1

    @contextmanager
    def transaction(
        self, mode: str = "DEFERRED", operation: str | None = None
    ) -> Generator[sqlite3.Connection, None, None]:
        """Execute operations in a single atomic transaction.

        Args:
            mode: SQLite transaction mode (DEFERRED, IMMEDIATE or EXCLUSIVE)
            operation: Name of the calling operation, used in errors

        Yields:
            The live connection inside ``BEGIN``

        Example:
            with manager.transaction() as conn:
                conn.execute("DELETE FROM summaries WHERE script_id = ?", (1,))
                conn.execute("DELETE FROM scripts WHERE id = ?", (1,))
        """
        mode = mode.upper()
        if mode not in TRANSACTION_MODES:
            raise ValueError(f"Unsupported transaction mode: {mode}")

        conn = self.get_connection(operation)
        conn.execute(f"BEGIN {mode}")
        try:
            yield conn
            conn.execute("COMMIT")
        except BaseException as e:
            logger.error(
                "Transaction failed, rolling back",
                operation=operation,
                error=str(e),
            )
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise

    def __enter__(self) -> ConnectionManager:
        """Context manager entry; connects."""
        self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit; closes."""
        self.close()
