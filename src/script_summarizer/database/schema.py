"""Baseline schema definitions for the Script Summarizer store.

The baseline is applied exactly once per fresh store file. Fresh files are
recognized by ``PRAGMA user_version = 0``; once the baseline has been applied
the user version is stamped so later connects leave the schema to the
migration engine. The migration ledger table is ensured on every connect.
"""

from __future__ import annotations

import sqlite3

from script_summarizer.config import get_logger
from script_summarizer.exceptions import SchemaError

from .sql import iter_statements

logger = get_logger(__name__)

# Stamped into PRAGMA user_version after the baseline is applied
BASELINE_SCHEMA_VERSION = 1

LEDGER_TABLE = "migrations"

BASELINE_SCHEMA_SQL = """
-- Scripts uploaded by the user
CREATE TABLE IF NOT EXISTS scripts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    file_path TEXT NOT NULL,
    content_hash TEXT NOT NULL,
    word_count INTEGER DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Generated summaries, append-only history per script
CREATE TABLE IF NOT EXISTS summaries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    script_id INTEGER NOT NULL,
    plot_overview TEXT,
    characters TEXT,        -- JSON string
    themes TEXT,            -- JSON string
    production_notes TEXT,  -- JSON string
    genre TEXT,
    model_used TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (script_id) REFERENCES scripts(id) ON DELETE CASCADE
);

-- User ratings and notes, one row per script
CREATE TABLE IF NOT EXISTS script_evaluations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    script_id INTEGER NOT NULL,
    rating INTEGER CHECK (rating IS NULL OR (rating >= 1 AND rating <= 5)),
    notes TEXT,
    tags TEXT,              -- JSON string
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (script_id) REFERENCES scripts(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_scripts_content_hash ON scripts(content_hash);
CREATE INDEX IF NOT EXISTS idx_scripts_created_at ON scripts(created_at);
CREATE INDEX IF NOT EXISTS idx_summaries_script_id ON summaries(script_id);
CREATE INDEX IF NOT EXISTS idx_evaluations_script_id
    ON script_evaluations(script_id);
"""

LEDGER_SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS {LEDGER_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    version TEXT UNIQUE NOT NULL,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


class SchemaBootstrap:
    """Applies the baseline schema and ensures the migration ledger exists."""

    def __init__(
        self,
        baseline_sql: str = BASELINE_SCHEMA_SQL,
        baseline_version: int = BASELINE_SCHEMA_VERSION,
    ) -> None:
        """Initialize the bootstrap.

        Args:
            baseline_sql: DDL applied to a fresh store file
            baseline_version: Value stamped into ``PRAGMA user_version``
        """
        if baseline_version < 1:
            raise ValueError("baseline_version must be a positive integer")
        self.baseline_sql = baseline_sql
        self.baseline_version = baseline_version

    def is_fresh(self, conn: sqlite3.Connection) -> bool:
        """Return True if the baseline has never been applied to this store."""
        return int(conn.execute("PRAGMA user_version").fetchone()[0]) == 0

    def apply(self, conn: sqlite3.Connection) -> bool:
        """Bring a newly opened connection to a usable schema.

        Everything happens in one transaction, so a failure leaves no
        partially-initialized schema behind.

        Args:
            conn: Open connection in autocommit mode

        Returns:
            True if the baseline was applied, False if only the ledger was ensured

        Raises:
            SchemaError: If any bootstrap statement fails
        """
        applied_baseline = False
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                if self.is_fresh(conn):
                    for statement in iter_statements(self.baseline_sql):
                        conn.execute(statement)
                    conn.execute(f"PRAGMA user_version = {self.baseline_version:d}")
                    applied_baseline = True
                for statement in iter_statements(LEDGER_SCHEMA_SQL):
                    conn.execute(statement)
                conn.execute("COMMIT")
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
        except sqlite3.Error as e:
            logger.error("Schema bootstrap failed", error=str(e))
            raise SchemaError("Failed to initialize schema", cause=e) from e

        if applied_baseline:
            logger.info("Applied baseline schema", version=self.baseline_version)
        return applied_baseline


def get_table_names(conn: sqlite3.Connection) -> list[str]:
    """List user tables in the store, sorted by name."""
    cursor = conn.execute(
        "SELECT name FROM sqlite_master "
        "WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
    )
    return [row[0] for row in cursor.fetchall()]
