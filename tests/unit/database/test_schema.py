"""Tests for the schema bootstrap."""

import sqlite3
from collections.abc import Generator

import pytest

from script_summarizer.database import ConnectionManager, SchemaBootstrap
from script_summarizer.database.schema import (
    BASELINE_SCHEMA_VERSION,
    LEDGER_TABLE,
    get_table_names,
)
from script_summarizer.exceptions import SchemaError


@pytest.fixture
def conn() -> Generator[sqlite3.Connection, None, None]:
    """Bare in-memory connection in autocommit mode."""
    conn = sqlite3.connect(":memory:", isolation_level=None)
    yield conn
    conn.close()


class TestSchemaBootstrap:
    """Test baseline creation and ledger provisioning."""

    def test_fresh_store_gets_baseline_and_ledger(
        self, conn: sqlite3.Connection
    ) -> None:
        """A fresh store receives every domain table plus the ledger."""
        assert SchemaBootstrap().apply(conn) is True
        assert get_table_names(conn) == [
            LEDGER_TABLE,
            "script_evaluations",
            "scripts",
            "summaries",
        ]
        assert conn.execute("PRAGMA user_version").fetchone()[0] == (
            BASELINE_SCHEMA_VERSION
        )

    def test_content_hash_index(self, conn: sqlite3.Connection) -> None:
        """Duplicate detection is backed by an index on content_hash."""
        SchemaBootstrap().apply(conn)
        indexes = {
            row[1]: row for row in conn.execute("PRAGMA index_list(scripts)").fetchall()
        }
        assert "idx_scripts_content_hash" in indexes

    def test_baseline_applied_once(self, conn: sqlite3.Connection) -> None:
        """A second bootstrap only ensures the ledger."""
        bootstrap = SchemaBootstrap()
        bootstrap.apply(conn)
        conn.execute("DROP TABLE summaries")

        assert bootstrap.apply(conn) is False
        assert "summaries" not in get_table_names(conn)

    def test_ledger_restored_when_missing(self, conn: sqlite3.Connection) -> None:
        """The ledger is ensured on every bootstrap."""
        bootstrap = SchemaBootstrap()
        bootstrap.apply(conn)
        conn.execute(f"DROP TABLE {LEDGER_TABLE}")

        bootstrap.apply(conn)
        assert LEDGER_TABLE in get_table_names(conn)

    def test_failure_leaves_no_partial_schema(
        self, conn: sqlite3.Connection
    ) -> None:
        """A failing statement rolls back the whole bootstrap."""
        bootstrap = SchemaBootstrap(
            baseline_sql="CREATE TABLE first (id INTEGER);\nNOT VALID SQL;"
        )

        with pytest.raises(SchemaError) as exc_info:
            bootstrap.apply(conn)

        assert isinstance(exc_info.value.cause, sqlite3.Error)
        assert get_table_names(conn) == []
        assert conn.execute("PRAGMA user_version").fetchone()[0] == 0
        assert not conn.in_transaction

    def test_invalid_baseline_version(self) -> None:
        """The stamped version must be positive."""
        with pytest.raises(ValueError, match="baseline_version"):
            SchemaBootstrap(baseline_version=0)

    def test_runs_on_connect(self, manager: ConnectionManager) -> None:
        """connect hands back a fully bootstrapped store."""
        tables = get_table_names(manager.get_connection())
        assert {"scripts", "summaries", "script_evaluations", LEDGER_TABLE} <= set(
            tables
        )
