"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from script_summarizer.config import ScriptSummarizerSettings, reset_settings
from script_summarizer.database import (
    ConnectionManager,
    InMemoryMigrationSource,
    MigrationEngine,
    RecordStore,
    Script,
)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test",
    )
    config.addinivalue_line(
        "markers",
        "unit: mark test as unit test",
    )


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Keep tests away from the user's home, config files and environment."""
    for key in list(os.environ):
        if key.startswith("SCRIPT_SUMMARIZER_"):
            monkeypatch.delenv(key, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Location of the test store file."""
    return tmp_path / "data" / "test.db"


@pytest.fixture
def settings(db_path: Path) -> ScriptSummarizerSettings:
    """Create test settings."""
    return ScriptSummarizerSettings(
        database_path=db_path,
        database_timeout=1.0,
        database_journal_mode="WAL",
        database_synchronous="NORMAL",
        database_foreign_keys=True,
    )


@pytest.fixture
def manager(
    settings: ScriptSummarizerSettings,
) -> Generator[ConnectionManager, None, None]:
    """Create a connected connection manager."""
    manager = ConnectionManager(settings)
    manager.connect()
    yield manager
    manager.close()


@pytest.fixture
def source() -> InMemoryMigrationSource:
    """Migration source with two reversible migrations."""
    return InMemoryMigrationSource(
        {
            "001_create_users.sql": (
                "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT);\n"
                "-- DOWN\n"
                "DROP TABLE users;\n"
            ),
            "002_create_posts.sql": (
                "CREATE TABLE posts (\n"
                "    id INTEGER PRIMARY KEY,\n"
                "    user_id INTEGER REFERENCES users(id),\n"
                "    body TEXT\n"
                ");\n"
                "CREATE INDEX idx_posts_user_id ON posts(user_id);\n"
                "-- DOWN\n"
                "DROP INDEX idx_posts_user_id;\n"
                "DROP TABLE posts;\n"
            ),
        }
    )


@pytest.fixture
def engine(
    manager: ConnectionManager, source: InMemoryMigrationSource
) -> MigrationEngine:
    """Migration engine over the in-memory source."""
    return MigrationEngine(manager, source)


@pytest.fixture
def store(manager: ConnectionManager) -> RecordStore:
    """Record store on the connected manager."""
    return RecordStore(manager)


@pytest.fixture
def make_script(store: RecordStore) -> Callable[..., Script]:
    """Factory saving a script with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides: Any) -> Script:
        counter["n"] += 1
        data = {
            "title": f"Script {counter['n']}",
            "file_path": f"/scripts/script_{counter['n']}.pdf",
            "content_hash": f"hash-{counter['n']}",
            "word_count": 1000 * counter["n"],
        }
        data.update(overrides)
        return store.save_script(data)

    return _make


@pytest.fixture
def table_exists(manager: ConnectionManager) -> Callable[[str], bool]:
    """Check whether a table exists in the store."""

    def _exists(name: str) -> bool:
        row = (
            manager.get_connection()
            .execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
                (name,),
            )
            .fetchone()
        )
        return row is not None

    return _exists
