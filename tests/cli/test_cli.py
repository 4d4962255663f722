"""Tests for the command line interface."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from script_summarizer.cli.main import app
from script_summarizer.config import ScriptSummarizerSettings
from script_summarizer.database import ConnectionManager, RecordStore

runner = CliRunner()


def flat(text: str) -> str:
    """Collapse the line wrapping rich applies to narrow terminals."""
    return " ".join(text.split())


@pytest.fixture
def cli_db(tmp_path: Path) -> Path:
    """Store file used by CLI invocations."""
    return tmp_path / "cli" / "store.db"


@pytest.fixture
def migrations_dir(tmp_path: Path) -> Path:
    """Directory with one reversible and one irreversible migration."""
    path = tmp_path / "migrations"
    path.mkdir()
    (path / "001_create_notes.sql").write_text(
        "CREATE TABLE notes (id INTEGER);\n-- DOWN\nDROP TABLE notes;\n"
    )
    (path / "002_seed_notes.sql").write_text("INSERT INTO notes VALUES (1);\n")
    return path


def invoke(db: Path, *args: str, **kwargs):
    """Run the CLI against a specific store file."""
    return runner.invoke(app, ["--db-path", str(db), *args], **kwargs)


class TestInit:
    """Test the init command."""

    def test_creates_store(self, cli_db: Path) -> None:
        """init creates the store and applies the packaged migrations."""
        result = invoke(cli_db, "init")

        assert result.exit_code == 0, result.output
        assert "Database ready" in flat(result.output)
        assert "Applied 1 migration(s)" in flat(result.output)
        assert cli_db.exists()

    def test_second_init_applies_nothing(self, cli_db: Path) -> None:
        """Running init again leaves the ledger as it is."""
        invoke(cli_db, "init")
        result = invoke(cli_db, "init")

        assert result.exit_code == 0
        assert "Applied" not in result.output

    def test_config_file(self, tmp_path: Path) -> None:
        """The database path can come from a config file."""
        db = tmp_path / "from-config.db"
        config = tmp_path / "settings.yaml"
        config.write_text(f"database_path: {db}\n")

        result = runner.invoke(app, ["--config", str(config), "init"])

        assert result.exit_code == 0, result.output
        assert db.exists()

    def test_missing_config_file(self, tmp_path: Path) -> None:
        """A missing config file is reported and fails the command."""
        result = runner.invoke(app, ["--config", str(tmp_path / "no.yaml"), "init"])

        assert result.exit_code == 1
        assert "File not found" in flat(result.output)


class TestStatus:
    """Test the status command."""

    def test_json_before_migrating(self, cli_db: Path) -> None:
        """A fresh store reports every packaged migration as pending."""
        result = invoke(cli_db, "status", "--json")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["applied"] == []
        assert [item["version"] for item in data["pending"]] == ["001"]
        assert data["current_version"] is None

    def test_json_after_init(self, cli_db: Path) -> None:
        """Applied migrations are listed with the current version."""
        invoke(cli_db, "init")
        data = json.loads(invoke(cli_db, "status", "--json").stdout)

        assert data["current_version"] == "001"
        assert data["pending"] == []

    def test_table_output(self, cli_db: Path, migrations_dir: Path) -> None:
        """The table shows applied and pending migrations."""
        invoke(cli_db, "--migrations", str(migrations_dir), "init")
        (migrations_dir / "003_more_notes.sql").write_text("SELECT 1;\n")

        result = invoke(cli_db, "--migrations", str(migrations_dir), "status")

        assert result.exit_code == 0, result.output
        output = flat(result.output)
        assert "Current version: 002" in output
        assert "more notes" in output
        assert "pending" in output


class TestMigrate:
    """Test the migrate command."""

    def test_check_reports_pending(self, cli_db: Path, migrations_dir: Path) -> None:
        """--check lists pending versions and exits non-zero."""
        args = ("--migrations", str(migrations_dir))
        result = invoke(cli_db, *args, "migrate", "--check")

        assert result.exit_code == 1
        assert "Pending migrations: 001, 002" in flat(result.output)

    def test_apply_then_check(self, cli_db: Path, migrations_dir: Path) -> None:
        """migrate applies everything and --check then passes."""
        args = ("--migrations", str(migrations_dir))
        result = invoke(cli_db, *args, "migrate")

        assert result.exit_code == 0, result.output
        assert "Successfully applied 2 migration(s)" in flat(result.output)
        assert "version 002" in flat(result.output)

        check = invoke(cli_db, *args, "migrate", "--check")
        assert check.exit_code == 0
        assert "up to date" in check.output

    def test_already_up_to_date(self, cli_db: Path) -> None:
        """Migrating a current store changes nothing."""
        invoke(cli_db, "migrate")
        result = invoke(cli_db, "migrate")

        assert result.exit_code == 0
        assert "already up to date" in flat(result.output)

    def test_failing_migration(self, cli_db: Path, tmp_path: Path) -> None:
        """A broken migration is reported with its version."""
        broken = tmp_path / "broken"
        broken.mkdir()
        (broken / "001_broken.sql").write_text("CREATE TABLE (;\n")

        result = invoke(cli_db, "--migrations", str(broken), "migrate")

        assert result.exit_code == 1
        assert "Migration 001 failed" in flat(result.output)


class TestRollback:
    """Test the rollback command."""

    def test_rollback_to_version(self, cli_db: Path, tmp_path: Path) -> None:
        """--to keeps the target and undoes newer migrations."""
        path = tmp_path / "reversible"
        path.mkdir()
        (path / "001_a.sql").write_text("CREATE TABLE a (x);\n-- DOWN\nDROP TABLE a;")
        (path / "002_b.sql").write_text("CREATE TABLE b (x);\n-- DOWN\nDROP TABLE b;")
        args = ("--migrations", str(path))
        invoke(cli_db, *args, "migrate")

        result = invoke(cli_db, *args, "rollback", "--to", "001", "--yes")

        assert result.exit_code == 0, result.output
        assert "Rolled back Migration 002: b" in flat(result.output)
        data = json.loads(invoke(cli_db, *args, "status", "--json").stdout)
        assert data["current_version"] == "001"

    def test_irreversible_migration(
        self, cli_db: Path, migrations_dir: Path
    ) -> None:
        """A migration without a backward script cannot be rolled back."""
        args = ("--migrations", str(migrations_dir))
        invoke(cli_db, *args, "migrate")

        result = invoke(cli_db, *args, "rollback", "--yes")

        assert result.exit_code == 1
        assert "no down migration found" in flat(result.output)

    def test_confirmation_declined(self, cli_db: Path) -> None:
        """Declining the prompt aborts without changes."""
        invoke(cli_db, "init")
        result = invoke(cli_db, "rollback", input="n\n")

        assert result.exit_code == 1
        data = json.loads(invoke(cli_db, "status", "--json").stdout)
        assert data["current_version"] == "001"

    def test_nothing_to_roll_back(self, cli_db: Path) -> None:
        """An empty ledger is reported plainly."""
        result = invoke(cli_db, "rollback", "--yes")

        assert result.exit_code == 0
        assert "Nothing to roll back" in result.output


class TestHealth:
    """Test the health command."""

    def test_healthy(self, cli_db: Path) -> None:
        """A usable store is reported healthy."""
        result = invoke(cli_db, "health")

        assert result.exit_code == 0, result.output
        assert "is healthy" in flat(result.output)

    def test_unopenable_store(self, tmp_path: Path) -> None:
        """A path that cannot hold a store fails with a hint."""
        blocker = tmp_path / "dir.db"
        blocker.mkdir()

        result = invoke(blocker, "health")

        assert result.exit_code == 1
        assert "Failed to connect to database" in flat(result.output)


class TestScripts:
    """Test the list and search commands."""

    @pytest.fixture
    def seeded_db(self, cli_db: Path) -> Path:
        """Store with two scripts."""
        settings = ScriptSummarizerSettings(database_path=cli_db)
        with ConnectionManager(settings) as manager:
            store = RecordStore(manager)
            store.save_script(
                {
                    "title": "Chinatown",
                    "file_path": "/s/chinatown.pdf",
                    "content_hash": "a",
                }
            )
            store.save_script(
                {"title": "Heat", "file_path": "/s/heat.pdf", "content_hash": "b"}
            )
        return cli_db

    def test_list(self, seeded_db: Path) -> None:
        """All scripts are listed."""
        result = invoke(seeded_db, "list")

        assert result.exit_code == 0, result.output
        assert "Chinatown" in result.output
        assert "Heat" in result.output

    def test_list_empty(self, cli_db: Path) -> None:
        """An empty store says so."""
        result = invoke(cli_db, "ls")

        assert result.exit_code == 0
        assert "No scripts found." in result.output

    def test_search(self, seeded_db: Path) -> None:
        """Search is case-insensitive and filters results."""
        result = invoke(seeded_db, "search", "CHINA")

        assert result.exit_code == 0, result.output
        assert "Chinatown" in result.output
        assert "Heat" not in result.output
