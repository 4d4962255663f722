"""Discovery and parsing of migration artifacts.

A migration artifact is named ``<version>_<description>[.sql]`` where the
version is a run of digits. Its body is the forward script, optionally
followed by a line reading exactly ``-- DOWN`` after which the backward
script begins. Versions are compared as strings, so they must share one
zero-padded width (``001``, ``002``, ... ``010``).
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from script_summarizer.config import get_logger
from script_summarizer.exceptions import MigrationError

logger = get_logger(__name__)

MIGRATION_NAME_PATTERN = re.compile(r"^(?P<version>\d+)_(?P<description>.+)$")
DOWN_MARKER_PATTERN = re.compile(r"^-- DOWN[ \t\r]*$", re.MULTILINE)
MIGRATION_SUFFIX = ".sql"

# Migrations shipped with the package
PACKAGED_MIGRATIONS_PATH = Path(__file__).parent / "migration_scripts"


@dataclass(frozen=True)
class MigrationUnit:
    """One parsed migration; never persisted."""

    version: str
    description: str
    up: str
    down: str | None = None
    source: str | None = None

    @property
    def reversible(self) -> bool:
        """Whether the migration carries a backward script."""
        return self.down is not None

    def __str__(self) -> str:
        """String representation of migration."""
        return f"Migration {self.version}: {self.description}"


def parse_migration(name: str, body: str) -> MigrationUnit | None:
    """Parse one migration artifact.

    Args:
        name: Artifact name, e.g. ``001_initial_schema.sql``
        body: Artifact contents

    Returns:
        The parsed unit, or None if the name does not carry a version prefix
    """
    stem = name[: -len(MIGRATION_SUFFIX)] if name.endswith(MIGRATION_SUFFIX) else name
    match = MIGRATION_NAME_PATTERN.match(stem)
    if not match:
        logger.warning("Skipping invalid migration filename", filename=name)
        return None

    parts = DOWN_MARKER_PATTERN.split(body, maxsplit=1)
    up = parts[0].strip()
    down = parts[1].strip() if len(parts) > 1 else ""

    return MigrationUnit(
        version=match.group("version"),
        description=match.group("description").replace("_", " "),
        up=up,
        down=down or None,
        source=name,
    )


def order_units(units: Iterable[MigrationUnit]) -> list[MigrationUnit]:
    """Sort units by version string and reject duplicate versions.

    Raises:
        MigrationError: If two artifacts declare the same version
    """
    by_version: dict[str, MigrationUnit] = {}
    for unit in units:
        existing = by_version.get(unit.version)
        if existing is not None:
            raise MigrationError(
                f"Duplicate migration version {unit.version}",
                version=unit.version,
                hint=f"Both {existing.source} and {unit.source} use this version",
            )
        by_version[unit.version] = unit

    widths = {len(version) for version in by_version}
    if len(widths) > 1:
        # TODO: reject mixed widths once existing stores are known to be padded
        logger.warning(
            "Migration versions have different widths; lexical order may "
            "differ from numeric order",
            versions=sorted(by_version),
        )

    return [by_version[version] for version in sorted(by_version)]


@runtime_checkable
class MigrationSource(Protocol):
    """Anything that can list the available migrations in version order."""

    def load(self) -> list[MigrationUnit]:
        """Return every available migration sorted by version."""
        ...


class DirectoryMigrationSource:
    """Reads ``*.sql`` migration files from a directory."""

    def __init__(self, path: Path | str) -> None:
        """Initialize the source.

        Args:
            path: Directory to scan; it may not exist yet
        """
        self.path = Path(path)

    def load(self) -> list[MigrationUnit]:
        """Parse every migration file in the directory.

        A missing directory yields no migrations.
        """
        if not self.path.is_dir():
            logger.debug("Migration directory not found", path=str(self.path))
            return []

        units = []
        for file_path in sorted(self.path.glob(f"*{MIGRATION_SUFFIX}")):
            if not file_path.is_file():
                continue
            unit = parse_migration(file_path.name, file_path.read_text("utf-8"))
            if unit is not None:
                units.append(unit)
        return order_units(units)

    def __repr__(self) -> str:
        """Debug representation."""
        return f"DirectoryMigrationSource({str(self.path)!r})"


class InMemoryMigrationSource:
    """Migrations held in memory as ``{name: body}`` artifacts."""

    def __init__(self, artifacts: Mapping[str, str] | None = None) -> None:
        """Initialize the source.

        Args:
            artifacts: Mapping of artifact name to artifact body
        """
        self.artifacts: dict[str, str] = dict(artifacts or {})

    def add(self, name: str, body: str) -> None:
        """Register another artifact."""
        self.artifacts[name] = body

    def load(self) -> list[MigrationUnit]:
        """Parse every registered artifact."""
        units = [
            unit
            for name, body in sorted(self.artifacts.items())
            if (unit := parse_migration(name, body)) is not None
        ]
        return order_units(units)


def resolve_migration_source(
    source: MigrationSource | Path | str | None,
) -> MigrationSource:
    """Turn a path, a source or None into a migration source.

    None selects the migrations shipped with the package.
    """
    if source is None:
        return DirectoryMigrationSource(PACKAGED_MIGRATIONS_PATH)
    if isinstance(source, (str, Path)):
        return DirectoryMigrationSource(source)
    return source
