"""Script Summarizer Database Package.

This package provides the embedded SQLite store: connection lifecycle, schema
bootstrap, versioned migrations and the record operations for scripts,
summaries and evaluations.
"""

from .connection_manager import ConnectionManager
from .migration_source import (
    DirectoryMigrationSource,
    InMemoryMigrationSource,
    MigrationSource,
    MigrationUnit,
    parse_migration,
)
from .migrations import MigrationEngine, MigrationRecord, MigrationStatus
from .models import (
    Evaluation,
    EvaluationCreate,
    Script,
    ScriptCreate,
    ScriptUpdate,
    Summary,
    SummaryCreate,
)
from .record_store import RecordStore
from .schema import SchemaBootstrap

__all__ = [
    "ConnectionManager",
    "DirectoryMigrationSource",
    "Evaluation",
    "EvaluationCreate",
    "InMemoryMigrationSource",
    "MigrationEngine",
    "MigrationRecord",
    "MigrationSource",
    "MigrationStatus",
    "MigrationUnit",
    "RecordStore",
    "SchemaBootstrap",
    "Script",
    "ScriptCreate",
    "ScriptUpdate",
    "Summary",
    "SummaryCreate",
    "parse_migration",
]
