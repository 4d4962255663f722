"""Script Summarizer: persistence for scripts, summaries and evaluations.

The persistence layer is an embedded SQLite store with a versioned migration
engine. Components are wired explicitly::

    settings = get_settings()
    manager = ConnectionManager(settings)
    manager.connect()
    MigrationEngine(manager, settings.migrations_path).run_migrations()
    store = RecordStore(manager)
"""

from .config import ScriptSummarizerSettings, get_logger, get_settings
from .database import (
    ConnectionManager,
    MigrationEngine,
    RecordStore,
    SchemaBootstrap,
)
from .exceptions import ScriptSummarizerError

__version__ = "0.1.0"

__all__ = [
    "ConnectionManager",
    "MigrationEngine",
    "RecordStore",
    "SchemaBootstrap",
    "ScriptSummarizerError",
    "ScriptSummarizerSettings",
    "__version__",
    "get_logger",
    "get_settings",
]
