"""CLI commands."""

from .database import (
    health_command,
    init_command,
    migrate_command,
    rollback_command,
    status_command,
)
from .scripts import list_command, search_command

__all__ = [
    "health_command",
    "init_command",
    "list_command",
    "migrate_command",
    "rollback_command",
    "search_command",
    "status_command",
]
