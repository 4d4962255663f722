"""CRUD surface over scripts, summaries and evaluations.

``RecordStore`` is a facade over the per-table operation classes. Every
operation needs a live connection from the shared ``ConnectionManager`` and
fails with ``NotConnectedError`` otherwise.
"""

from collections.abc import Mapping
from typing import Any

from .connection_manager import ConnectionManager
from .evaluation_ops import EvaluationOperations
from .models import (
    Evaluation,
    EvaluationCreate,
    Script,
    ScriptCreate,
    ScriptUpdate,
    Summary,
    SummaryCreate,
)
from .script_ops import ScriptOperations
from .summary_ops import SummaryOperations


class RecordStore:
    """Record operations for the three domain tables."""

    def __init__(self, connection_manager: ConnectionManager) -> None:
        """Initialize the record store.

        Args:
            connection_manager: Owner of the live connection
        """
        self.connection_manager = connection_manager
        self._script_ops = ScriptOperations(connection_manager)
        self._summary_ops = SummaryOperations(connection_manager)
        self._evaluation_ops = EvaluationOperations(connection_manager)

    # Scripts

    def save_script(self, script: ScriptCreate | Mapping[str, Any]) -> Script:
        """Insert a script and return the persisted row."""
        return self._script_ops.save_script(script)

    def get_script(self, script_id: int) -> Script | None:
        """Get a script by id."""
        return self._script_ops.get_script(script_id)

    def get_all_scripts(self) -> list[Script]:
        """Get every script, newest first."""
        return self._script_ops.get_all_scripts()

    def get_script_by_content_hash(self, content_hash: str) -> Script | None:
        """Find a previously saved script with the same content."""
        return self._script_ops.get_script_by_content_hash(content_hash)

    def update_script(
        self, script_id: int, updates: ScriptUpdate | Mapping[str, Any]
    ) -> Script | None:
        """Apply a whitelisted partial update to a script."""
        return self._script_ops.update_script(script_id, updates)

    def delete_script(self, script_id: int) -> bool:
        """Delete a script together with its summaries and evaluation."""
        return self._script_ops.delete_script(script_id)

    def search_scripts(self, query: str) -> list[Script]:
        """Case-insensitive search over title and file path."""
        return self._script_ops.search_scripts(query)

    # Summaries

    def save_summary(self, summary: SummaryCreate | Mapping[str, Any]) -> Summary:
        """Append a summary for an existing script."""
        return self._summary_ops.save_summary(summary)

    def get_summary_by_script_id(self, script_id: int) -> Summary | None:
        """Get the current summary of a script."""
        return self._summary_ops.get_summary_by_script_id(script_id)

    def list_summaries(self, script_id: int) -> list[Summary]:
        """Get the summary history of a script."""
        return self._summary_ops.list_summaries(script_id)

    # Evaluations

    def save_evaluation(
        self, evaluation: EvaluationCreate | Mapping[str, Any]
    ) -> Evaluation:
        """Insert or replace the evaluation of a script."""
        return self._evaluation_ops.save_evaluation(evaluation)

    def get_evaluation_by_script_id(self, script_id: int) -> Evaluation | None:
        """Get the evaluation of a script."""
        return self._evaluation_ops.get_evaluation_by_script_id(script_id)
