"""Script-level record operations.

Handles saving, reading, searching and updating scripts, and the cascading
delete that removes a script together with its summaries and evaluation.
"""

from collections.abc import Mapping
from typing import Any

from script_summarizer.config import get_logger
from script_summarizer.exceptions import ValidationError

from .connection_manager import ConnectionManager
from .models import Script, ScriptCreate, ScriptUpdate
from .sql import CASEFOLD_FUNCTION
from .utils import row_to_dict, storage_errors, validate_input

logger = get_logger(__name__)

# Columns update_script may change; anything else is ignored
UPDATABLE_SCRIPT_FIELDS = ("title", "file_path", "content_hash", "word_count")

_NEWEST_FIRST = "ORDER BY created_at DESC, id DESC"


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ScriptOperations:
    """Operations for managing script records."""

    def __init__(self, connection_manager: ConnectionManager) -> None:
        """Initialize script operations.

        Args:
            connection_manager: Owner of the live connection
        """
        self.connection_manager = connection_manager

    def _fetch(self, script_id: int) -> Script | None:
        conn = self.connection_manager.get_connection("get_script")
        row = conn.execute(
            "SELECT * FROM scripts WHERE id = ?", (script_id,)
        ).fetchone()
        data = row_to_dict(row)
        return Script.model_validate(data) if data else None

    def save_script(self, script: ScriptCreate | Mapping[str, Any]) -> Script:
        """Insert a script and return the persisted row.

        Args:
            script: Title, file path, content hash and word count

        Returns:
            The stored script including its generated id and timestamps
        """
        data = validate_input(ScriptCreate, script, "save_script")
        with storage_errors("save_script"):
            with self.connection_manager.transaction(operation="save_script") as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO scripts (title, file_path, content_hash, word_count)
                    VALUES (?, ?, ?, ?)
                    """,
                    (data.title, data.file_path, data.content_hash, data.word_count),
                )
                script_id = cursor.lastrowid
                row = conn.execute(
                    "SELECT * FROM scripts WHERE id = ?", (script_id,)
                ).fetchone()

        logger.info(f"Saved script {script_id}: {data.title}")
        return Script.model_validate(row_to_dict(row))

    def get_script(self, script_id: int) -> Script | None:
        """Get a script by id; None if it does not exist."""
        with storage_errors("get_script", script_id):
            return self._fetch(script_id)

    def get_all_scripts(self) -> list[Script]:
        """Get every script, newest first."""
        with storage_errors("get_all_scripts"):
            conn = self.connection_manager.get_connection("get_all_scripts")
            rows = conn.execute(f"SELECT * FROM scripts {_NEWEST_FIRST}").fetchall()
        return [Script.model_validate(row_to_dict(row)) for row in rows]

    def get_script_by_content_hash(self, content_hash: str) -> Script | None:
        """Find the newest script with this content hash, if any."""
        with storage_errors("get_script_by_content_hash"):
            conn = self.connection_manager.get_connection("get_script_by_content_hash")
            row = conn.execute(
                f"SELECT * FROM scripts WHERE content_hash = ? {_NEWEST_FIRST} LIMIT 1",
                (content_hash,),
            ).fetchone()
        data = row_to_dict(row)
        return Script.model_validate(data) if data else None

    def search_scripts(self, query: str) -> list[Script]:
        """Case-insensitive substring search over title and file path.

        Args:
            query: Text to look for; ``%`` and ``_`` match literally

        Returns:
            Matching scripts, newest first
        """
        pattern = f"%{_escape_like(query.casefold())}%"
        with storage_errors("search_scripts"):
            conn = self.connection_manager.get_connection("search_scripts")
            rows = conn.execute(
                f"""
                SELECT * FROM scripts
                WHERE {CASEFOLD_FUNCTION}(title) LIKE ? ESCAPE '\\'
                   OR {CASEFOLD_FUNCTION}(file_path) LIKE ? ESCAPE '\\'
                {_NEWEST_FIRST}
                """,
                (pattern, pattern),
            ).fetchall()
        return [Script.model_validate(row_to_dict(row)) for row in rows]

    def update_script(
        self, script_id: int, updates: ScriptUpdate | Mapping[str, Any]
    ) -> Script | None:
        """Apply a partial update to a script.

        Only title, file_path, content_hash and word_count are applied; other
        keys are ignored. The updated-at stamp is always refreshed.

        Args:
            script_id: Script to update
            updates: Fields to change

        Returns:
            The updated script, or None if no script has this id

        Raises:
            ValidationError: If no updatable field remains
        """
        if isinstance(updates, Mapping):
            updates = {k: v for k, v in updates.items() if k in UPDATABLE_SCRIPT_FIELDS}
        data = validate_input(ScriptUpdate, updates, "update_script")
        fields = data.model_dump(exclude_unset=True)

        if not fields:
            raise ValidationError(
                "No valid fields to update",
                operation="update_script",
                hint=f"Updatable fields: {', '.join(UPDATABLE_SCRIPT_FIELDS)}",
            )
        nulls = sorted(name for name, value in fields.items() if value is None)
        if nulls:
            raise ValidationError(
                f"Fields cannot be cleared: {', '.join(nulls)}",
                operation="update_script",
            )

        assignments = ", ".join(f"{name} = ?" for name in fields)
        with storage_errors("update_script", script_id):
            with self.connection_manager.transaction(
                operation="update_script"
            ) as conn:
                cursor = conn.execute(
                    f"""
                    UPDATE scripts
                    SET {assignments}, updated_at = CURRENT_TIMESTAMP
                    WHERE id = ?
                    """,
                    (*fields.values(), script_id),
                )
                if cursor.rowcount == 0:
                    return None
                row = conn.execute(
                    "SELECT * FROM scripts WHERE id = ?", (script_id,)
                ).fetchone()

        logger.debug(f"Updated script {script_id}", fields=list(fields))
        return Script.model_validate(row_to_dict(row))

    def delete_script(self, script_id: int) -> bool:
        """Delete a script with all of its summaries and its evaluation.

        The three deletes run in one transaction, so they hold even when the
        store's own cascade is disabled.

        Returns:
            True if the script existed
        """
        with storage_errors("delete_script", script_id):
            with self.connection_manager.transaction(
                "IMMEDIATE", operation="delete_script"
            ) as conn:
                conn.execute("DELETE FROM summaries WHERE script_id = ?", (script_id,))
                conn.execute(
                    "DELETE FROM script_evaluations WHERE script_id = ?", (script_id,)
                )
                cursor = conn.execute("DELETE FROM scripts WHERE id = ?", (script_id,))
                deleted = cursor.rowcount > 0

        if deleted:
            logger.info(f"Deleted script {script_id} with its summaries and evaluation")
        return deleted
