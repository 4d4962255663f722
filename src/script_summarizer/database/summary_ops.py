"""Summary record operations.

Summaries are append-only: each generation adds a row and the newest row is
the script's current summary.
"""

import sqlite3
from collections.abc import Mapping
from typing import Any

from script_summarizer.config import get_logger
from script_summarizer.exceptions import ReferentialIntegrityError

from .connection_manager import ConnectionManager
from .models import Summary, SummaryCreate
from .utils import decode_json, encode_json, row_to_dict, storage_errors, validate_input

logger = get_logger(__name__)

JSON_SUMMARY_FIELDS = ("characters", "themes", "production_notes")


def summary_from_row(row: sqlite3.Row) -> Summary:
    """Build a summary from a row, decoding its structured fields."""
    data = row_to_dict(row) or {}
    for name in JSON_SUMMARY_FIELDS:
        data[name] = decode_json(data[name])
    return Summary.model_validate(data)


class SummaryOperations:
    """Operations for storing and reading generated summaries."""

    def __init__(self, connection_manager: ConnectionManager) -> None:
        """Initialize summary operations.

        Args:
            connection_manager: Owner of the live connection
        """
        self.connection_manager = connection_manager

    def save_summary(self, summary: SummaryCreate | Mapping[str, Any]) -> Summary:
        """Append a summary for an existing script.

        Args:
            summary: Summary fields; structured fields may be any JSON value

        Returns:
            The stored summary

        Raises:
            ReferentialIntegrityError: If the script does not exist
        """
        data = validate_input(SummaryCreate, summary, "save_summary")
        with storage_errors("save_summary", data.script_id):
            with self.connection_manager.transaction(
                "IMMEDIATE", operation="save_summary"
            ) as conn:
                exists = conn.execute(
                    "SELECT 1 FROM scripts WHERE id = ?", (data.script_id,)
                ).fetchone()
                if exists is None:
                    raise ReferentialIntegrityError("save_summary", data.script_id)

                cursor = conn.execute(
                    """
                    INSERT INTO summaries (
                        script_id, plot_overview, characters, themes,
                        production_notes, genre, model_used
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        data.script_id,
                        data.plot_overview,
                        encode_json(data.characters),
                        encode_json(data.themes),
                        encode_json(data.production_notes),
                        data.genre,
                        data.model_used,
                    ),
                )
                row = conn.execute(
                    "SELECT * FROM summaries WHERE id = ?", (cursor.lastrowid,)
                ).fetchone()

        logger.info(f"Saved summary for script {data.script_id}")
        return summary_from_row(row)

    def get_summary_by_script_id(self, script_id: int) -> Summary | None:
        """Get the most recent summary of a script; None if there is none."""
        with storage_errors("get_summary_by_script_id", script_id):
            conn = self.connection_manager.get_connection("get_summary_by_script_id")
            row = conn.execute(
                """
                SELECT * FROM summaries WHERE script_id = ?
                ORDER BY created_at DESC, id DESC LIMIT 1
                """,
                (script_id,),
            ).fetchone()
        return summary_from_row(row) if row is not None else None

    def list_summaries(self, script_id: int) -> list[Summary]:
        """Every summary of a script, newest first."""
        with storage_errors("list_summaries", script_id):
            conn = self.connection_manager.get_connection("list_summaries")
            rows = conn.execute(
                """
                SELECT * FROM summaries WHERE script_id = ?
                ORDER BY created_at DESC, id DESC
                """,
                (script_id,),
            ).fetchall()
        return [summary_from_row(row) for row in rows]
