"""Evaluation record operations."""

import sqlite3
from collections.abc import Mapping
from typing import Any

from script_summarizer.config import get_logger
from script_summarizer.exceptions import ReferentialIntegrityError

from .connection_manager import ConnectionManager
from .models import Evaluation, EvaluationCreate
from .utils import decode_json, encode_json, row_to_dict, storage_errors, validate_input

logger = get_logger(__name__)


def _decode_tags(value: str | None) -> list[str]:
    """Decode stored tags, tolerating values written by other tools.

    A JSON list keeps its non-null items as strings, a bare string becomes a
    single tag, and anything else reads as no tags.
    """
    tags = decode_json(value)
    if isinstance(tags, list):
        return [str(tag) for tag in tags if tag is not None]
    if isinstance(tags, str) and tags.strip():
        return [tags]
    if tags is not None:
        logger.warning("Ignoring malformed evaluation tags", tags=value)
    return []


def evaluation_from_row(row: sqlite3.Row) -> Evaluation:
    """Build an evaluation from a row, decoding its tags."""
    data = row_to_dict(row) or {}
    data["tags"] = _decode_tags(data.get("tags"))
    return Evaluation.model_validate(data)


class EvaluationOperations:
    """Operations for the single evaluation each script may carry."""

    def __init__(self, connection_manager: ConnectionManager) -> None:
        """Initialize evaluation operations.

        Args:
            connection_manager: Owner of the live connection
        """
        self.connection_manager = connection_manager

    def save_evaluation(
        self, evaluation: EvaluationCreate | Mapping[str, Any]
    ) -> Evaluation:
        """Insert or replace the evaluation of a script.

        The lookup and the write share one IMMEDIATE transaction, so two saves
        for the same script can never both insert. An existing row keeps its id.

        Args:
            evaluation: Script id, rating (1-5 or None), notes and tags

        Returns:
            The stored evaluation

        Raises:
            ValidationError: If the rating is outside 1-5
            ReferentialIntegrityError: If the script does not exist
        """
        data = validate_input(EvaluationCreate, evaluation, "save_evaluation")
        tags = encode_json(data.tags)

        with storage_errors("save_evaluation", data.script_id):
            with self.connection_manager.transaction(
                "IMMEDIATE", operation="save_evaluation"
            ) as conn:
                exists = conn.execute(
                    "SELECT 1 FROM scripts WHERE id = ?", (data.script_id,)
                ).fetchone()
                if exists is None:
                    raise ReferentialIntegrityError("save_evaluation", data.script_id)

                existing = conn.execute(
                    "SELECT id FROM script_evaluations WHERE script_id = ?",
                    (data.script_id,),
                ).fetchone()

                if existing is not None:
                    evaluation_id = existing["id"]
                    conn.execute(
                        """
                        UPDATE script_evaluations
                        SET rating = ?, notes = ?, tags = ?,
                            updated_at = CURRENT_TIMESTAMP
                        WHERE id = ?
                        """,
                        (data.rating, data.notes, tags, evaluation_id),
                    )
                else:
                    cursor = conn.execute(
                        """
                        INSERT INTO script_evaluations (script_id, rating, notes, tags)
                        VALUES (?, ?, ?, ?)
                        """,
                        (data.script_id, data.rating, data.notes, tags),
                    )
                    evaluation_id = cursor.lastrowid

                row = conn.execute(
                    "SELECT * FROM script_evaluations WHERE id = ?", (evaluation_id,)
                ).fetchone()

        logger.info(
            f"Saved evaluation for script {data.script_id}",
            updated=existing is not None,
        )
        return evaluation_from_row(row)

    def get_evaluation_by_script_id(self, script_id: int) -> Evaluation | None:
        """Get the evaluation of a script; None if it has not been rated."""
        with storage_errors("get_evaluation_by_script_id", script_id):
            conn = self.connection_manager.get_connection(
                "get_evaluation_by_script_id"
            )
            row = conn.execute(
                "SELECT * FROM script_evaluations WHERE script_id = ?", (script_id,)
            ).fetchone()
        return evaluation_from_row(row) if row is not None else None
