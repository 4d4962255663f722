"""Shared helpers for record operations."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Generator, Mapping
from contextlib import contextmanager
from typing import Any, TypeVar

import pydantic

from script_summarizer.config import get_logger
from script_summarizer.exceptions import (
    RecordOperationError,
    ReferentialIntegrityError,
    ScriptSummarizerError,
    ValidationError,
)

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


@contextmanager
def storage_errors(
    operation: str, entity_id: Any = None
) -> Generator[None, None, None]:
    """Translate storage-driver failures into typed errors.

    Errors that are already typed pass through untouched.

    Args:
        operation: Logical operation name, e.g. ``save_summary``
        entity_id: Id of the record involved, if any

    Raises:
        ReferentialIntegrityError: On a foreign-key violation
        ValidationError: On a CHECK or NOT NULL violation
        RecordOperationError: On any other driver error
    """
    try:
        yield
    except ScriptSummarizerError:
        raise
    except sqlite3.IntegrityError as e:
        message = str(e)
        if "FOREIGN KEY" in message:
            raise ReferentialIntegrityError(operation, entity_id, e) from e
        if "CHECK constraint" in message or "NOT NULL constraint" in message:
            raise ValidationError(
                f"Invalid value rejected by the store: {message}",
                operation=operation,
                details={"entity_id": entity_id} if entity_id is not None else None,
            ) from e
        logger.error(f"{operation} failed", entity_id=entity_id, error=message)
        raise RecordOperationError(operation, entity_id, e) from e
    except sqlite3.Error as e:
        logger.error(f"{operation} failed", entity_id=entity_id, error=str(e))
        raise RecordOperationError(operation, entity_id, e) from e


def validate_input(
    model: type[ModelT], data: ModelT | Mapping[str, Any], operation: str
) -> ModelT:
    """Coerce caller input into a model, raising ``ValidationError`` on failure."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(
            f"Invalid input for {operation.replace('_', ' ')}",
            operation=operation,
            details={
                "errors": [
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                ]
            },
        ) from e


def encode_json(value: Any) -> str | None:
    """Serialize a structured field for storage; None stays NULL."""
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def decode_json(value: str | None) -> Any:
    """Decode a stored structured field.

    Text that is not valid JSON is returned unchanged so rows written by
    other tools stay readable.
    """
    if value is None:
        return None
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return value


def row_to_dict(row: sqlite3.Row | None) -> dict[str, Any] | None:
    """Convert a row into a plain dictionary."""
    if row is None:
        return None
    return {key: row[key] for key in row.keys()}
