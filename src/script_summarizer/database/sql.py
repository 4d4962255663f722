"""Helpers for running multi-statement SQL scripts inside a transaction.

``sqlite3.Connection.executescript`` commits any pending transaction before it
runs, so scripts that must stay atomic are split into complete statements and
executed one at a time with ``execute``.
"""

from __future__ import annotations

import re
import sqlite3
from collections.abc import Iterator

# Splits after every semicolon, keeping it with the preceding text
_SEMICOLON_SPLIT = re.compile(r"(?<=;)")

_LEADING_COMMENTS = re.compile(r"^(?:\s+|--[^\n]*(?:\n|$)|/\*.*?\*/)*", re.DOTALL)

# Statements that end or open a transaction; ROLLBACK TO a savepoint does not
_TRANSACTION_CONTROL = re.compile(
    r"(?:BEGIN|COMMIT|END|ROLLBACK(?!\s+(?:TRANSACTION\s+)?TO\b))\b",
    re.IGNORECASE,
)

CASEFOLD_FUNCTION = "casefold"


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


def register_functions(conn: sqlite3.Connection) -> None:
    """Register the Python SQL functions queries rely on.

    ``casefold(text)`` folds case in every alphabet, unlike SQLite's ASCII-only
    ``LOWER()``.
    """
    conn.create_function(CASEFOLD_FUNCTION, 1, _casefold, deterministic=True)


def is_transaction_control(statement: str) -> bool:
    """Return True if the statement would begin, commit or roll back."""
    body = _LEADING_COMMENTS.sub("", statement, count=1)
    return _TRANSACTION_CONTROL.match(body) is not None


def find_transaction_control(script: str) -> str | None:
    """Return the first transaction-control statement of a script, if any."""
    for statement in iter_statements(script):
        if is_transaction_control(statement):
            return statement
    return None


def _has_sql(text: str) -> bool:
    """Return True if text contains anything besides whitespace and comments."""
    for line in text.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("--"):
            return True
    return False


def iter_statements(script: str) -> Iterator[str]:
    """Yield the complete SQL statements of a script in order.

    Trigger bodies and string literals containing semicolons are kept intact
    because completeness is decided by ``sqlite3.complete_statement``. A
    trailing fragment without a terminating semicolon is yielded as-is so the
    engine reports the syntax error.

    Args:
        script: SQL text with one or more statements

    Yields:
        Individual statements, stripped of surrounding whitespace
    """
    buffer: list[str] = []
    for chunk in _SEMICOLON_SPLIT.split(script):
        buffer.append(chunk)
        candidate = "".join(buffer)
        if sqlite3.complete_statement(candidate):
            if _has_sql(candidate):
                yield candidate.strip()
            buffer = []

    remainder = "".join(buffer)
    if _has_sql(remainder):
        yield remainder.strip()


def execute_script(conn: sqlite3.Connection, script: str) -> int:
    """Execute every statement of a script on the current transaction.

    Nothing runs if the script contains a statement that would begin, commit
    or roll back, since that would escape the caller's transaction.

    Args:
        conn: Open connection, usually inside ``BEGIN``
        script: SQL text with one or more statements

    Returns:
        Number of statements executed

    Raises:
        sqlite3.ProgrammingError: If the script contains transaction control,
            or a statement ended the surrounding transaction anyway
    """
    statements = list(iter_statements(script))
    for statement in statements:
        if is_transaction_control(statement):
            raise sqlite3.ProgrammingError(
                f"Transaction control is not allowed in a script: {statement}"
            )

    in_transaction = conn.in_transaction
    count = 0
    for statement in statements:
        conn.execute(statement)
        if in_transaction and not conn.in_transaction:
            raise sqlite3.ProgrammingError(
                f"Statement ended the surrounding transaction: {statement}"
            )
        count += 1
    return count
