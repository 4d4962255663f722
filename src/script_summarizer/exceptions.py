"""Custom exception hierarchy for Script Summarizer with helpful error messages."""

from __future__ import annotations

from typing import Any


class ScriptSummarizerError(Exception):
    """Base exception with helpful formatting for all Script Summarizer errors.

    Provides structured error messages with hints and details to help users
    understand and fix problems.
    """

    def __init__(
        self,
        message: str,
        hint: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize exception with structured error information.

        Args:
            message: Primary error message describing what went wrong
            hint: Optional hint suggesting how to fix the problem
            details: Optional dictionary with additional debugging information
        """
        self.message = message
        self.hint = hint
        self.details = details
        super().__init__(self.format_error())

    def format_error(self) -> str:
        """Format the error message with hint and details.

        Returns:
            Formatted error string with all available information
        """
        output = f"Error: {self.message}"
        if self.hint:
            output += f"\nHint: {self.hint}"
        if self.details:
            details_str = "\n".join(
                f"  {key}: {value}" for key, value in self.details.items()
            )
            output += f"\nDetails:\n{details_str}"
        return output


def _describe_cause(cause: BaseException | None) -> str | None:
    if cause is None:
        return None
    return f"{type(cause).__name__}: {cause}"


class ConfigurationError(ScriptSummarizerError):
    """Configuration errors including invalid settings and missing config files."""

    pass


class DatabaseError(ScriptSummarizerError):
    """Root of all persistence-layer errors."""

    pass


class DatabaseConnectionError(DatabaseError):
    """The store file could not be opened or the schema bootstrap failed."""

    def __init__(
        self,
        message: str,
        db_path: Any = None,
        cause: BaseException | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize connection error.

        Args:
            message: Error message
            db_path: Path of the store file that failed to open
            cause: Underlying driver or I/O error
            hint: Optional hint for the user
        """
        self.db_path = db_path
        self.cause = cause
        details: dict[str, Any] = {}
        if db_path is not None:
            details["db_path"] = str(db_path)
        if cause is not None:
            details["cause"] = _describe_cause(cause)
        super().__init__(
            message=message,
            hint=hint or "Check the database path and its permissions",
            details=details or None,
        )


class NotConnectedError(DatabaseError):
    """An operation was attempted without a live connection."""

    def __init__(self, operation: str | None = None) -> None:
        """Initialize not-connected error.

        Args:
            operation: Logical operation that needed the connection
        """
        self.operation = operation
        super().__init__(
            message="Database not connected",
            hint="Call connect() on the ConnectionManager first",
            details={"operation": operation} if operation else None,
        )


class SchemaError(DatabaseError):
    """Baseline schema SQL failed to apply."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        """Initialize schema error.

        Args:
            message: Error message
            cause: Underlying driver error
        """
        self.cause = cause
        super().__init__(
            message=message,
            details={"cause": _describe_cause(cause)} if cause else None,
        )


class MigrationError(DatabaseError):
    """A migration could not be discovered or applied."""

    def __init__(
        self,
        message: str,
        version: str | None = None,
        cause: BaseException | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize migration error.

        Args:
            message: Error message
            version: Version of the failing migration, if known
            cause: Underlying error
            hint: Optional hint for the user
        """
        self.version = version
        self.cause = cause
        details: dict[str, Any] = {}
        if version is not None:
            details["version"] = version
        if cause is not None:
            details["cause"] = _describe_cause(cause)
        super().__init__(message=message, hint=hint, details=details or None)


class RollbackError(MigrationError):
    """A migration could not be rolled back."""

    pass


class ReferentialIntegrityError(DatabaseError):
    """A write violated a foreign-key constraint."""

    def __init__(
        self,
        operation: str,
        entity_id: Any = None,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize referential integrity error.

        Args:
            operation: Logical operation that failed
            entity_id: Referenced id that does not exist
            cause: Underlying constraint error
        """
        self.operation = operation
        self.entity_id = entity_id
        self.cause = cause
        details: dict[str, Any] = {"operation": operation}
        if entity_id is not None:
            details["entity_id"] = entity_id
        if cause is not None:
            details["cause"] = _describe_cause(cause)
        super().__init__(
            message=f"Failed to {operation.replace('_', ' ')}: "
            "referenced record does not exist",
            hint="Save the parent script before attaching records to it",
            details=details,
        )


class ValidationError(DatabaseError):
    """Input validation errors with details about what was expected."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize validation error.

        Args:
            message: Error message
            operation: Logical operation that rejected the input
            details: Extra context about the rejected input
            hint: Optional hint for the user
        """
        self.operation = operation
        merged: dict[str, Any] = {}
        if operation:
            merged["operation"] = operation
        if details:
            merged.update(details)
        super().__init__(message=message, hint=hint, details=merged or None)


class RecordOperationError(DatabaseError):
    """Unexpected storage failure inside a record operation."""

    def __init__(
        self,
        operation: str,
        entity_id: Any = None,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize record operation error.

        Args:
            operation: Logical operation that failed (e.g. ``save_script``)
            entity_id: Id of the record involved, if any
            cause: Underlying storage error
        """
        self.operation = operation
        self.entity_id = entity_id
        self.cause = cause
        details: dict[str, Any] = {"operation": operation}
        if entity_id is not None:
            details["entity_id"] = entity_id
        if cause is not None:
            details["cause"] = _describe_cause(cause)
        super().__init__(
            message=f"Failed to {operation.replace('_', ' ')}",
            details=details,
        )


def check_config_keys(config: dict[str, Any]) -> None:
    """Check for common configuration mistakes.

    Args:
        config: Configuration dictionary to validate

    Raises:
        ConfigurationError: With hints about correct configuration keys
    """
    wrong_keys = {
        "db_path": "database_path",
        "db": "database_path",
        "migrations_dir": "migrations_path",
    }

    for wrong, correct in wrong_keys.items():
        if wrong in config:
            raise ConfigurationError(
                message=f"Invalid configuration key '{wrong}'",
                hint=f"Use '{correct}' instead of '{wrong}'",
                details={
                    "found_keys": list(config.keys()),
                    "invalid_key": wrong,
                    "correct_key": correct,
                },
            )
