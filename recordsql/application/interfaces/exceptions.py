"""
Repository Exception Definitions

Defines exceptions that the data access layer may raise.
Builders raise before any SQL reaches the database; the adapter classifies
driver failures once a statement has been submitted.
"""

# Standard library imports
from collections.abc import Sequence


class RepositoryError(Exception):
    """Base exception for repository operations."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class SchemaError(RepositoryError):
    """Raised when record type metadata is malformed or missing."""

    def __init__(self, record_type: str, message: str) -> None:
        super().__init__(f"{record_type}: {message}")
        self.record_type = record_type


class ValidationError(RepositoryError):
    """Raised when caller input is rejected before any SQL is built."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class MissingKeyError(RepositoryError):
    """Raised when a keyed operation is attempted without primary-key values."""

    def __init__(self, table: str, columns: Sequence[str]) -> None:
        super().__init__(f"Missing primary key value for {table}: {', '.join(columns)}")
        self.table = table
        self.columns = tuple(columns)


class ConstraintError(RepositoryError):
    """Raised when the database rejects a write (duplicate key, foreign key, ...)."""

    def __init__(
        self,
        message: str,
        sqlstate: str | None = None,
        constraint: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause)
        self.sqlstate = sqlstate
        self.constraint = constraint


class CancellationError(RepositoryError):
    """Raised when an in-flight statement is cancelled."""

    pass


class DeadlineExceededError(CancellationError):
    """Raised when an operation runs past the caller's deadline."""

    def __init__(self, operation: str, timeout_seconds: float) -> None:
        super().__init__(f"Operation '{operation}' timed out after {timeout_seconds} seconds")
        self.operation = operation
        self.timeout_seconds = timeout_seconds


class ExecutionError(RepositoryError):
    """Raised for any other driver failure."""

    pass


class TransactionError(RepositoryError):
    """Base exception for transaction operations."""

    pass


class TransactionNotActiveError(TransactionError):
    """Raised when operation requires active transaction but none exists."""

    def __init__(self) -> None:
        super().__init__("No active transaction")


class TransactionAlreadyActiveError(TransactionError):
    """Raised when attempting to start transaction when one is already active."""

    def __init__(self) -> None:
        super().__init__("Transaction is already active")


class ConfigurationError(Exception):
    """Raised when configuration-related errors occur."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause
