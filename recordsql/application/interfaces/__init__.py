"""
Application Interfaces - Repository Contracts

This module defines the interface contracts that the infrastructure layer
must implement, together with the errors every implementation raises.
"""

from .exceptions import (
    CancellationError,
    ConfigurationError,
    ConstraintError,
    DeadlineExceededError,
    ExecutionError,
    MissingKeyError,
    RepositoryError,
    SchemaError,
    TransactionAlreadyActiveError,
    TransactionError,
    TransactionNotActiveError,
    ValidationError,
)
from .repositories import IRepository, SearchResult
from .unit_of_work import ITransactionManager, IUnitOfWork

__all__ = [
    # Repository interfaces
    "IRepository",
    "SearchResult",
    # Unit of Work interfaces
    "IUnitOfWork",
    "ITransactionManager",
    # Exceptions
    "RepositoryError",
    "SchemaError",
    "ValidationError",
    "MissingKeyError",
    "ConstraintError",
    "CancellationError",
    "DeadlineExceededError",
    "ExecutionError",
    "TransactionError",
    "TransactionNotActiveError",
    "TransactionAlreadyActiveError",
    "ConfigurationError",
]
