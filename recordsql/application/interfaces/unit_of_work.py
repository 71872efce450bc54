"""
Unit of Work Interface

Defines the contract for running several repository calls in one transaction.
"""

# Standard library imports
from abc import abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class IUnitOfWork(Protocol):
    """
    Unit of Work interface for transaction management.

    While the unit of work is entered, every repository call made from the
    same execution context runs in its transaction.
    """

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """Check if the unit of work's transaction is open."""
        ...

    @abstractmethod
    async def __aenter__(self) -> "IUnitOfWork":
        """
        Begin the transaction.

        Raises:
            TransactionAlreadyActiveError: If a transaction is already open
        """
        ...

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> Any:
        """Commit on success, roll back when the block raised."""
        ...


class ITransactionManager(Protocol):
    """Runs async callables inside a transaction."""

    @abstractmethod
    async def execute_in_transaction(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Execute an operation within a transaction.

        Args:
            operation: Async callable to execute

        Returns:
            Result of the operation

        Raises:
            TransactionError: If the transaction cannot be opened or committed
        """
        ...
