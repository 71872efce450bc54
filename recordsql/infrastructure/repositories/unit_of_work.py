"""
Unit of Work Implementation

Concrete implementation of IUnitOfWork over the SQL adapter's context-bound
transactions. Repositories used inside an entered unit of work share its
transaction without being told about it.
"""

# Standard library imports
import logging
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from typing import Any, TypeVar

# Local imports
from recordsql.application.interfaces.exceptions import (
    TransactionAlreadyActiveError,
    TransactionNotActiveError,
)
from recordsql.application.interfaces.unit_of_work import ITransactionManager, IUnitOfWork
from recordsql.domain.filters import FilterSpec
from recordsql.infrastructure.database.adapter import SQLAdapter

from .repository import Repository, RepositoryFactory

logger = logging.getLogger(__name__)

T = TypeVar("T")
RecordT = TypeVar("RecordT")


class UnitOfWork(IUnitOfWork):
    """
    Transaction scope for a group of repository calls.

    Entering begins a transaction on one pooled connection and attaches it to
    the current execution context; leaving commits, or rolls back if the
    block raised. A unit of work can be entered again after it has exited.
    """

    def __init__(self, adapter: SQLAdapter, factory: RepositoryFactory | None = None) -> None:
        """
        Initialize Unit of Work with database adapter.

        Args:
            adapter: SQL execution adapter
            factory: Repository factory; one over the adapter if omitted
        """
        self.adapter = adapter
        self.factory = factory or RepositoryFactory(adapter)
        self._transaction: AbstractAsyncContextManager[Any] | None = None

    @property
    def is_active(self) -> bool:
        """Check if this unit of work's transaction is open."""
        return self._transaction is not None

    def repository(
        self, record_type: type[RecordT], filter_spec: FilterSpec | None = None
    ) -> Repository[RecordT]:
        """Create a repository whose calls join this unit of work's transaction."""
        return self.factory.create(record_type, filter_spec)

    async def __aenter__(self) -> "UnitOfWork":
        """
        Async context manager entry.

        Raises:
            TransactionAlreadyActiveError: If a transaction is already open
        """
        if self.is_active or self.adapter.has_active_transaction:
            raise TransactionAlreadyActiveError()

        transaction = self.adapter.transaction()
        await transaction.__aenter__()
        self._transaction = transaction
        logger.debug("Unit of Work transaction started")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        """
        Async context manager exit.

        Commits on success or rolls back on exception. Never suppresses the
        block's exception.
        """
        transaction = self._transaction
        if transaction is None:
            raise TransactionNotActiveError()
        self._transaction = None

        await transaction.__aexit__(exc_type, exc_val, exc_tb)
        if exc_type is None:
            logger.debug("Unit of Work transaction committed")
        else:
            logger.debug(f"Unit of Work transaction rolled back: {exc_type.__name__}")
        return False


class TransactionManager(ITransactionManager):
    """
    Runs async callables inside one transaction each.

    Failed operations are not retried.
    """

    def __init__(self, adapter: SQLAdapter) -> None:
        self.adapter = adapter

    async def execute_in_transaction(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Execute an operation within a transaction.

        Args:
            operation: Async callable to execute

        Returns:
            Result of the operation

        Raises:
            TransactionAlreadyActiveError: If a transaction is already open
            TransactionError: If the transaction cannot be opened or committed
        """
        async with UnitOfWork(self.adapter):
            return await operation()
