"""
SQL Database Adapter

Executes built statements with psycopg3 on a pooled connection, or on the
transaction attached to the current execution context.
Classifies driver failures into the repository error taxonomy.
"""

# Standard library imports
import asyncio
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, TypeVar

# Third-party imports
import psycopg
from psycopg import AsyncConnection, AsyncCursor
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

# Local imports
from recordsql.application.interfaces.exceptions import (
    CancellationError,
    ConstraintError,
    DeadlineExceededError,
    ExecutionError,
    RepositoryError,
    TransactionAlreadyActiveError,
    TransactionError,
)
from recordsql.domain.statement import Statement

from .dialects import PSYCOPG, Dialect

if TYPE_CHECKING:
    from recordsql.infrastructure.config import RepositoryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

_transaction_connection: ContextVar[AsyncConnection | None] = ContextVar(
    "recordsql_transaction_connection", default=None
)


def current_transaction() -> AsyncConnection | None:
    """Return the connection of the transaction attached to this context, if any."""
    return _transaction_connection.get()


def classify_error(operation: str, error: psycopg.Error) -> RepositoryError:
    """
    Map a psycopg error to the repository error taxonomy.

    Args:
        operation: Name of the failed operation, for the message
        error: Driver error

    Returns:
        CancellationError, ConstraintError or ExecutionError
    """
    if isinstance(error, psycopg.errors.QueryCanceled):
        return CancellationError(f"{operation} was cancelled: {error}", error)
    if isinstance(error, psycopg.IntegrityError):
        diag = getattr(error, "diag", None)
        return ConstraintError(
            f"Integrity constraint violated during {operation}: {error}",
            sqlstate=getattr(error, "sqlstate", None),
            constraint=getattr(diag, "constraint_name", None),
            cause=error,
        )
    return ExecutionError(f"{operation} failed: {error}", error)


class SQLAdapter:
    """
    psycopg3 statement executor.

    Each call uses one pooled connection for one statement, unless a
    transaction is attached to the current context, in which case the
    transaction's connection is reused. Connections go back to the pool on
    every exit path. The adapter never retries.
    """

    def __init__(
        self,
        pool: AsyncConnectionPool,
        dialect: Dialect = PSYCOPG,
        statement_timeout: float | None = None,
    ) -> None:
        """
        Initialize adapter with an already open connection pool.

        Args:
            pool: psycopg3 async connection pool
            dialect: Placeholder dialect understood by the driver
            statement_timeout: Default per-call deadline in seconds
        """
        self._pool = pool
        self.dialect = dialect
        self.statement_timeout = statement_timeout

    @classmethod
    def from_config(cls, pool: AsyncConnectionPool, config: "RepositoryConfig") -> "SQLAdapter":
        """Create an adapter using a configuration's dialect and timeout."""
        return cls(pool, dialect=config.dialect, statement_timeout=config.statement_timeout)

    @property
    def pool(self) -> AsyncConnectionPool:
        """Get the connection pool."""
        return self._pool

    @property
    def has_active_transaction(self) -> bool:
        """Check if a transaction is attached to the current context."""
        return _transaction_connection.get() is not None

    @asynccontextmanager
    async def acquire_connection(self) -> AsyncGenerator[AsyncConnection, None]:
        """
        Acquire the context's transaction connection or a pooled one.

        Yields:
            Database connection
        """
        connection = _transaction_connection.get()
        if connection is not None:
            yield connection
            return

        async with self._pool.connection() as connection:
            yield connection

    async def _run(
        self,
        operation: str,
        statement: Statement,
        handler: Callable[[AsyncCursor[Any]], Awaitable[T]],
        timeout: float | None,
    ) -> T:
        if timeout is None:
            timeout = self.statement_timeout
        try:
            async with asyncio.timeout(timeout):
                async with self.acquire_connection() as conn:
                    try:
                        async with conn.cursor(row_factory=dict_row) as cur:
                            await cur.execute(statement.sql, statement.args)
                            return await handler(cur)
                    except asyncio.CancelledError:
                        await self._cancel_server_side(conn)
                        raise
        except TimeoutError as e:
            logger.error(f"{operation} timed out after {timeout}s | Query: {statement.sql[:100]}...")
            raise DeadlineExceededError(operation, timeout or 0.0) from e
        except psycopg.Error as e:
            error = classify_error(operation, e)
            logger.error(f"{type(error).__name__}: {e} | Query: {statement.sql[:100]}...")
            raise error from e

    async def _cancel_server_side(self, conn: AsyncConnection) -> None:
        try:
            await conn.cancel_safe()
        except psycopg.Error as e:
            logger.warning(f"Failed to cancel in-flight statement: {e}")

    async def execute(self, statement: Statement, timeout: float | None = None) -> int:
        """
        Execute a statement that doesn't return rows.

        Args:
            statement: Built statement
            timeout: Deadline in seconds; defaults to the adapter's timeout

        Returns:
            Number of rows affected

        Raises:
            ConstraintError: If an integrity constraint is violated
            CancellationError: If the statement is cancelled or times out
            ExecutionError: If execution fails otherwise
        """

        async def rowcount(cur: AsyncCursor[Any]) -> int:
            return max(cur.rowcount, 0)

        affected = await self._run("execute", statement, rowcount, timeout)
        logger.debug(f"Query executed: {statement.sql[:100]}... | Rows: {affected}")
        return affected

    async def fetch_all(self, statement: Statement, timeout: float | None = None) -> list[dict]:
        """Fetch all rows of a statement as column-keyed dicts."""

        async def fetchall(cur: AsyncCursor[Any]) -> list[dict]:
            return await cur.fetchall()

        rows = await self._run("fetch_all", statement, fetchall, timeout)
        logger.debug(f"Fetch all query: {statement.sql[:100]}... | Count: {len(rows)}")
        return rows

    async def fetch_one(self, statement: Statement, timeout: float | None = None) -> dict | None:
        """Fetch the first row of a statement, or None."""

        async def fetchone(cur: AsyncCursor[Any]) -> dict | None:
            return await cur.fetchone()

        row = await self._run("fetch_one", statement, fetchone, timeout)
        logger.debug(f"Fetch one query: {statement.sql[:100]}... | Found: {row is not None}")
        return row

    async def fetch_value(self, statement: Statement, timeout: float | None = None) -> Any:
        """Fetch the first column of the first row, or None."""
        row = await self.fetch_one(statement, timeout)
        if not row:
            return None
        return next(iter(row.values()))

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncConnection, None]:
        """
        Run the enclosed block inside one database transaction.

        The transaction's connection is attached to the current execution
        context, so every adapter call made inside the block uses it.
        Commits on normal exit and rolls back when the block raises.

        Raises:
            TransactionAlreadyActiveError: If a transaction is already attached
            TransactionError: If the transaction cannot be started or committed
        """
        if self.has_active_transaction:
            raise TransactionAlreadyActiveError()

        async with self._pool.connection() as conn:
            token = None
            try:
                async with conn.transaction():
                    token = _transaction_connection.set(conn)
                    logger.debug("Transaction started")
                    try:
                        yield conn
                    finally:
                        _transaction_connection.reset(token)
                logger.debug("Transaction committed")
            except psycopg.Error as e:
                if token is None:
                    raise TransactionError(f"Failed to start transaction: {e}", e) from e
                logger.error(f"Transaction failed: {e}")
                raise TransactionError(f"Transaction failed: {e}", e) from e
            except BaseException:
                logger.warning("Transaction rolled back")
                raise

    def __str__(self) -> str:
        """String representation of the adapter."""
        tx_info = "with active transaction" if self.has_active_transaction else "no transaction"
        return f"SQLAdapter(dialect={self.dialect.name}, {tx_info})"
