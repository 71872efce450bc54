"""
Unit tests for the psycopg3 SQL adapter.

Tests cover:
- Statement execution and fetching
- Context-bound transactions
- Error classification
- Deadlines and cancellation
"""

import asyncio

import psycopg
import pytest

from recordsql.application.interfaces.exceptions import (
    CancellationError,
    ConstraintError,
    DeadlineExceededError,
    ExecutionError,
    TransactionAlreadyActiveError,
)
from recordsql.domain.statement import Statement
from recordsql.infrastructure.config import RepositoryConfig
from recordsql.infrastructure.database.adapter import SQLAdapter, classify_error
from recordsql.infrastructure.database.dialects import PSYCOPG, SQLITE

SELECT_USER = Statement("SELECT id, username FROM users WHERE id = %s", [1])


async def _slow_execute(*args, **kwargs):
    await asyncio.sleep(10)


class TestSQLAdapterInitialization:
    """Test SQLAdapter initialization."""

    def test_initialization(self, mock_pool):
        adapter = SQLAdapter(mock_pool)

        assert adapter.pool == mock_pool
        assert adapter.dialect is PSYCOPG
        assert adapter.statement_timeout is None
        assert adapter.has_active_transaction is False

    def test_from_config(self, mock_pool):
        adapter = SQLAdapter.from_config(
            mock_pool, RepositoryConfig(dialect=SQLITE, statement_timeout=2.5)
        )
        assert adapter.dialect is SQLITE
        assert adapter.statement_timeout == 2.5

    def test_str(self, mock_pool):
        assert str(SQLAdapter(mock_pool)) == "SQLAdapter(dialect=psycopg, no transaction)"


class TestSQLAdapterExecution:
    """Test statement execution."""

    @pytest.mark.asyncio
    async def test_execute_returns_rowcount(self, mock_pool, mock_connection, mock_cursor):
        mock_cursor.rowcount = 3
        adapter = SQLAdapter(mock_pool)

        affected = await adapter.execute(Statement("DELETE FROM users WHERE id = %s", [1]))

        assert affected == 3
        mock_cursor.execute.assert_awaited_once_with("DELETE FROM users WHERE id = %s", (1,))
        mock_pool.connection.assert_called_once()

    @pytest.mark.asyncio
    async def test_execute_unknown_rowcount_is_zero(self, mock_pool, mock_cursor):
        mock_cursor.rowcount = -1
        adapter = SQLAdapter(mock_pool)

        statement = Statement("UPDATE users SET a = %s WHERE id = %s", [1, 2])
        assert await adapter.execute(statement) == 0

    @pytest.mark.asyncio
    async def test_fetch_one(self, mock_pool, mock_cursor):
        mock_cursor.fetchone.return_value = {"id": 1, "username": "ann"}
        adapter = SQLAdapter(mock_pool)

        assert await adapter.fetch_one(SELECT_USER) == {"id": 1, "username": "ann"}

    @pytest.mark.asyncio
    async def test_fetch_all(self, mock_pool, mock_cursor):
        rows = [{"id": 1}, {"id": 2}]
        mock_cursor.fetchall.return_value = rows
        adapter = SQLAdapter(mock_pool)

        assert await adapter.fetch_all(Statement("SELECT id FROM users")) == rows

    @pytest.mark.asyncio
    async def test_fetch_value(self, mock_pool, mock_cursor):
        mock_cursor.fetchone.return_value = {"count": 42}
        adapter = SQLAdapter(mock_pool)

        assert await adapter.fetch_value(Statement("SELECT COUNT(*) FROM users")) == 42

    @pytest.mark.asyncio
    async def test_fetch_value_without_row(self, mock_pool, mock_cursor):
        mock_cursor.fetchone.return_value = None
        adapter = SQLAdapter(mock_pool)

        assert await adapter.fetch_value(Statement("SELECT COUNT(*) FROM users")) is None


class TestSQLAdapterErrors:
    """Test driver error classification."""

    @pytest.mark.asyncio
    async def test_integrity_error(self, mock_pool, mock_cursor):
        mock_cursor.execute.side_effect = psycopg.errors.UniqueViolation("duplicate key")
        adapter = SQLAdapter(mock_pool)

        with pytest.raises(ConstraintError) as exc_info:
            await adapter.execute(Statement("INSERT INTO users (username) VALUES (%s)", ["a"]))

        assert exc_info.value.sqlstate == "23505"
        assert isinstance(exc_info.value.cause, psycopg.errors.UniqueViolation)

    @pytest.mark.asyncio
    async def test_query_canceled(self, mock_pool, mock_cursor):
        mock_cursor.execute.side_effect = psycopg.errors.QueryCanceled("canceling statement")
        adapter = SQLAdapter(mock_pool)

        with pytest.raises(CancellationError):
            await adapter.fetch_all(Statement("SELECT id FROM users"))

    @pytest.mark.asyncio
    async def test_other_driver_error(self, mock_pool, mock_cursor):
        mock_cursor.execute.side_effect = psycopg.OperationalError("server closed the connection")
        adapter = SQLAdapter(mock_pool)

        with pytest.raises(ExecutionError, match="server closed the connection"):
            await adapter.fetch_one(SELECT_USER)

    @pytest.mark.asyncio
    async def test_pool_error(self, mock_pool):
        mock_pool.connection.return_value.__aenter__.side_effect = psycopg.OperationalError(
            "pool exhausted"
        )
        adapter = SQLAdapter(mock_pool)

        with pytest.raises(ExecutionError):
            await adapter.fetch_one(SELECT_USER)

    def test_classify_error(self):
        error = classify_error("insert", psycopg.errors.ForeignKeyViolation("fk"))
        assert isinstance(error, ConstraintError)
        assert isinstance(classify_error("x", psycopg.DataError("bad")), ExecutionError)

    @pytest.mark.asyncio
    async def test_non_driver_errors_propagate(self, mock_pool, mock_cursor):
        mock_cursor.execute.side_effect = ValueError("boom")
        adapter = SQLAdapter(mock_pool)

        with pytest.raises(ValueError, match="boom"):
            await adapter.execute(SELECT_USER)


class TestSQLAdapterCancellation:
    """Test deadlines and caller cancellation."""

    @pytest.mark.asyncio
    async def test_deadline_exceeded(self, mock_pool, mock_connection, mock_cursor):
        mock_cursor.execute.side_effect = _slow_execute
        adapter = SQLAdapter(mock_pool)

        with pytest.raises(DeadlineExceededError) as exc_info:
            await adapter.fetch_all(Statement("SELECT id FROM users"), timeout=0.01)

        assert exc_info.value.operation == "fetch_all"
        assert exc_info.value.timeout_seconds == 0.01
        mock_connection.cancel_safe.assert_awaited_once()
        mock_pool.connection.return_value.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_default_timeout_applies(self, mock_pool, mock_cursor):
        mock_cursor.execute.side_effect = _slow_execute
        adapter = SQLAdapter(mock_pool, statement_timeout=0.01)

        with pytest.raises(CancellationError):
            await adapter.execute(SELECT_USER)

    @pytest.mark.asyncio
    async def test_caller_cancellation_propagates(self, mock_pool, mock_connection, mock_cursor):
        mock_cursor.execute.side_effect = _slow_execute
        adapter = SQLAdapter(mock_pool)

        task = asyncio.create_task(adapter.fetch_all(Statement("SELECT id FROM users")))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        mock_connection.cancel_safe.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_server_cancel_is_logged(self, mock_pool, mock_connection, mock_cursor):
        mock_cursor.execute.side_effect = _slow_execute
        mock_connection.cancel_safe.side_effect = psycopg.OperationalError("cannot cancel")
        adapter = SQLAdapter(mock_pool)

        with pytest.raises(DeadlineExceededError):
            await adapter.execute(SELECT_USER, timeout=0.01)


class TestSQLAdapterTransactions:
    """Test context-bound transactions."""

    @pytest.mark.asyncio
    async def test_statements_share_transaction_connection(
        self, mock_pool, mock_connection, mock_cursor
    ):
        adapter = SQLAdapter(mock_pool)

        async with adapter.transaction() as conn:
            assert conn is mock_connection
            assert adapter.has_active_transaction
            await adapter.execute(SELECT_USER)
            await adapter.execute(SELECT_USER)

        assert adapter.has_active_transaction is False
        mock_pool.connection.assert_called_once()
        mock_connection.transaction.return_value.__aexit__.assert_awaited_once()
        assert mock_cursor.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_nested_transaction_rejected(self, mock_pool):
        adapter = SQLAdapter(mock_pool)

        async with adapter.transaction():
            with pytest.raises(TransactionAlreadyActiveError):
                async with adapter.transaction():
                    pass

    @pytest.mark.asyncio
    async def test_error_rolls_back_and_propagates(self, mock_pool, mock_connection):
        adapter = SQLAdapter(mock_pool)

        with pytest.raises(RuntimeError, match="abort"):
            async with adapter.transaction():
                raise RuntimeError("abort")

        exit_args = mock_connection.transaction.return_value.__aexit__.await_args.args
        assert exit_args[0] is RuntimeError
        assert adapter.has_active_transaction is False

    @pytest.mark.asyncio
    async def test_transaction_is_bound_to_its_task(self, mock_pool):
        """Test a transaction is invisible to tasks started before it."""
        adapter = SQLAdapter(mock_pool)
        release = asyncio.Event()
        seen = []

        async def other_task():
            await release.wait()
            seen.append(adapter.has_active_transaction)

        task = asyncio.create_task(other_task())
        async with adapter.transaction():
            release.set()
            await task

        assert seen == [False]
