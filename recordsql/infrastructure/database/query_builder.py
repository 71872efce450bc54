"""
Dialect-aware SQL Query Builder - Parameterized statement construction.

This module builds SQL statements with automatic parameterization. Values
never enter the SQL text: every value becomes a positional placeholder
spelled for the target dialect, and identifiers are validated before use.

Predicates are collected as templates with ``{}`` argument slots and are
only numbered when the statement is built, so placeholders always run
1..N in the order their arguments appear in the final SQL.

Usage Examples:
    # SELECT query
    statement = (QueryBuilder(POSTGRES)
        .select(["id", "username", "email"])
        .from_table("users")
        .where(Condition.compare("status", "=", "active"))
        .order_by("username")
        .limit(10)
        .build())

    # UPDATE query
    statement = (QueryBuilder(POSTGRES)
        .update("users")
        .set("email", "jane@example.com")
        .where(Condition.compare("id", "=", "u-1"))
        .build())
    # UPDATE users SET email = $1 WHERE id = $2
"""

# Standard library imports
import logging
from collections.abc import Iterable, Sequence
from enum import Enum
from typing import Any

# Local imports
from recordsql.domain.filters import SortDirection
from recordsql.domain.metadata import IDENTIFIER_PATTERN, is_identifier
from recordsql.domain.statement import Statement

from .dialects import Dialect, PagingStyle, bind, count_placeholders

logger = logging.getLogger(__name__)

COMPARISON_OPERATORS = frozenset({"=", "<>", "<", "<=", ">", ">="})

LIKE_ESCAPE = "!"


class QueryType(Enum):
    """Enumeration of supported query types."""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class QueryBuilderError(Exception):
    """Raised when query building fails due to validation or structure errors."""

    pass


def escape_like(text: str, escape: str = LIKE_ESCAPE) -> str:
    """
    Escape LIKE wildcards so that text only ever matches literally.

    Examples:
        >>> escape_like("50%_off!")
        '50!%!_off!!'
    """
    return (
        text.replace(escape, escape + escape)
        .replace("%", escape + "%")
        .replace("_", escape + "_")
    )


def _check_column(column: str, context: str = "column") -> str:
    if not isinstance(column, str) or not IDENTIFIER_PATTERN.match(column):
        raise QueryBuilderError(f"Invalid SQL {context}: {column!r}")
    return column


def _check_table(table: str) -> str:
    if not isinstance(table, str) or not is_identifier(table):
        raise QueryBuilderError(f"Invalid SQL table: {table!r}")
    return table


class Condition:
    """
    A predicate template and its arguments.

    The template holds one ``{}`` slot per argument; slots are replaced by
    dialect placeholders when the enclosing statement is built.
    """

    __slots__ = ("template", "args")

    def __init__(self, template: str, args: Sequence[Any] = ()) -> None:
        slots = template.count("{}")
        if slots != len(args):
            raise QueryBuilderError(
                f"Parameter count mismatch: {slots} placeholders, {len(args)} parameters"
            )
        self.template = template
        self.args = tuple(args)

    @classmethod
    def compare(cls, column: str, operator: str, value: Any) -> "Condition":
        """Build ``column <operator> ?``."""
        if operator not in COMPARISON_OPERATORS:
            raise QueryBuilderError(f"Invalid comparison operator: {operator}")
        return cls(f"{_check_column(column)} {operator} {{}}", [value])

    @classmethod
    def starts_with(cls, column: str, prefix: str) -> "Condition":
        """Build an anchored, case-sensitive LIKE with user wildcards escaped."""
        return cls(
            f"{_check_column(column)} LIKE {{}} ESCAPE '{LIKE_ESCAPE}'",
            [escape_like(prefix) + "%"],
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Condition):
            return NotImplemented
        return self.template == other.template and self.args == other.args

    def __repr__(self) -> str:
        return f"Condition({self.template!r}, {self.args!r})"


class ParameterSequence:
    """Hands out consecutive placeholders for one statement."""

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect
        self.next_index = 1
        self.args: list[Any] = []

    def add(self, value: Any) -> str:
        token = bind(self.dialect, self.next_index)
        self.next_index += 1
        self.args.append(value)
        return token

    def render(self, condition: Condition) -> str:
        return condition.template.format(*(self.add(value) for value in condition.args))

    def render_all(self, conditions: Iterable[Condition]) -> str:
        return " AND ".join(self.render(condition) for condition in conditions)


class QueryBuilder:
    """
    Dialect-aware SQL query builder with automatic parameterization.

    This class builds queries while enforcing:
    - All data values are parameterized automatically
    - SQL identifiers (tables, columns) are validated
    - Query structure is validated before building
    - Placeholder count always equals argument count
    """

    def __init__(self, dialect: Dialect) -> None:
        """Initialize a new query builder for the given dialect."""
        self.dialect = dialect
        self._query_type: QueryType | None = None
        self._table: str | None = None
        self._select_columns: list[str] = []
        self._count_only = False
        self._where: list[Condition] = []
        self._order_by: list[tuple[str, SortDirection]] = []
        self._limit_count: int | None = None
        self._offset_count: int | None = None

        # INSERT/UPDATE specific
        self._insert_columns: list[str] = []
        self._insert_values: list[Any] | None = None
        self._assignments: list[tuple[str, Any]] = []

    def _start(self, query_type: QueryType) -> None:
        if self._query_type is not None and self._query_type != query_type:
            raise QueryBuilderError(
                f"Cannot mix {query_type.value} with {self._query_type.value}"
            )
        self._query_type = query_type

    def select(self, columns: Sequence[str]) -> "QueryBuilder":
        """
        Add SELECT columns to the query.

        Args:
            columns: Column names to select

        Returns:
            Self for method chaining
        """
        self._start(QueryType.SELECT)
        self._select_columns.extend(_check_column(column) for column in columns)
        return self

    def select_count(self) -> "QueryBuilder":
        """Project COUNT(*) instead of columns."""
        self._start(QueryType.SELECT)
        self._count_only = True
        return self

    def from_table(self, table: str) -> "QueryBuilder":
        """Set the FROM table for SELECT queries."""
        self._table = _check_table(table)
        return self

    def where(self, *conditions: Condition) -> "QueryBuilder":
        """
        Add WHERE predicates; all predicates are AND-ed in the order added.

        Returns:
            Self for method chaining
        """
        self._where.extend(conditions)
        return self

    def order_by(
        self, column: str, direction: SortDirection | str = SortDirection.ASC
    ) -> "QueryBuilder":
        """
        Add ORDER BY clause.

        Args:
            column: Column name to order by
            direction: Sort direction (ASC or DESC)

        Returns:
            Self for method chaining
        """
        try:
            direction = SortDirection(str(getattr(direction, "value", direction)).upper())
        except ValueError:
            raise QueryBuilderError(f"Invalid sort direction: {direction}") from None
        self._order_by.append((_check_column(column, "order by column"), direction))
        return self

    def limit(self, count: int) -> "QueryBuilder":
        """Add a row-window size."""
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise QueryBuilderError("LIMIT count must be a non-negative integer")
        self._limit_count = count
        return self

    def offset(self, count: int) -> "QueryBuilder":
        """Add a row-window start."""
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise QueryBuilderError("OFFSET count must be a non-negative integer")
        self._offset_count = count
        return self

    def insert_into(self, table: str, columns: Sequence[str]) -> "QueryBuilder":
        """Start an INSERT query."""
        self._start(QueryType.INSERT)
        self._table = _check_table(table)
        self._insert_columns = [_check_column(column, "insert column") for column in columns]
        return self

    def values(self, values: Sequence[Any]) -> "QueryBuilder":
        """Add the VALUES for an INSERT, one per insert column."""
        if self._query_type != QueryType.INSERT:
            raise QueryBuilderError("VALUES can only be used with INSERT")
        if len(values) != len(self._insert_columns):
            raise QueryBuilderError(
                f"VALUES parameter count ({len(values)}) must match column count "
                f"({len(self._insert_columns)})"
            )
        self._insert_values = list(values)
        return self

    def update(self, table: str) -> "QueryBuilder":
        """Start an UPDATE query."""
        self._start(QueryType.UPDATE)
        self._table = _check_table(table)
        return self

    def set(self, column: str, value: Any) -> "QueryBuilder":
        """Add one ``column = ?`` assignment to an UPDATE."""
        if self._query_type != QueryType.UPDATE:
            raise QueryBuilderError("SET can only be used with UPDATE")
        self._assignments.append((_check_column(column, "update column"), value))
        return self

    def delete_from(self, table: str) -> "QueryBuilder":
        """Start a DELETE query."""
        self._start(QueryType.DELETE)
        self._table = _check_table(table)
        return self

    def build(self) -> Statement:
        """
        Build the final SQL statement with arguments.

        Returns:
            Statement containing SQL and arguments

        Raises:
            QueryBuilderError: If query structure is invalid
        """
        if self._query_type is None:
            raise QueryBuilderError("No query type specified")
        if not self._table:
            raise QueryBuilderError(f"{self._query_type.value} query must have a table")

        params = ParameterSequence(self.dialect)
        if self._query_type == QueryType.SELECT:
            sql = self._build_select(params)
        elif self._query_type == QueryType.INSERT:
            sql = self._build_insert(params)
        elif self._query_type == QueryType.UPDATE:
            sql = self._build_update(params)
        else:
            sql = self._build_delete(params)

        placeholders = count_placeholders(self.dialect, sql)
        if placeholders != len(params.args):
            raise QueryBuilderError(
                f"Parameter count mismatch: {placeholders} placeholders, {len(params.args)} parameters"
            )
        logger.debug(f"Built SQL: {sql[:100]}")
        return Statement(sql, params.args)

    def _where_clause(self, params: ParameterSequence) -> str:
        if not self._where:
            return ""
        return " WHERE " + params.render_all(self._where)

    def _build_select(self, params: ParameterSequence) -> str:
        if self._count_only:
            projection = "COUNT(*)"
        elif self._select_columns:
            projection = ", ".join(self._select_columns)
        else:
            raise QueryBuilderError("SELECT query must have columns")

        sql = f"SELECT {projection} FROM {self._table}" + self._where_clause(params)

        order_by = [f"{column} {direction.value}" for column, direction in self._order_by]
        windowed = self._limit_count is not None or self._offset_count is not None
        if (
            windowed
            and not order_by
            and self.dialect.requires_order_for_paging
        ):
            order_by = ["(SELECT NULL)"]
        if order_by:
            sql += " ORDER BY " + ", ".join(order_by)
        if windowed:
            sql += self._window_clause()
        return sql

    def _window_clause(self) -> str:
        limit = self._limit_count
        offset = self._offset_count or 0
        if self.dialect.paging is PagingStyle.OFFSET_FETCH:
            clause = f" OFFSET {offset} ROWS"
            if limit is not None:
                clause += f" FETCH NEXT {limit} ROWS ONLY"
            return clause
        clause = f" LIMIT {limit}" if limit is not None else ""
        if self._offset_count is not None:
            clause += f" OFFSET {offset}"
        return clause

    def _build_insert(self, params: ParameterSequence) -> str:
        if not self._insert_columns:
            raise QueryBuilderError("INSERT query must have columns")
        if self._insert_values is None:
            raise QueryBuilderError("INSERT query must have VALUES")

        placeholders = ", ".join(params.add(value) for value in self._insert_values)
        return (
            f"INSERT INTO {self._table} ({', '.join(self._insert_columns)}) "
            f"VALUES ({placeholders})"
        )

    def _build_update(self, params: ParameterSequence) -> str:
        if not self._assignments:
            raise QueryBuilderError("UPDATE query must have SET clauses")
        if not self._where:
            raise QueryBuilderError("UPDATE query must have a WHERE clause")

        assignments = ", ".join(
            f"{column} = {params.add(value)}" for column, value in self._assignments
        )
        return f"UPDATE {self._table} SET {assignments}" + self._where_clause(params)

    def _build_delete(self, params: ParameterSequence) -> str:
        if not self._where:
            raise QueryBuilderError("DELETE query must have a WHERE clause")
        return f"DELETE FROM {self._table}" + self._where_clause(params)
