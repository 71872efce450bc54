"""
Paging Engine - Row windows and total counts for search queries.
"""

# Standard library imports
from dataclasses import dataclass

# Local imports
from recordsql.domain.metadata import RecordMetadata
from recordsql.domain.statement import Statement

from .dialects import Dialect
from .filter_compiler import CompiledFilter
from .query_builder import QueryBuilder


def get_offset(limit: int, page: int) -> int:
    """
    Convert a 1-based page number to a row offset.

    Examples:
        >>> get_offset(20, 1)
        0
        >>> get_offset(20, 3)
        40
    """
    return limit * (max(page, 1) - 1)


@dataclass(frozen=True)
class SearchQuery:
    """The filtered, sorted base query a search pages over."""

    table: str
    columns: tuple[str, ...]
    compiled: CompiledFilter

    def builder(self, dialect: Dialect, *, count: bool = False) -> QueryBuilder:
        """Start a builder holding this query's table and predicates."""
        builder = QueryBuilder(dialect).from_table(self.table).where(*self.compiled.conditions)
        if count:
            return builder.select_count()
        builder.select(self.columns)
        for column, direction in self.compiled.sort:
            builder.order_by(column, direction)
        return builder

    def build(self, dialect: Dialect) -> Statement:
        """Build the unpaged base statement."""
        return self.builder(dialect).build()


def build_search_query(metadata: RecordMetadata, compiled: CompiledFilter) -> SearchQuery:
    return SearchQuery(table=metadata.table, columns=metadata.columns, compiled=compiled)


def build_paged(query: SearchQuery, limit: int, offset: int, dialect: Dialect) -> Statement:
    """
    Build the base query restricted to a row window.

    Args:
        query: Base search query
        limit: Maximum number of rows
        offset: Number of rows to skip
        dialect: Target dialect (decides the row-window clause)

    Returns:
        Paged SELECT statement
    """
    return query.builder(dialect).limit(limit).offset(max(offset, 0)).build()


def build_count(query: SearchQuery, dialect: Dialect) -> Statement:
    """
    Build a COUNT(*) over the base query's predicates.

    The projection and ORDER BY are dropped; WHERE and its arguments are kept
    unchanged, so the count matches the rows the paged query can return.
    """
    return query.builder(dialect, count=True).build()
