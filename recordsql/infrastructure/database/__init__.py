"""
Database Infrastructure Module

Dialect-aware SQL construction and psycopg3 execution.
"""

from .adapter import SQLAdapter
from .dialects import DIALECTS, Dialect, PagingStyle, PlaceholderStyle, bind, get_dialect
from .filter_compiler import CompiledFilter, FilterCompiler
from .paging import SearchQuery, build_count, build_paged, build_search_query, get_offset
from .query_builder import Condition, QueryBuilder, QueryBuilderError
from .statements import (
    build_delete,
    build_insert,
    build_patch,
    build_select_all,
    build_select_by_key,
    build_update,
)

__all__ = [
    "SQLAdapter",
    "DIALECTS",
    "Dialect",
    "PagingStyle",
    "PlaceholderStyle",
    "bind",
    "get_dialect",
    "CompiledFilter",
    "FilterCompiler",
    "SearchQuery",
    "build_count",
    "build_paged",
    "build_search_query",
    "get_offset",
    "Condition",
    "QueryBuilder",
    "QueryBuilderError",
    "build_delete",
    "build_insert",
    "build_patch",
    "build_select_all",
    "build_select_by_key",
    "build_update",
]
