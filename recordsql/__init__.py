"""
recordsql - Generic relational record access.

Builds parameterized SQL for create, update, patch, delete, point lookup,
list-all and filtered paginated search from a description of a record type,
and executes it through psycopg3.

Example usage:
    from dataclasses import dataclass
    from psycopg_pool import AsyncConnectionPool
    from recordsql import FilterField, FilterSpec, Match, RepositoryFactory, SQLAdapter, column

    @dataclass
    class User:
        id: int = column(key=True, generated=True)
        username: str = ""

    pool = AsyncConnectionPool(dsn, open=False)
    await pool.open()
    factory = RepositoryFactory(SQLAdapter(pool))
    users = factory.create(User, FilterSpec([FilterField("username", match=Match.PREFIX)]))
    page = await users.search({"username": "ton", "page": 2, "limit": 10})
"""

from .application.interfaces import (
    CancellationError,
    ConfigurationError,
    ConstraintError,
    DeadlineExceededError,
    ExecutionError,
    IRepository,
    MissingKeyError,
    RepositoryError,
    SchemaError,
    SearchResult,
    TransactionAlreadyActiveError,
    TransactionError,
    TransactionNotActiveError,
    ValidationError,
)
from .domain import (
    UNSET,
    Exact,
    FieldDescriptor,
    Filter,
    FilterField,
    FilterSpec,
    Match,
    PatchPayload,
    Prefix,
    Range,
    RecordMetadata,
    SortDirection,
    SortKey,
    Statement,
    column,
)
from .infrastructure import (
    SQLAdapter,
    Repository,
    RepositoryConfig,
    RepositoryFactory,
    SchemaIntrospector,
    TransactionManager,
    UnitOfWork,
)
from .infrastructure.database import DIALECTS, Dialect, get_dialect

__all__ = [
    # Records
    "column",
    "UNSET",
    "FieldDescriptor",
    "RecordMetadata",
    "SchemaIntrospector",
    # Search
    "Filter",
    "FilterField",
    "FilterSpec",
    "Match",
    "Exact",
    "Prefix",
    "Range",
    "SortDirection",
    "SortKey",
    "SearchResult",
    # Statements
    "Statement",
    "Dialect",
    "DIALECTS",
    "get_dialect",
    # Repositories
    "IRepository",
    "Repository",
    "RepositoryFactory",
    "RepositoryConfig",
    "PatchPayload",
    "SQLAdapter",
    "UnitOfWork",
    "TransactionManager",
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
