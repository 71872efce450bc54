"""
Infrastructure Layer for recordsql.

Concrete implementations of the application layer interfaces:
- database: dialects, statement building, filter compilation, paging and the
  psycopg3 execution adapter
- schema: record metadata introspection and caching
- repositories: the generic repository, patch mapping and unit of work
"""

from .config import RepositoryConfig
from .database import SQLAdapter
from .repositories import Repository, RepositoryFactory, TransactionManager, UnitOfWork
from .schema import SchemaIntrospector

__all__ = [
    "RepositoryConfig",
    "SQLAdapter",
    "Repository",
    "RepositoryFactory",
    "SchemaIntrospector",
    "TransactionManager",
    "UnitOfWork",
]
