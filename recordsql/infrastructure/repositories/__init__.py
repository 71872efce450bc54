"""
Repository Infrastructure Module

Generic repository implementation, patch mapping and transaction scopes.
"""

from .patch_mapper import PatchMapper
from .repository import Repository, RepositoryFactory
from .unit_of_work import TransactionManager, UnitOfWork

__all__ = [
    "PatchMapper",
    "Repository",
    "RepositoryFactory",
    "TransactionManager",
    "UnitOfWork",
]
