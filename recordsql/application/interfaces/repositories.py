"""
Repository Interface Definitions

Defines the contract that generic record repositories implement.
"""

# Standard library imports
from abc import abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar

RecordT = TypeVar("RecordT")


@dataclass(frozen=True)
class SearchResult(Generic[RecordT]):
    """One page of search results plus the total number of matching rows."""

    items: Sequence[RecordT] = field(default_factory=tuple)
    total: int = 0


class IRepository(Protocol[RecordT]):
    """
    Generic record repository interface.

    Not-found is reported as a zero count or None, never as an exception.
    """

    @abstractmethod
    async def all(self, *, timeout: float | None = None) -> list[RecordT]:
        """
        Retrieve every row of the record's table.

        Raises:
            RepositoryError: If retrieval fails
        """
        ...

    @abstractmethod
    async def load(self, key: Any, *, timeout: float | None = None) -> RecordT | None:
        """
        Retrieve one record by primary key.

        Args:
            key: Scalar for single-column keys, sequence or mapping for
                composite keys

        Returns:
            The record if found, None otherwise

        Raises:
            MissingKeyError: If any key value is absent
            RepositoryError: If retrieval fails
        """
        ...

    @abstractmethod
    async def create(self, record: RecordT, *, timeout: float | None = None) -> int:
        """
        Insert a record.

        Returns:
            Number of rows inserted

        Raises:
            ConstraintError: If the database rejects the row
            RepositoryError: If the insert fails otherwise
        """
        ...

    @abstractmethod
    async def update(self, record: RecordT, *, timeout: float | None = None) -> int:
        """
        Overwrite every non-key column of the row the record's key identifies.

        Returns:
            Number of rows updated; 0 means the row does not exist

        Raises:
            MissingKeyError: If any key value is absent
            ConstraintError: If the database rejects the change
        """
        ...

    @abstractmethod
    async def patch(self, payload: Mapping[str, Any] | Any, *, timeout: float | None = None) -> int:
        """
        Update only the fields present in a payload.

        Returns:
            Number of rows updated; 0 when nothing matched or nothing was set

        Raises:
            ValidationError: If the payload names an unknown field
            MissingKeyError: If any key value is absent
        """
        ...

    @abstractmethod
    async def delete(self, key: Any, *, timeout: float | None = None) -> int:
        """
        Delete the row identified by key.

        Returns:
            Number of rows deleted; 0 means the row does not exist

        Raises:
            MissingKeyError: If any key value is absent
        """
        ...

    @abstractmethod
    async def search(
        self,
        search_filter: Any = None,
        limit: int | None = None,
        offset: int | None = None,
        *,
        timeout: float | None = None,
    ) -> SearchResult[RecordT]:
        """
        Run a filtered, sorted, paginated search.

        Args:
            search_filter: Filter or its wire mapping
            limit: Page size; defaults to the filter's limit
            offset: Rows to skip; defaults to the filter's page offset

        Returns:
            One page of records and the total match count

        Raises:
            ValidationError: If the filter names undeclared fields or sorts
        """
        ...
