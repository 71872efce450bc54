"""
Generic Record Repository Implementation

Concrete implementation of IRepository for any described record type.
Routes each call to the statement builder, patch mapper or filter compiler
and paging engine, then executes the built statements through the adapter.
"""

# Standard library imports
import logging
from collections.abc import Mapping
from dataclasses import is_dataclass
from typing import Any, TypeVar

# Local imports
from recordsql.application.interfaces.exceptions import SchemaError
from recordsql.application.interfaces.repositories import IRepository, SearchResult
from recordsql.domain.filters import Filter, FilterSpec
from recordsql.domain.metadata import RecordMetadata
from recordsql.domain.patch import PatchPayload
from recordsql.infrastructure.config import RepositoryConfig
from recordsql.infrastructure.database.adapter import SQLAdapter
from recordsql.infrastructure.database.dialects import Dialect
from recordsql.infrastructure.database.filter_compiler import FilterCompiler
from recordsql.infrastructure.database.paging import (
    build_count,
    build_paged,
    build_search_query,
    get_offset,
)
from recordsql.infrastructure.database.statements import (
    build_delete,
    build_insert,
    build_patch,
    build_select_all,
    build_select_by_key,
    build_update,
)
from recordsql.infrastructure.schema.introspector import SchemaIntrospector

from .patch_mapper import PatchMapper

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")


class Repository(IRepository[RecordT]):
    """
    Generic implementation of IRepository.

    Holds no per-call state, so one instance may serve concurrent calls.
    Statements run on the transaction attached to the current execution
    context when there is one, otherwise on a pooled connection each.
    """

    def __init__(
        self,
        adapter: SQLAdapter,
        record_type: type[RecordT],
        filter_spec: FilterSpec | None = None,
        *,
        introspector: SchemaIntrospector | None = None,
        dialect: Dialect | None = None,
        config: RepositoryConfig | None = None,
    ) -> None:
        """
        Initialize repository for one record type.

        Args:
            adapter: SQL execution adapter
            record_type: Record class to persist
            filter_spec: Filterable fields for search; None allows no criteria
            introspector: Shared metadata cache; a private one if omitted
            dialect: Statement dialect; defaults to the adapter's
            config: Repository settings; defaults apply if omitted

        Raises:
            SchemaError: If the record type or filter spec is malformed
        """
        self.adapter = adapter
        self.config = config or RepositoryConfig()
        self.dialect = dialect or adapter.dialect
        self.introspector = introspector or SchemaIntrospector()
        self.metadata: RecordMetadata = self.introspector.get(record_type)
        self.filter_spec = filter_spec or FilterSpec(())
        self.compiler = FilterCompiler(self.metadata, self.filter_spec, self.dialect)
        self.patch_mapper = PatchMapper(
            self.metadata, ignore_unknown=self.config.ignore_unknown_patch_keys
        )

    @property
    def record_type(self) -> type[RecordT]:
        return self.metadata.record_type

    def _timeout(self, timeout: float | None) -> float | None:
        return timeout if timeout is not None else self.config.statement_timeout

    def _map_row(self, row: Mapping[str, Any]) -> RecordT:
        try:
            return self.metadata.to_record(row)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Failed to map {self.metadata.table} row to {self.metadata.type_name}: {e}")
            raise SchemaError(self.metadata.type_name, f"cannot build record from row: {e}") from e

    async def all(self, *, timeout: float | None = None) -> list[RecordT]:
        """
        Retrieve every row of the record's table.

        Returns:
            Records in database order, empty if none
        """
        rows = await self.adapter.fetch_all(
            build_select_all(self.metadata, self.dialect), self._timeout(timeout)
        )
        logger.debug(f"Loaded {len(rows)} rows from {self.metadata.table}")
        return [self._map_row(row) for row in rows]

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
        """
        statement = build_select_by_key(key, self.metadata, self.dialect)
        row = await self.adapter.fetch_one(statement, self._timeout(timeout))
        if row is None:
            return None
        return self._map_row(row)

    async def create(self, record: RecordT, *, timeout: float | None = None) -> int:
        """
        Insert a record; database-generated columns are left to the database.

        Returns:
            Number of rows inserted

        Raises:
            ConstraintError: If the database rejects the row
        """
        affected = await self.adapter.execute(
            build_insert(record, self.metadata, self.dialect), self._timeout(timeout)
        )
        logger.debug(f"Inserted {affected} row(s) into {self.metadata.table}")
        return affected

    async def update(self, record: RecordT, *, timeout: float | None = None) -> int:
        """
        Overwrite every non-key column of the row identified by the record's key.

        Returns:
            Number of rows updated; 0 means the row does not exist

        Raises:
            MissingKeyError: If any key value is absent
            ConstraintError: If the database rejects the change
        """
        affected = await self.adapter.execute(
            build_update(record, self.metadata, self.dialect), self._timeout(timeout)
        )
        logger.debug(f"Updated {affected} row(s) in {self.metadata.table}")
        return affected

    async def patch(self, payload: Mapping[str, Any] | Any, *, timeout: float | None = None) -> int:
        """
        Update only the fields present in a payload.

        The payload is a mapping keyed by JSON key, attribute or column name,
        a PatchPayload, or a dataclass instance whose unset attributes hold
        UNSET. Key fields select the row and are never assigned.

        Returns:
            Number of rows updated; 0 when nothing matched or nothing was set

        Raises:
            ValidationError: If the payload names an unknown field
            MissingKeyError: If any key value is absent
        """
        if not isinstance(payload, (PatchPayload, Mapping)) and is_dataclass(payload):
            payload = PatchPayload.from_record(payload)

        document = self.patch_mapper.map(payload)
        if document.is_empty:
            logger.debug(f"Empty patch for {self.metadata.table}, nothing to update")
            return 0

        affected = await self.adapter.execute(
            build_patch(document, self.metadata, self.dialect), self._timeout(timeout)
        )
        logger.debug(
            f"Patched {affected} row(s) in {self.metadata.table}: {', '.join(document.columns)}"
        )
        return affected

    async def delete(self, key: Any, *, timeout: float | None = None) -> int:
        """
        Delete the row identified by key.

        Returns:
            Number of rows deleted; 0 means the row does not exist

        Raises:
            MissingKeyError: If any key value is absent
        """
        affected = await self.adapter.execute(
            build_delete(key, self.metadata, self.dialect), self._timeout(timeout)
        )
        logger.debug(f"Deleted {affected} row(s) from {self.metadata.table}")
        return affected

    async def search(
        self,
        search_filter: Filter | Mapping[str, Any] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        *,
        timeout: float | None = None,
    ) -> SearchResult[RecordT]:
        """
        Run a filtered, sorted, paginated search.

        The total is counted once per call with the same predicates as the
        page. A non-positive limit returns an empty result without touching
        the database, and the page query is skipped when nothing matches.

        Args:
            search_filter: Filter or its wire mapping; None matches every row
            limit: Page size; defaults to the filter's limit, then
                FilterSpec.default_limit, then RepositoryConfig.default_limit
            offset: Rows to skip; defaults to the offset of the filter's page

        Returns:
            One page of records and the total match count

        Raises:
            ValidationError: If the filter names undeclared fields or sorts
        """
        if search_filter is None:
            search_filter = Filter()
        elif isinstance(search_filter, Mapping):
            search_filter = self.compiler.decode(search_filter)

        compiled = self.compiler.compile(search_filter)

        if limit is None:
            limit = search_filter.limit
        if limit is None:
            limit = self.filter_spec.default_limit
        if limit is None:
            limit = self.config.default_limit
        if offset is None:
            offset = get_offset(limit, search_filter.page)

        if limit <= 0:
            return SearchResult(items=[], total=0)

        query = build_search_query(self.metadata, compiled)
        timeout = self._timeout(timeout)

        total = int(await self.adapter.fetch_value(build_count(query, self.dialect), timeout) or 0)
        if total == 0:
            logger.debug(f"Search on {self.metadata.table} matched no rows")
            return SearchResult(items=[], total=0)

        rows = await self.adapter.fetch_all(
            build_paged(query, limit, offset, self.dialect), timeout
        )
        logger.debug(
            f"Search on {self.metadata.table}: {len(rows)} of {total} rows "
            f"(limit {limit}, offset {offset})"
        )
        return SearchResult(items=[self._map_row(row) for row in rows], total=total)

    def __str__(self) -> str:
        return f"Repository({self.metadata.type_name} -> {self.metadata.table})"


class RepositoryFactory:
    """
    Creates repositories that share one adapter, config and metadata cache.
    """

    def __init__(
        self,
        adapter: SQLAdapter,
        config: RepositoryConfig | None = None,
        introspector: SchemaIntrospector | None = None,
    ) -> None:
        self.adapter = adapter
        self.config = config or RepositoryConfig()
        self.introspector = introspector or SchemaIntrospector()

    def create(
        self, record_type: type[RecordT], filter_spec: FilterSpec | None = None
    ) -> Repository[RecordT]:
        """
        Create a repository for a record type.

        Raises:
            SchemaError: If the record type or filter spec is malformed
        """
        return Repository(
            self.adapter,
            record_type,
            filter_spec,
            introspector=self.introspector,
            config=self.config,
        )
