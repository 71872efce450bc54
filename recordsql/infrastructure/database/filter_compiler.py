"""
Filter Compiler - Search filters to WHERE and ORDER BY fragments.

Predicates are emitted in the declaration order of the FilterSpec, never in
the order the caller's mapping happens to iterate, so the same filter always
compiles to the same SQL and argument list.
"""

# Standard library imports
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

# Local imports
from recordsql.application.interfaces.exceptions import SchemaError, ValidationError
from recordsql.domain.filters import (
    SORT_KEY,
    Criterion,
    Exact,
    Filter,
    FilterSpec,
    Prefix,
    Range,
    SortDirection,
)
from recordsql.domain.metadata import FieldDescriptor, RecordMetadata

from .dialects import Dialect
from .query_builder import Condition, ParameterSequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledFilter:
    """
    A compiled filter.

    ``where`` and ``order_by`` are fragments without their keywords and are
    empty strings when there is nothing to filter or sort on.
    """

    conditions: tuple[Condition, ...]
    sort: tuple[tuple[str, SortDirection], ...]
    where: str
    args: tuple[Any, ...]
    order_by: str

    @property
    def is_empty(self) -> bool:
        return not self.conditions


class FilterCompiler:
    """
    Compiles filters for one record type.

    Args:
        metadata: Metadata of the searched record type
        spec: Declared filter fields; None declares no filterable fields
        dialect: Target dialect

    Raises:
        SchemaError: If filter_spec names fields the record type does not have
    """

    def __init__(self, metadata: RecordMetadata, spec: FilterSpec | None, dialect: Dialect) -> None:
        self.metadata = metadata
        self.spec = spec or FilterSpec(())
        self.dialect = dialect

        self._targets: dict[str, FieldDescriptor] = {}
        for filter_field in self.spec.fields:
            descriptor = metadata.find(filter_field.target)
            if descriptor is None:
                raise SchemaError(
                    metadata.type_name, f"filter field {filter_field.name!r} maps to no column"
                )
            self._targets[filter_field.name] = descriptor

        if self.spec.sortable is None:
            self._sortable = {descriptor.column for descriptor in metadata.fields}
        else:
            self._sortable = set()
            for name in self.spec.sortable:
                descriptor = metadata.find(name)
                if descriptor is None:
                    raise SchemaError(metadata.type_name, f"sortable {name!r} maps to no column")
                self._sortable.add(descriptor.column)

    def decode(self, wire: Mapping[str, Any]) -> Filter:
        """Decode the wire shape of a search request with this compiler's spec."""
        return self.spec.decode(wire)

    def compile(self, search_filter: Filter) -> CompiledFilter:
        """
        Compile a filter.

        Raises:
            ValidationError: If a criterion or sort column is not declared
        """
        unknown = [name for name in search_filter.criteria if name not in self._targets]
        if unknown:
            raise ValidationError(unknown[0], "unknown filter field")

        sort = self._resolve_sort(search_filter)

        conditions: list[Condition] = []
        for filter_field in self.spec.fields:
            criterion = search_filter.criteria.get(filter_field.name)
            if criterion is None:
                continue
            column = self._targets[filter_field.name].column
            conditions.extend(self._conditions(filter_field.name, column, criterion))

        params = ParameterSequence(self.dialect)
        where = params.render_all(conditions)
        order_by = ", ".join(f"{column} {direction.value}" for column, direction in sort)

        logger.debug(
            f"Compiled filter for {self.metadata.table}: "
            f"{len(conditions)} predicates, {len(sort)} sort keys"
        )
        return CompiledFilter(
            conditions=tuple(conditions),
            sort=sort,
            where=where,
            args=tuple(params.args),
            order_by=order_by,
        )

    def _resolve_sort(self, search_filter: Filter) -> tuple[tuple[str, SortDirection], ...]:
        resolved = []
        for key in search_filter.sort:
            descriptor = self.metadata.find(key.column)
            if descriptor is None or descriptor.column not in self._sortable:
                raise ValidationError(SORT_KEY, f"cannot sort by {key.column!r}")
            try:
                direction = SortDirection(key.direction)
            except ValueError:
                raise ValidationError(
                    SORT_KEY, f"invalid sort direction {key.direction!r}"
                ) from None
            resolved.append((descriptor.column, direction))
        return tuple(resolved)

    @staticmethod
    def _conditions(name: str, column: str, criterion: Criterion) -> list[Condition]:
        if isinstance(criterion, Exact):
            if criterion.value is None:
                return [Condition(f"{column} IS NULL")]
            return [Condition.compare(column, "=", criterion.value)]

        if isinstance(criterion, Prefix):
            if not isinstance(criterion.text, str):
                raise ValidationError(name, "prefix match requires a string")
            return [Condition.starts_with(column, criterion.text)]

        if isinstance(criterion, Range):
            conditions = []
            if criterion.min is not None:
                conditions.append(Condition.compare(column, ">=", criterion.min))
            if criterion.max is not None:
                conditions.append(Condition.compare(column, "<=", criterion.max))
            return conditions

        raise ValidationError(name, f"unsupported criterion {type(criterion).__name__}")
