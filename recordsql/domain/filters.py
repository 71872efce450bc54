"""
Search Filters - Criteria, sort keys and declared filter fields

A FilterSpec declares, once per record type, which fields may be filtered
and in what order. Its declaration order is the order of the generated WHERE
clause and of its arguments, whatever order the caller supplied them in.
"""

# Standard library imports
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

# Local imports
from recordsql.application.interfaces.exceptions import ValidationError

PAGE_KEY = "page"
LIMIT_KEY = "limit"
SORT_KEY = "sort"
RESERVED_KEYS = frozenset({PAGE_KEY, LIMIT_KEY, SORT_KEY})

DEFAULT_LIMIT = 20


class Match(str, Enum):
    """How a scalar wire value for a field is interpreted."""

    EXACT = "exact"
    PREFIX = "prefix"
    RANGE = "range"


class SortDirection(str, Enum):
    """Sort direction enumeration"""

    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class Exact:
    """column = value"""

    value: Any


@dataclass(frozen=True)
class Prefix:
    """column starts with text (case-sensitive)"""

    text: str


@dataclass(frozen=True)
class Range:
    """min <= column <= max, either bound optional"""

    min: Any = None
    max: Any = None

    @property
    def is_open(self) -> bool:
        return self.min is None and self.max is None


Criterion = Union[Exact, Prefix, Range]


@dataclass(frozen=True)
class SortKey:
    """One ORDER BY entry."""

    column: str
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def parse(cls, token: str) -> "SortKey":
        """
        Parse a wire sort token.

        Args:
            token: Column name, optionally prefixed with '-' (descending) or '+'

        Returns:
            Parsed sort key

        Raises:
            ValidationError: If the token names no column
        """
        token = token.strip()
        direction = SortDirection.ASC
        if token.startswith("-"):
            direction = SortDirection.DESC
            token = token[1:]
        elif token.startswith("+"):
            token = token[1:]
        token = token.strip()
        if not token:
            raise ValidationError(SORT_KEY, "empty sort column")
        return cls(token, direction)


@dataclass(frozen=True)
class Filter:
    """
    Per-call search filter.

    Criteria are keyed by declared filter-field name. Limit None means
    FilterSpec.default_limit applies, then the repository's configured default.
    """

    criteria: Mapping[str, Criterion] = field(default_factory=dict)
    page: int = 1
    limit: int | None = None
    sort: tuple[SortKey, ...] = ()


@dataclass(frozen=True)
class FilterField:
    """A filterable field, named on the wire and mapped to a record attribute."""

    name: str
    field: str | None = None
    match: Match = Match.EXACT
    parse: Callable[[Any], Any] | None = None

    @property
    def target(self) -> str:
        return self.field or self.name

    def coerce(self, value: Any) -> Any:
        if self.parse is None or value is None:
            return value
        try:
            return self.parse(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(self.name, f"invalid value {value!r}: {e}") from e


class FilterSpec:
    """
    Ordered declaration of the filterable fields of one record type.

    Args:
        fields: Filter fields (or bare names for exact-match fields), in the
            order their predicates should appear
        sortable: Allow-list of sortable names; None allows every column
        default_limit: Page size used when the caller supplies none; None
            defers to the repository's configured default
    """

    def __init__(
        self,
        fields: Iterable[FilterField | str],
        *,
        sortable: Iterable[str] | None = None,
        default_limit: int | None = None,
    ) -> None:
        self.fields: tuple[FilterField, ...] = tuple(
            FilterField(item) if isinstance(item, str) else item for item in fields
        )
        self._by_name = {item.name: item for item in self.fields}
        if len(self._by_name) != len(self.fields):
            raise ValueError("Duplicate filter field names")
        reserved = RESERVED_KEYS.intersection(self._by_name)
        if reserved:
            raise ValueError(f"Reserved filter field names: {sorted(reserved)}")
        self.sortable: frozenset[str] | None = (
            frozenset(sortable) if sortable is not None else None
        )
        self.default_limit = default_limit

    def get(self, name: str) -> FilterField | None:
        return self._by_name.get(name)

    def decode(self, wire: Mapping[str, Any]) -> Filter:
        """
        Decode the wire shape of a search request.

        Reserved keys are ``page``, ``limit`` and ``sort``. Every other key
        must be a declared filter field holding either a scalar or a
        ``{"min": ..., "max": ...}`` object.

        Raises:
            ValidationError: If a key is undeclared or a value is malformed
        """
        raw_page = wire.get(PAGE_KEY)
        page = 1 if raw_page is None else _as_int(PAGE_KEY, raw_page)
        if page < 1:
            raise ValidationError(PAGE_KEY, "must be >= 1")

        raw_limit = wire.get(LIMIT_KEY)
        limit = self.default_limit if raw_limit is None else _as_int(LIMIT_KEY, raw_limit)

        criteria: dict[str, Criterion] = {}
        for name, value in wire.items():
            if name in RESERVED_KEYS:
                continue
            filter_field = self.get(name)
            if filter_field is None:
                raise ValidationError(name, "unknown filter field")
            criterion = _decode_criterion(filter_field, value)
            if criterion is not None:
                criteria[name] = criterion

        return Filter(
            criteria=criteria,
            page=page,
            limit=limit,
            sort=_decode_sort(wire.get(SORT_KEY)),
        )


def _as_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(name, "must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValidationError(name, "must be an integer")


def _decode_sort(value: Any) -> tuple[SortKey, ...]:
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        tokens = value.split(",")
    elif isinstance(value, (list, tuple)):
        tokens = list(value)
    else:
        raise ValidationError(SORT_KEY, "must be a list or comma-separated string")
    keys = []
    for token in tokens:
        if not isinstance(token, str):
            raise ValidationError(SORT_KEY, f"invalid sort token {token!r}")
        keys.append(SortKey.parse(token))
    return tuple(keys)


def _decode_criterion(filter_field: FilterField, value: Any) -> Criterion | None:
    if value is None or value == "":
        return None

    if isinstance(value, Mapping):
        unexpected = set(value) - {"min", "max"}
        if unexpected:
            raise ValidationError(filter_field.name, f"unexpected range keys {sorted(unexpected)}")
        criterion = Range(
            min=filter_field.coerce(value.get("min")),
            max=filter_field.coerce(value.get("max")),
        )
        return None if criterion.is_open else criterion

    if filter_field.match is Match.PREFIX:
        if not isinstance(value, str):
            raise ValidationError(filter_field.name, "prefix match requires a string")
        return Prefix(value)

    return Exact(filter_field.coerce(value))
