"""
Record Metadata - Column descriptors for persisted record types

A record type is described once by an ordered table of field descriptors.
The table names the column, the JSON key and the primary-key membership of
every attribute, so statement building never has to inspect instances.
"""

# Standard library imports
import re
from collections.abc import Iterable, Mapping
from dataclasses import MISSING, dataclass, field
from types import MappingProxyType
from typing import Any

# Local imports
from recordsql.application.interfaces.exceptions import MissingKeyError, SchemaError

COLUMN_OPTIONS = "recordsql.column"

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_CAMEL_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_LOWER_UPPER_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


class _Unset:
    """Marker for attributes that were never supplied."""

    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


def to_snake_case(name: str) -> str:
    """
    Convert an attribute or class name to snake_case.

    Examples:
        >>> to_snake_case("dateOfBirth")
        'date_of_birth'
        >>> to_snake_case("HTTPSession")
        'http_session'
    """
    name = _CAMEL_BOUNDARY.sub(r"\1_\2", name)
    return _LOWER_UPPER_BOUNDARY.sub(r"\1_\2", name).lower()


def to_camel_case(name: str) -> str:
    """
    Convert a snake_case attribute name to camelCase.

    Examples:
        >>> to_camel_case("date_of_birth")
        'dateOfBirth'
    """
    head, *tail = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in tail)


def is_identifier(name: str) -> bool:
    """Check a (possibly schema-qualified) SQL identifier."""
    return bool(name) and all(IDENTIFIER_PATTERN.match(part) for part in name.split("."))


@dataclass(frozen=True)
class ColumnOptions:
    """Explicit column markers attached to a dataclass field."""

    name: str | None = None
    key: bool = False
    json: str | None = None
    nullable: bool = False
    generated: bool = False


def column(
    name: str | None = None,
    *,
    key: bool = False,
    json: str | None = None,
    nullable: bool = False,
    generated: bool = False,
    default: Any = MISSING,
    default_factory: Any = MISSING,
) -> Any:
    """
    Declare a persisted dataclass field.

    Args:
        name: Explicit column name (defaults to the snake_case attribute name)
        key: Whether the column is part of the primary key
        json: Explicit JSON key (defaults to the camelCase attribute name)
        nullable: Whether the column accepts NULL
        generated: Whether the database generates the value (skipped on INSERT)
        default: Dataclass default value
        default_factory: Dataclass default factory

    Returns:
        A dataclass field carrying the column options
    """
    options = ColumnOptions(name=name, key=key, json=json, nullable=nullable, generated=generated)
    return field(
        default=default,
        default_factory=default_factory,
        metadata={COLUMN_OPTIONS: options},
    )


@dataclass(frozen=True)
class FieldDescriptor:
    """One persisted attribute of a record type."""

    name: str
    column: str
    json_key: str
    primary_key: bool = False
    nullable: bool = False
    generated: bool = False

    @classmethod
    def of(
        cls,
        name: str,
        column: str | None = None,
        *,
        key: bool = False,
        json: str | None = None,
        nullable: bool = False,
        generated: bool = False,
    ) -> "FieldDescriptor":
        """Build a descriptor, deriving column and JSON names from the attribute."""
        return cls(
            name=name,
            column=column or to_snake_case(name),
            json_key=json or to_camel_case(name),
            primary_key=key,
            nullable=nullable,
            generated=generated,
        )


@dataclass(frozen=True)
class RecordMetadata:
    """
    Ordered column metadata for one record type.

    Immutable once constructed. Primary-key descriptors keep their
    declaration order, which is the order of every generated key predicate.
    """

    record_type: type
    table: str
    fields: tuple[FieldDescriptor, ...]
    _lookup: Mapping[str, FieldDescriptor] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        type_name = getattr(self.record_type, "__name__", repr(self.record_type))
        object.__setattr__(self, "fields", tuple(self.fields))

        if not self.fields:
            raise SchemaError(type_name, "record type declares no fields")
        if not is_identifier(self.table):
            raise SchemaError(type_name, f"invalid table name {self.table!r}")

        lookup: dict[str, FieldDescriptor] = {}
        seen_columns: set[str] = set()
        for descriptor in self.fields:
            if not IDENTIFIER_PATTERN.match(descriptor.column):
                raise SchemaError(type_name, f"invalid column name {descriptor.column!r}")
            if descriptor.column in seen_columns:
                raise SchemaError(type_name, f"duplicate column {descriptor.column!r}")
            seen_columns.add(descriptor.column)

        # Columns win over attribute names, which win over JSON keys.
        for descriptor in self.fields:
            lookup.setdefault(descriptor.json_key, descriptor)
        for descriptor in self.fields:
            lookup[descriptor.name] = descriptor
        for descriptor in self.fields:
            lookup[descriptor.column] = descriptor
        object.__setattr__(self, "_lookup", MappingProxyType(lookup))

    @property
    def type_name(self) -> str:
        return getattr(self.record_type, "__name__", repr(self.record_type))

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(descriptor.column for descriptor in self.fields)

    @property
    def keys(self) -> tuple[FieldDescriptor, ...]:
        return tuple(descriptor for descriptor in self.fields if descriptor.primary_key)

    @property
    def key_columns(self) -> tuple[str, ...]:
        return tuple(descriptor.column for descriptor in self.keys)

    @property
    def insertable(self) -> tuple[FieldDescriptor, ...]:
        return tuple(descriptor for descriptor in self.fields if not descriptor.generated)

    @property
    def updatable(self) -> tuple[FieldDescriptor, ...]:
        return tuple(
            descriptor
            for descriptor in self.fields
            if not descriptor.primary_key and not descriptor.generated
        )

    def find(self, name: str) -> FieldDescriptor | None:
        """Resolve a column name, attribute name or JSON key to its descriptor."""
        return self._lookup.get(name)

    def require_keys(self) -> tuple[FieldDescriptor, ...]:
        """
        Return the primary-key descriptors.

        Raises:
            SchemaError: If the record type declares no primary key
        """
        keys = self.keys
        if not keys:
            raise SchemaError(self.type_name, "record type declares no primary key")
        return keys

    def values(self, record: Any, descriptors: Iterable[FieldDescriptor] | None = None) -> tuple:
        """Extract attribute values from a record in descriptor order."""
        if descriptors is None:
            descriptors = self.fields
        return tuple(getattr(record, descriptor.name, None) for descriptor in descriptors)

    def key_values(self, key: Any) -> tuple:
        """
        Normalize a key argument to a tuple of values in key order.

        A single-column key may be given as a bare value. Composite keys are
        given as a sequence in declaration order or as a mapping keyed by
        column, attribute or JSON name.

        Raises:
            SchemaError: If the record type declares no primary key
            MissingKeyError: If any key value is absent
        """
        keys = self.require_keys()

        if isinstance(key, Mapping):
            resolved: dict[str, Any] = {}
            for name, value in key.items():
                descriptor = self.find(name)
                if descriptor is not None and descriptor.primary_key:
                    resolved[descriptor.column] = value
            values = tuple(resolved.get(descriptor.column, UNSET) for descriptor in keys)
        elif isinstance(key, (tuple, list)):
            if len(key) != len(keys):
                raise MissingKeyError(self.table, [descriptor.column for descriptor in keys])
            values = tuple(key)
        elif len(keys) == 1:
            values = (key,)
        else:
            raise MissingKeyError(self.table, [descriptor.column for descriptor in keys])

        self.check_key_values(values)
        return values

    def record_key_values(self, record: Any) -> tuple:
        """Extract and check the key values carried by a record."""
        keys = self.require_keys()
        values = tuple(getattr(record, descriptor.name, UNSET) for descriptor in keys)
        self.check_key_values(values)
        return values

    def check_key_values(
        self, values: tuple, descriptors: Iterable[FieldDescriptor] | None = None
    ) -> None:
        """
        Reject absent key values.

        None, UNSET and the empty string all read as "not supplied". Values
        pair with descriptors, all primary-key descriptors by default.

        Raises:
            MissingKeyError: If any key value is absent
        """
        missing = [
            descriptor.column
            for descriptor, value in zip(
                self.keys if descriptors is None else descriptors, values, strict=True
            )
            if value is None or value is UNSET or value == ""
        ]
        if missing:
            raise MissingKeyError(self.table, missing)

    def to_record(self, row: Mapping[str, Any]) -> Any:
        """Build a record instance from a column-keyed row."""
        attributes = {
            descriptor.name: row[descriptor.column]
            for descriptor in self.fields
            if descriptor.column in row
        }
        bind = getattr(self.record_type, "bind", None)
        if callable(bind):
            return bind(attributes)
        return self.record_type(**attributes)
