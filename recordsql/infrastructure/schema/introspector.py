"""
Schema Introspector - Builds and caches record metadata.

Metadata is built once per record type and then served without locking.
Concurrent first requests for the same type wait on one construction and all
receive the same instance.
"""

# Standard library imports
import logging
import threading
from dataclasses import fields, is_dataclass

# Local imports
from recordsql.application.interfaces.exceptions import SchemaError
from recordsql.domain.metadata import (
    COLUMN_OPTIONS,
    ColumnOptions,
    FieldDescriptor,
    RecordMetadata,
    to_snake_case,
)

logger = logging.getLogger(__name__)


def describe_record(record_type: type) -> RecordMetadata:
    """
    Build metadata for a record type without caching it.

    A type exposing a ``describe()`` classmethod supplies its own metadata.
    Otherwise the type must be a dataclass; fields declared with
    ``column(...)`` carry explicit column options and every other field is
    mapped with derived names.

    Args:
        record_type: Record class

    Returns:
        Record metadata

    Raises:
        SchemaError: If the type cannot be described
    """
    type_name = getattr(record_type, "__name__", repr(record_type))

    describe = getattr(record_type, "describe", None)
    if callable(describe):
        metadata = describe()
        if not isinstance(metadata, RecordMetadata):
            raise SchemaError(type_name, "describe() must return RecordMetadata")
        if metadata.record_type is not record_type:
            raise SchemaError(type_name, "describe() returned metadata for another type")
        return metadata

    if not isinstance(record_type, type) or not is_dataclass(record_type):
        raise SchemaError(type_name, "record type must be a dataclass or define describe()")

    descriptors = []
    for item in fields(record_type):
        options = item.metadata.get(COLUMN_OPTIONS) or ColumnOptions()
        descriptors.append(
            FieldDescriptor.of(
                item.name,
                options.name,
                key=options.key,
                json=options.json,
                nullable=options.nullable,
                generated=options.generated,
            )
        )

    table = getattr(record_type, "__tablename__", None) or to_snake_case(type_name)
    return RecordMetadata(record_type=record_type, table=table, fields=tuple(descriptors))


class SchemaIntrospector:
    """
    Process-lifetime metadata cache keyed by record type identity.

    Owned by whoever wires repositories together; repositories sharing an
    introspector share metadata.
    """

    def __init__(self) -> None:
        self._cache: dict[type, RecordMetadata] = {}
        self._lock = threading.Lock()

    def get(self, record_type: type) -> RecordMetadata:
        """
        Return the metadata of a record type, building it on first use.

        Raises:
            SchemaError: If the type cannot be described
        """
        metadata = self._cache.get(record_type)
        if metadata is not None:
            return metadata

        with self._lock:
            metadata = self._cache.get(record_type)
            if metadata is None:
                metadata = describe_record(record_type)
                self._cache[record_type] = metadata
                logger.info(
                    f"Built metadata for {metadata.type_name} ({metadata.table}): "
                    f"{len(metadata.fields)} columns, key ({', '.join(metadata.key_columns)})"
                )
        return metadata

    def __contains__(self, record_type: object) -> bool:
        return record_type in self._cache

    def __len__(self) -> int:
        return len(self._cache)
