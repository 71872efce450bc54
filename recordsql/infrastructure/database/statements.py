"""
Statement Builder - CRUD statements from record metadata.

Every keyed statement gets a WHERE clause holding each primary-key column
exactly once, AND-ed in metadata declaration order. None of these functions
touch the database.
"""

# Standard library imports
from typing import Any

# Local imports
from recordsql.application.interfaces.exceptions import SchemaError
from recordsql.domain.metadata import RecordMetadata
from recordsql.domain.patch import PatchDocument
from recordsql.domain.statement import Statement

from .dialects import Dialect
from .query_builder import Condition, QueryBuilder


def key_conditions(metadata: RecordMetadata, key_values: tuple) -> list[Condition]:
    """Equality predicates for every key column, in declaration order."""
    return [
        Condition.compare(descriptor.column, "=", value)
        for descriptor, value in zip(metadata.require_keys(), key_values, strict=True)
    ]


def build_insert(record: Any, metadata: RecordMetadata, dialect: Dialect) -> Statement:
    """
    Build an INSERT of every column except database-generated ones.

    Args:
        record: Record instance to insert
        metadata: Metadata of the record type
        dialect: Target dialect

    Returns:
        INSERT statement with arguments in column order

    Raises:
        MissingKeyError: If a key column the database does not generate has no value
    """
    supplied_keys = tuple(descriptor for descriptor in metadata.keys if not descriptor.generated)
    metadata.check_key_values(metadata.values(record, supplied_keys), supplied_keys)

    descriptors = metadata.insertable
    return (
        QueryBuilder(dialect)
        .insert_into(metadata.table, [descriptor.column for descriptor in descriptors])
        .values(metadata.values(record, descriptors))
        .build()
    )


def build_update(record: Any, metadata: RecordMetadata, dialect: Dialect) -> Statement:
    """
    Build a full UPDATE of every non-key column, targeted by the record's key.

    Raises:
        SchemaError: If the record type declares no primary key
        MissingKeyError: If any key value is absent
    """
    key_values = metadata.record_key_values(record)
    if not metadata.updatable:
        raise SchemaError(metadata.type_name, "record type has no updatable columns")
    builder = QueryBuilder(dialect).update(metadata.table)
    for descriptor in metadata.updatable:
        builder.set(descriptor.column, getattr(record, descriptor.name, None))
    return builder.where(*key_conditions(metadata, key_values)).build()


def build_patch(document: PatchDocument, metadata: RecordMetadata, dialect: Dialect) -> Statement:
    """
    Build an UPDATE that only sets the columns present in a patch document.

    Raises:
        ValueError: If the document carries no assignments
        MissingKeyError: If any key value is absent
    """
    if document.is_empty:
        raise ValueError("Cannot build a patch statement without assignments")
    metadata.check_key_values(document.key_values)

    builder = QueryBuilder(dialect).update(metadata.table)
    for column, value in document.assignments:
        builder.set(column, value)
    return builder.where(*key_conditions(metadata, document.key_values)).build()


def build_delete(key: Any, metadata: RecordMetadata, dialect: Dialect) -> Statement:
    """
    Build a DELETE of the row identified by key.

    Args:
        key: Scalar for single-column keys, sequence or mapping for composite keys

    Raises:
        SchemaError: If the record type declares no primary key
        MissingKeyError: If any key value is absent
    """
    key_values = metadata.key_values(key)
    return (
        QueryBuilder(dialect)
        .delete_from(metadata.table)
        .where(*key_conditions(metadata, key_values))
        .build()
    )


def build_select_by_key(key: Any, metadata: RecordMetadata, dialect: Dialect) -> Statement:
    """Build a point lookup of every column for the row identified by key."""
    key_values = metadata.key_values(key)
    return (
        QueryBuilder(dialect)
        .select(metadata.columns)
        .from_table(metadata.table)
        .where(*key_conditions(metadata, key_values))
        .build()
    )


def build_select_all(metadata: RecordMetadata, dialect: Dialect) -> Statement:
    """Build an unfiltered SELECT of every column."""
    return QueryBuilder(dialect).select(metadata.columns).from_table(metadata.table).build()
