"""
Domain Layer - Record metadata, search filters, patches and statements.

Pure value types with no database access.
"""

from .filters import (
    DEFAULT_LIMIT,
    Exact,
    Filter,
    FilterField,
    FilterSpec,
    Match,
    Prefix,
    Range,
    SortDirection,
    SortKey,
)
from .metadata import UNSET, ColumnOptions, FieldDescriptor, RecordMetadata, column
from .patch import PatchDocument, PatchPayload
from .statement import Statement

__all__ = [
    "UNSET",
    "column",
    "ColumnOptions",
    "FieldDescriptor",
    "RecordMetadata",
    "DEFAULT_LIMIT",
    "Exact",
    "Prefix",
    "Range",
    "Filter",
    "FilterField",
    "FilterSpec",
    "Match",
    "SortDirection",
    "SortKey",
    "PatchDocument",
    "PatchPayload",
    "Statement",
]
