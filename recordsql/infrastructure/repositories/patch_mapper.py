"""
Patch Mapper - Partial-update payloads to column assignments.
"""

# Standard library imports
import logging
from collections.abc import Mapping
from typing import Any

# Local imports
from recordsql.application.interfaces.exceptions import ValidationError
from recordsql.domain.metadata import UNSET, RecordMetadata
from recordsql.domain.patch import PatchDocument, PatchPayload

logger = logging.getLogger(__name__)


class PatchMapper:
    """
    Maps payload keys (JSON key, attribute or column name) to columns.

    Only keys that are present in the payload become assignments. Key
    columns are routed to the WHERE clause instead of SET. Unknown keys are
    rejected unless ``ignore_unknown`` is set, in which case they are dropped.
    """

    def __init__(self, metadata: RecordMetadata, ignore_unknown: bool = False) -> None:
        self.metadata = metadata
        self.ignore_unknown = ignore_unknown

    def map(self, payload: PatchPayload | Mapping[str, Any]) -> PatchDocument:
        """
        Build the patch document for a payload.

        Args:
            payload: Explicitly supplied fields

        Returns:
            Patch document; empty when no settable field is present

        Raises:
            ValidationError: If a key maps to no column (reject mode) or a
                generated column is assigned
        """
        if not isinstance(payload, PatchPayload):
            payload = PatchPayload.from_mapping(payload)

        assignments: dict[str, Any] = {}
        keys: dict[str, Any] = {}
        for name, value in payload.items():
            descriptor = self.metadata.find(name)
            if descriptor is None:
                if self.ignore_unknown:
                    logger.debug(f"Ignoring unknown patch key {name!r} for {self.metadata.table}")
                    continue
                raise ValidationError(name, f"unknown field for {self.metadata.type_name}")
            if descriptor.primary_key:
                keys[descriptor.column] = value
            elif descriptor.generated:
                raise ValidationError(name, "generated column cannot be patched")
            else:
                assignments[descriptor.column] = value

        # Assignment order follows column declaration order, not payload order.
        ordered = tuple(
            (descriptor.column, assignments[descriptor.column])
            for descriptor in self.metadata.fields
            if descriptor.column in assignments
        )
        key_values = tuple(keys.get(column, UNSET) for column in self.metadata.key_columns)
        return PatchDocument(assignments=ordered, key_values=key_values)
