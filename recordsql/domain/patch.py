"""
Patch Payloads - Partial updates with explicit field presence

An attribute that is absent from a payload is left untouched; an attribute
that is present with a None value is written as NULL.
"""

# Standard library imports
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, fields, is_dataclass
from types import MappingProxyType
from typing import Any

# Local imports
from recordsql.domain.metadata import UNSET


class PatchPayload(Mapping[str, Any]):
    """
    Read-only view of the keys a caller explicitly supplied.

    Iteration follows the order the keys were supplied in.
    """

    __slots__ = ("_present",)

    def __init__(self, present: Mapping[str, Any] | None = None) -> None:
        self._present = MappingProxyType(dict(present or {}))

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "PatchPayload":
        """Every key of the mapping counts as present, including None values."""
        return cls(payload)

    @classmethod
    def from_record(cls, record: Any) -> "PatchPayload":
        """
        Collect the attributes of a dataclass instance that are not UNSET.

        Raises:
            TypeError: If the record is not a dataclass instance
        """
        if not is_dataclass(record) or isinstance(record, type):
            raise TypeError(f"Expected a dataclass instance, got {type(record).__name__}")
        return cls(
            {
                item.name: getattr(record, item.name)
                for item in fields(record)
                if getattr(record, item.name) is not UNSET
            }
        )

    def is_present(self, key: str) -> bool:
        return key in self._present

    def __getitem__(self, key: str) -> Any:
        return self._present[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._present)

    def __len__(self) -> int:
        return len(self._present)

    def __repr__(self) -> str:
        return f"PatchPayload({dict(self._present)!r})"


@dataclass(frozen=True)
class PatchDocument:
    """Column assignments for one row, plus the key values that target it."""

    assignments: tuple[tuple[str, Any], ...]
    key_values: tuple[Any, ...] = ()

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(column for column, _ in self.assignments)

    @property
    def is_empty(self) -> bool:
        return not self.assignments
