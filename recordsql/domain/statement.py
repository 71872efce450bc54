"""
Statement - SQL text paired with its ordered arguments.
"""

# Standard library imports
from collections.abc import Sequence
from typing import Any


class Statement:
    """
    Result of query building containing the SQL and its arguments.

    The SQL and arguments can only travel together and cannot be modified
    after creation.
    """

    __slots__ = ("sql", "args", "_frozen")

    def __init__(self, sql: str, args: Sequence[Any] = ()) -> None:
        self.sql = sql
        self.args = tuple(args)
        self._frozen = True

    def __setattr__(self, name: str, value: Any) -> None:
        """Prevent modification after creation."""
        if getattr(self, "_frozen", False):
            raise AttributeError("Statement is immutable after creation")
        super().__setattr__(name, value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Statement):
            return NotImplemented
        return self.sql == other.sql and self.args == other.args

    def __hash__(self) -> int:
        return hash((self.sql, self.args))

    def __iter__(self):
        """Allow ``sql, args = statement`` unpacking."""
        yield self.sql
        yield self.args

    def __str__(self) -> str:
        return f"Statement(sql={self.sql!r}, args={self.args!r})"

    def __repr__(self) -> str:
        return self.__str__()
