"""
SQL Dialects - Placeholder tokens and row-window clauses.

A dialect only decides how positional placeholders are spelled and how a
row window is appended to a query. Everything else the builders emit is
plain ANSI SQL.
"""

# Standard library imports
import re
from dataclasses import dataclass
from enum import Enum

# Local imports
from recordsql.application.interfaces.exceptions import ConfigurationError


class PlaceholderStyle(Enum):
    """Positional placeholder spellings."""

    NUMBERED = "numbered"  # $1, $2
    ANONYMOUS = "anonymous"  # ?, ?
    NAMED_NUMBERED = "named_numbered"  # :1, :2
    AT_NUMBERED = "at_numbered"  # @p1, @p2
    FORMAT = "format"  # %s, %s


class PagingStyle(Enum):
    """Row-window clause spellings."""

    LIMIT_OFFSET = "limit_offset"
    OFFSET_FETCH = "offset_fetch"


@dataclass(frozen=True)
class Dialect:
    """A target engine's placeholder and paging syntax."""

    name: str
    placeholder: PlaceholderStyle
    paging: PagingStyle = PagingStyle.LIMIT_OFFSET
    requires_order_for_paging: bool = False

    def bind(self, index: int) -> str:
        return bind(self, index)


POSTGRES = Dialect("postgres", PlaceholderStyle.NUMBERED)
PSYCOPG = Dialect("psycopg", PlaceholderStyle.FORMAT)
SQLITE = Dialect("sqlite", PlaceholderStyle.ANONYMOUS)
MYSQL = Dialect("mysql", PlaceholderStyle.ANONYMOUS)
ORACLE = Dialect("oracle", PlaceholderStyle.NAMED_NUMBERED, PagingStyle.OFFSET_FETCH)
SQLSERVER = Dialect(
    "sqlserver",
    PlaceholderStyle.AT_NUMBERED,
    PagingStyle.OFFSET_FETCH,
    requires_order_for_paging=True,
)

DIALECTS: dict[str, Dialect] = {
    dialect.name: dialect for dialect in (POSTGRES, PSYCOPG, SQLITE, MYSQL, ORACLE, SQLSERVER)
}


def bind(dialect: Dialect, index: int) -> str:
    """
    Return the placeholder token for a 1-based positional argument.

    Args:
        dialect: Target dialect
        index: 1-based position of the argument in the statement

    Returns:
        Placeholder token

    Raises:
        ValueError: If index is not a positive integer

    Examples:
        >>> bind(POSTGRES, 2)
        '$2'
        >>> bind(SQLSERVER, 1)
        '@p1'
    """
    if isinstance(index, bool) or not isinstance(index, int) or index < 1:
        raise ValueError(f"Placeholder index must be a positive integer, got {index!r}")

    style = dialect.placeholder
    if style is PlaceholderStyle.NUMBERED:
        return f"${index}"
    if style is PlaceholderStyle.ANONYMOUS:
        return "?"
    if style is PlaceholderStyle.NAMED_NUMBERED:
        return f":{index}"
    if style is PlaceholderStyle.AT_NUMBERED:
        return f"@p{index}"
    return "%s"


def get_dialect(name: str) -> Dialect:
    """
    Look up a built-in dialect by name.

    Raises:
        ConfigurationError: If the name is not a known dialect
    """
    try:
        return DIALECTS[name.strip().lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown SQL dialect '{name}'. Known dialects: {', '.join(sorted(DIALECTS))}"
        ) from None


_PLACEHOLDER_PATTERNS = {
    PlaceholderStyle.NUMBERED: re.compile(r"\$\d+"),
    PlaceholderStyle.ANONYMOUS: re.compile(r"\?"),
    PlaceholderStyle.NAMED_NUMBERED: re.compile(r":\d+"),
    PlaceholderStyle.AT_NUMBERED: re.compile(r"@p\d+"),
    PlaceholderStyle.FORMAT: re.compile(r"%s"),
}


def count_placeholders(dialect: Dialect, sql: str) -> int:
    """Count the placeholder tokens of a dialect in generated SQL."""
    return len(_PLACEHOLDER_PATTERNS[dialect.placeholder].findall(sql))
