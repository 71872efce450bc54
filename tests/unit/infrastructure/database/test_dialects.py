"""
Unit tests for SQL dialects and placeholder binding.
"""

import pytest

from recordsql.application.interfaces.exceptions import ConfigurationError
from recordsql.infrastructure.database.dialects import (
    DIALECTS,
    MYSQL,
    ORACLE,
    POSTGRES,
    PSYCOPG,
    SQLITE,
    SQLSERVER,
    bind,
    count_placeholders,
    get_dialect,
)


@pytest.mark.unit
class TestBind:
    """Test placeholder tokens per dialect."""

    @pytest.mark.parametrize(
        ("dialect", "index", "expected"),
        [
            (POSTGRES, 1, "$1"),
            (POSTGRES, 12, "$12"),
            (PSYCOPG, 3, "%s"),
            (SQLITE, 2, "?"),
            (MYSQL, 9, "?"),
            (ORACLE, 4, ":4"),
            (SQLSERVER, 2, "@p2"),
        ],
    )
    def test_tokens(self, dialect, index, expected):
        assert bind(dialect, index) == expected
        assert dialect.bind(index) == expected

    @pytest.mark.parametrize("index", [0, -1, True])
    def test_invalid_index(self, index):
        with pytest.raises(ValueError):
            bind(POSTGRES, index)


@pytest.mark.unit
class TestGetDialect:
    def test_known_names(self):
        assert get_dialect("postgres") is POSTGRES
        assert get_dialect(" SQLServer ") is SQLSERVER
        assert set(DIALECTS) == {"postgres", "psycopg", "sqlite", "mysql", "oracle", "sqlserver"}

    def test_unknown_name(self):
        with pytest.raises(ConfigurationError, match="Unknown SQL dialect"):
            get_dialect("db2")


@pytest.mark.unit
class TestCountPlaceholders:
    def test_numbered(self):
        assert count_placeholders(POSTGRES, "a = $1 AND b = $2 AND c = $10") == 3

    def test_anonymous(self):
        assert count_placeholders(SQLITE, "a = ? AND b = ?") == 2

    def test_format(self):
        assert count_placeholders(PSYCOPG, "a = %s") == 1
