"""Global pytest configuration and fixtures."""

# Standard library imports
from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

# Load test environment variables
from dotenv import load_dotenv

test_env_path = Path(__file__).parent.parent / ".env.test"
if test_env_path.exists():
    load_dotenv(test_env_path, override=True)

# Third-party imports
import pytest
from psycopg import AsyncConnection
from psycopg_pool import AsyncConnectionPool

# Local imports
from recordsql.domain.filters import FilterField, FilterSpec, Match
from recordsql.infrastructure.database.adapter import SQLAdapter
from recordsql.infrastructure.database.dialects import PSYCOPG
from recordsql.infrastructure.schema.introspector import SchemaIntrospector
from tests.helpers.records import Membership, User


@pytest.fixture
def introspector() -> SchemaIntrospector:
    """Fresh metadata cache per test."""
    return SchemaIntrospector()


@pytest.fixture
def user_metadata(introspector):
    return introspector.get(User)


@pytest.fixture
def membership_metadata(introspector):
    return introspector.get(Membership)


@pytest.fixture
def user_filter_spec() -> FilterSpec:
    """Filterable user fields, in WHERE clause order."""
    return FilterSpec(
        [
            FilterField("username", match=Match.PREFIX),
            FilterField("email"),
            FilterField(
                "dateOfBirth",
                field="date_of_birth",
                match=Match.RANGE,
                parse=date.fromisoformat,
            ),
        ],
        sortable=["username", "date_of_birth"],
    )


@pytest.fixture
def mock_adapter() -> AsyncMock:
    """Provides mock SQL adapter."""
    adapter = AsyncMock(spec=SQLAdapter)
    adapter.dialect = PSYCOPG
    adapter.has_active_transaction = False
    adapter.execute.return_value = 1
    adapter.fetch_one.return_value = None
    adapter.fetch_all.return_value = []
    adapter.fetch_value.return_value = 0
    return adapter


@pytest.fixture
def mock_cursor() -> AsyncMock:
    """Mock psycopg3 cursor."""
    cursor = AsyncMock()
    cursor.rowcount = 1
    cursor.fetchone.return_value = None
    cursor.fetchall.return_value = []
    return cursor


@pytest.fixture
def mock_connection(mock_cursor) -> AsyncMock:
    """Mock psycopg3 connection yielding mock_cursor."""
    connection = AsyncMock(spec=AsyncConnection)
    connection.cursor.return_value.__aenter__.return_value = mock_cursor
    connection.cursor.return_value.__aexit__.return_value = None
    connection.transaction.return_value.__aenter__.return_value = MagicMock()
    connection.transaction.return_value.__aexit__.return_value = None
    return connection


@pytest.fixture
def mock_pool(mock_connection) -> AsyncMock:
    """Mock psycopg3 connection pool yielding mock_connection."""
    pool = AsyncMock(spec=AsyncConnectionPool)
    pool.connection.return_value.__aenter__.return_value = mock_connection
    pool.connection.return_value.__aexit__.return_value = None
    return pool


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
    config.addinivalue_line("markers", "requires_db: Tests requiring database")
