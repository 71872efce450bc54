"""
Unit tests for CRUD statement building from record metadata.
"""

from datetime import date

import pytest

from recordsql.application.interfaces.exceptions import MissingKeyError, SchemaError
from recordsql.domain.metadata import UNSET
from recordsql.domain.patch import PatchDocument
from recordsql.infrastructure.database.dialects import DIALECTS, POSTGRES, PSYCOPG, SQLSERVER
from recordsql.infrastructure.database.dialects import count_placeholders
from recordsql.infrastructure.database.statements import (
    build_delete,
    build_insert,
    build_patch,
    build_select_all,
    build_select_by_key,
    build_update,
)
from tests.helpers.records import AuditEntry, Membership, User


@pytest.mark.unit
class TestInsert:
    """Test INSERT building."""

    def test_generated_columns_skipped(self, user_metadata):
        user = User(username="ann", email="a@example.com", date_of_birth=date(1970, 1, 2))
        statement = build_insert(user, user_metadata, POSTGRES)

        assert statement.sql == (
            "INSERT INTO users (username, email, phone, date_of_birth) VALUES ($1, $2, $3, $4)"
        )
        assert statement.args == ("ann", "a@example.com", None, date(1970, 1, 2))

    @pytest.mark.parametrize("dialect", list(DIALECTS.values()), ids=list(DIALECTS))
    def test_placeholders_match_columns_and_args(self, membership_metadata, dialect):
        """Test column count, placeholder count and argument count agree."""
        statement = build_insert(Membership("o-1", "u-1", "admin"), membership_metadata, dialect)

        assert count_placeholders(dialect, statement.sql) == 3
        assert statement.args == ("o-1", "u-1", "admin")

    def test_missing_key_value_rejected(self, membership_metadata):
        with pytest.raises(MissingKeyError) as exc_info:
            build_insert(Membership("o-1", None), membership_metadata, POSTGRES)
        assert exc_info.value.columns == ("user_id",)

    def test_keyless_record(self, introspector):
        statement = build_insert(AuditEntry("started"), introspector.get(AuditEntry), PSYCOPG)
        assert statement.sql == "INSERT INTO audit_entry (message) VALUES (%s)"


@pytest.mark.unit
class TestUpdate:
    """Test full UPDATE building."""

    def test_update_by_key(self, user_metadata):
        user = User(id=7, username="ann", email="a@example.com")
        statement = build_update(user, user_metadata, PSYCOPG)

        assert statement.sql == (
            "UPDATE users SET username = %s, email = %s, phone = %s, date_of_birth = %s "
            "WHERE id = %s"
        )
        assert statement.args == ("ann", "a@example.com", None, None, 7)

    def test_composite_key_where_in_declaration_order(self, membership_metadata):
        statement = build_update(Membership("o-1", "u-1", "admin"), membership_metadata, POSTGRES)

        assert statement.sql == "UPDATE membership SET role = $1 WHERE org_id = $2 AND user_id = $3"
        assert statement.args == ("admin", "o-1", "u-1")

    def test_missing_key(self, user_metadata):
        with pytest.raises(MissingKeyError):
            build_update(User(username="ann"), user_metadata, POSTGRES)

    def test_keyless_type(self, introspector):
        metadata = introspector.get(AuditEntry)
        with pytest.raises(SchemaError, match="no primary key"):
            build_update(AuditEntry("x"), metadata, POSTGRES)


@pytest.mark.unit
class TestPatch:
    """Test partial UPDATE building."""

    def test_only_present_columns(self, user_metadata):
        document = PatchDocument(assignments=(("phone", None),), key_values=(7,))
        statement = build_patch(document, user_metadata, SQLSERVER)

        assert statement.sql == "UPDATE users SET phone = @p1 WHERE id = @p2"
        assert statement.args == (None, 7)

    def test_empty_document(self, user_metadata):
        with pytest.raises(ValueError):
            build_patch(PatchDocument(assignments=(), key_values=(7,)), user_metadata, POSTGRES)

    def test_missing_composite_key_part(self, membership_metadata):
        document = PatchDocument(assignments=(("role", "admin"),), key_values=("o-1", UNSET))
        with pytest.raises(MissingKeyError) as exc_info:
            build_patch(document, membership_metadata, POSTGRES)
        assert exc_info.value.columns == ("user_id",)


@pytest.mark.unit
class TestKeyedReadsAndDeletes:
    def test_delete_composite(self, membership_metadata):
        statement = build_delete(
            {"user_id": "u-1", "org_id": "o-1"}, membership_metadata, POSTGRES
        )
        assert statement.sql == "DELETE FROM membership WHERE org_id = $1 AND user_id = $2"
        assert statement.args == ("o-1", "u-1")

    def test_delete_without_key(self, user_metadata):
        with pytest.raises(MissingKeyError):
            build_delete(None, user_metadata, POSTGRES)

    def test_select_by_key(self, user_metadata):
        statement = build_select_by_key(7, user_metadata, POSTGRES)
        assert statement.sql == (
            "SELECT id, username, email, phone, date_of_birth FROM users WHERE id = $1"
        )
        assert statement.args == (7,)

    def test_select_all(self, membership_metadata):
        statement = build_select_all(membership_metadata, POSTGRES)
        assert statement.sql == "SELECT org_id, user_id, role FROM membership"
        assert statement.args == ()
