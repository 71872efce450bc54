"""
Unit tests for patch payloads and statements.
"""

from dataclasses import dataclass

import pytest

from recordsql.domain.metadata import UNSET
from recordsql.domain.patch import PatchDocument, PatchPayload
from recordsql.domain.statement import Statement


@dataclass
class UserPatch:
    id: int = UNSET
    username: str = UNSET
    phone: str | None = UNSET


@pytest.mark.unit
class TestPatchPayload:
    """Test explicit field presence."""

    def test_from_mapping_keeps_none(self):
        payload = PatchPayload.from_mapping({"id": 1, "phone": None})

        assert payload.is_present("phone")
        assert payload["phone"] is None
        assert not payload.is_present("username")
        assert list(payload) == ["id", "phone"]

    def test_from_record_skips_unset(self):
        payload = PatchPayload.from_record(UserPatch(id=1, phone=None))
        assert dict(payload) == {"id": 1, "phone": None}

    def test_from_record_requires_dataclass_instance(self):
        with pytest.raises(TypeError):
            PatchPayload.from_record(UserPatch)
        with pytest.raises(TypeError):
            PatchPayload.from_record({"id": 1})

    def test_payload_is_read_only(self):
        payload = PatchPayload({"id": 1})
        with pytest.raises(TypeError):
            payload["id"] = 2  # type: ignore[index]


@pytest.mark.unit
class TestPatchDocument:
    def test_empty(self):
        assert PatchDocument(assignments=()).is_empty

    def test_columns(self):
        document = PatchDocument(assignments=(("email", "a"), ("phone", None)), key_values=(1,))
        assert document.columns == ("email", "phone")
        assert not document.is_empty


@pytest.mark.unit
class TestStatement:
    def test_unpacking(self):
        sql, args = Statement("SELECT 1 WHERE a = %s", [1])
        assert sql == "SELECT 1 WHERE a = %s"
        assert args == (1,)

    def test_immutable(self):
        statement = Statement("SELECT 1")
        with pytest.raises(AttributeError, match="immutable"):
            statement.sql = "DROP TABLE users"

    def test_equality(self):
        assert Statement("SELECT 1", [1]) == Statement("SELECT 1", (1,))
        assert hash(Statement("SELECT 1", [1])) == hash(Statement("SELECT 1", (1,)))
