"""Test helpers package."""

from tests.helpers.records import AuditEntry, Membership, User

__all__ = ["AuditEntry", "Membership", "User"]
