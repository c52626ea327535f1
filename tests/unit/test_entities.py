"""
Unit tests for domain entities and value objects.
"""

import pytest
from datetime import datetime

from slotvault.domain.entities import ClientRecord
from slotvault.domain.value_objects import MAX_SLOTS, Credential, SecondaryCredential, SlotGroupSummary


class TestClientRecord:
    """Tests for ClientRecord entity."""

    def test_create_client(self):
        """Should create client with required fields."""
        client = ClientRecord(id="c1", server_id="S", login="user")

        assert client.id == "c1"
        assert client.server_id == "S"
        assert client.is_archived is False

    def test_client_requires_id(self):
        """Should raise error without id."""
        with pytest.raises(ValueError, match="id is required"):
            ClientRecord(id="")

    def test_present_fields(self):
        """Only non-empty credential fields are present."""
        client = ClientRecord(id="c1", login="u", password="", login_2="u2")
        assert client.present_fields == ("login", "login_2")
        assert client.has_credentials is True
        assert ClientRecord(id="c2").has_credentials is False

    def test_with_credential(self):
        """Should replace the primary credential only."""
        client = ClientRecord(id="c1", login="old", login_2="second")
        updated = client.with_credential(Credential(login="new", password="pw", fingerprint="fp"))

        assert updated.login == "new"
        assert updated.credentials_fingerprint == "fp"
        assert updated.login_2 == "second"
        assert client.login == "old"

    def test_with_secondary(self):
        """Should replace the second-server pair only."""
        client = ClientRecord(id="c1", login="primary", login_2="old2", password_2="oldpw")
        updated = client.with_secondary(SecondaryCredential(login_2="new2"))

        assert (updated.login_2, updated.password_2) == ("new2", None)
        assert updated.login == "primary"
        assert client.login_2 == "old2"

    def test_to_dict_from_dict_roundtrip(self):
        """Should survive a database row conversion."""
        client = ClientRecord(
            id="c1",
            seller_id="s1",
            server_id="S",
            login="l",
            credentials_fingerprint="fp",
            is_archived=True,
        )
        restored = ClientRecord.from_dict(client.to_dict())

        assert restored.id == "c1"
        assert restored.seller_id == "s1"
        assert restored.is_archived is True
        assert restored.credential == client.credential

    def test_from_dict_parses_sqlite_timestamp(self):
        """SQLite CURRENT_TIMESTAMP strings are parsed."""
        client = ClientRecord.from_dict({"id": "c1", "created_at": "2024-01-02 03:04:05"})
        assert client.created_at == datetime(2024, 1, 2, 3, 4, 5)


class TestCredential:
    """Tests for Credential value object."""

    def test_cleared(self):
        """Cleared credentials have no values."""
        credential = Credential.cleared()
        assert credential.is_empty is True
        assert credential.to_columns() == {
            "login": None,
            "password": None,
            "credentials_fingerprint": None,
        }

    def test_immutable(self):
        """Credentials cannot be mutated."""
        credential = Credential(login="l")
        with pytest.raises(AttributeError):
            credential.login = "x"


class TestSlotGroupSummary:
    """Tests for SlotGroupSummary."""

    def test_capacity(self):
        """Free slots shrink as members join."""
        group = SlotGroupSummary("S", "fp", "l", "p", member_ids=("a", "b"))
        assert group.member_count == 2
        assert group.free_slots == MAX_SLOTS - 2
        assert group.is_full is False

    def test_full_group(self):
        """A group at the limit is full."""
        group = SlotGroupSummary("S", "fp", "l", "p", member_ids=("a", "b", "c"))
        assert group.is_full is True
        assert group.free_slots == 0
