"""Test fixtures: fake encryption provider, in-memory client store, settings.

Unit tests use these fakes so provider failures and store contents can be
controlled precisely.
"""

import base64
import itertools
from typing import Optional

import pytest

from slotvault.application.interfaces import ClientStorePort, EncryptionPort
from slotvault.config.settings import Settings
from slotvault.domain.entities import ClientRecord
from slotvault.domain.errors import EncryptionError
from slotvault.domain.services import DecryptedCache
from slotvault.domain.value_objects import Credential, SecondaryCredential, SlotGroupSummary
from slotvault.infrastructure.security import HmacFingerprintProvider


CIPHER_PREFIX = "Enc+"


class FakeEncryption(EncryptionPort):
    """
    Non-deterministic fake cipher.

    Ciphertext is `Enc+` followed by base64 of a counter and the plaintext,
    so the same plaintext encrypts differently on every call and always
    satisfies the classifier.
    """

    def __init__(self) -> None:
        self._nonce = itertools.count(1)
        self.encrypt_calls: list[str] = []
        self.decrypt_calls: list[str] = []
        self.fail_decrypt: set[str] = set()
        self.echo_decrypt: set[str] = set()
        self.fail_encrypt = False
        self.fail_encrypt_for: set[str] = set()

    async def encrypt(self, plaintext: str) -> str:
        self.encrypt_calls.append(plaintext)
        if self.fail_encrypt or plaintext in self.fail_encrypt_for:
            raise EncryptionError("provider unavailable")
        payload = f"{next(self._nonce):012d}|{plaintext}".encode("utf-8")
        return CIPHER_PREFIX + base64.b64encode(payload).decode("ascii")

    async def decrypt(self, ciphertext: str) -> str:
        self.decrypt_calls.append(ciphertext)
        if ciphertext in self.fail_decrypt:
            raise EncryptionError("boom")
        if ciphertext in self.echo_decrypt:
            return ciphertext
        if not ciphertext.startswith(CIPHER_PREFIX):
            raise EncryptionError("not a ciphertext")
        payload = base64.b64decode(ciphertext[len(CIPHER_PREFIX):]).decode("utf-8")
        return payload.split("|", 1)[1]


class InMemoryClientStore(ClientStorePort):
    """Dict-backed client store recording every write."""

    def __init__(self) -> None:
        self.clients: dict[str, ClientRecord] = {}
        self.writes: list[str] = []
        self.fetched_ids: list[list[str]] = []

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def insert_client(self, client: ClientRecord) -> ClientRecord:
        self.writes.append(client.id)
        self.clients[client.id] = client
        return client

    async def update_client_credentials(
        self,
        client_id: str,
        credential: Credential,
        server_id: Optional[str] = None,
        secondary: Optional[SecondaryCredential] = None,
    ) -> Optional[ClientRecord]:
        current = self.clients.get(client_id)
        if current is None:
            return None
        self.writes.append(client_id)
        updated = current.with_credential(credential)
        if secondary is not None:
            updated = updated.with_secondary(secondary)
        if server_id is not None:
            updated.server_id = server_id
        self.clients[client_id] = updated
        return updated

    async def get_client(self, client_id: str) -> Optional[ClientRecord]:
        return self.clients.get(client_id)

    async def get_clients_by_ids(
        self,
        client_ids: list[str],
        archived: Optional[bool] = None,
        seller_id: Optional[str] = None,
    ) -> list[ClientRecord]:
        self.fetched_ids.append(list(client_ids))
        return [
            self.clients[cid]
            for cid in client_ids
            if cid in self.clients
            and (archived is None or self.clients[cid].is_archived == archived)
        ]

    async def find_slot_members(
        self,
        server_id: str,
        fingerprint: str,
        exclude_id: Optional[str] = None,
        seller_id: Optional[str] = None,
    ) -> list[ClientRecord]:
        return [
            c for c in self.clients.values()
            if c.server_id == server_id
            and c.credentials_fingerprint == fingerprint
            and not c.is_archived
            and c.id != exclude_id
        ]

    async def list_search_logins(
        self,
        limit: int,
        archived: bool = False,
        seller_id: Optional[str] = None,
    ) -> list[tuple[str, Optional[str], Optional[str]]]:
        rows = [
            (c.id, c.login, c.login_2)
            for c in self.clients.values()
            if c.is_archived == archived
        ]
        return rows[:limit]

    async def list_slot_groups(
        self,
        server_id: str,
        seller_id: Optional[str] = None,
    ) -> list[SlotGroupSummary]:
        groups: dict[str, list[ClientRecord]] = {}
        for c in self.clients.values():
            if c.server_id == server_id and c.credentials_fingerprint and not c.is_archived:
                groups.setdefault(c.credentials_fingerprint, []).append(c)
        return [
            SlotGroupSummary(
                server_id=server_id,
                fingerprint=fp,
                encrypted_login=members[0].login,
                encrypted_password=members[0].password,
                member_ids=tuple(m.id for m in members),
            )
            for fp, members in groups.items()
        ]


async def no_sleep(delay: float) -> None:
    """Stand-in for asyncio.sleep that records nothing and returns at once."""
    return None


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Test settings with a throwaway data directory."""
    return Settings(
        data_dir=tmp_path,
        fingerprint_key="test-fingerprint-key",
        decrypt_batch_size=10,
        search_batch_size=30,
        search_index_limit=1000,
        min_query_length=2,
        detail_retries=3,
        detail_retry_base_delay=0.6,
    )


@pytest.fixture
def encryption() -> FakeEncryption:
    return FakeEncryption()


@pytest.fixture
def fingerprints() -> HmacFingerprintProvider:
    return HmacFingerprintProvider("test-fingerprint-key")


@pytest.fixture
def store() -> InMemoryClientStore:
    return InMemoryClientStore()


@pytest.fixture
def cache() -> DecryptedCache:
    return DecryptedCache()
