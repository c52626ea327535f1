"""
Credential Vault - Consumer-facing entry point for client credentials.

Wires the resolver, the batch decryptor and the search index around one
session cache, and owns the only place where cache entries are invalidated.
"""

import logging
from typing import Iterable, Optional

from slotvault.application.interfaces import ClientStorePort, EncryptionPort, FingerprintPort
from slotvault.config.settings import Settings
from slotvault.domain.entities import ClientRecord
from slotvault.domain.services import DecryptedCache, looks_encrypted
from slotvault.domain.value_objects import (
    ALL_FIELDS,
    Credential,
    DecryptedCredentials,
    RetryExhausted,
    RetryPolicy,
    SharedCredentialSelection,
    SlotGroupSummary,
    exponential_backoff,
)
from .batch_decryptor import BatchDecryptor
from .credential_resolver import CredentialResolver
from .search_index import SearchIndex


logger = logging.getLogger(__name__)


class CredentialVault:
    """
    Facade over the credential vault components.

    Usage:
        vault = CredentialVault(settings, encryption, fingerprints, store)

        credential = await vault.resolve_credentials_for_save(
            server_id="srv-1", login="user", password="secret",
        )
        client = await vault.create_client(ClientRecord(id="c1", server_id="srv-1"),
                                           login="user", password="secret")
        details = await vault.decrypt_for_display("c1")
        ids = await vault.search_by_query("user")
    """

    def __init__(
        self,
        settings: Settings,
        encryption: EncryptionPort,
        fingerprints: FingerprintPort,
        store: ClientStorePort,
        seller_id: Optional[str] = None,
        cache: Optional[DecryptedCache] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.seller_id = seller_id
        self.cache = cache if cache is not None else DecryptedCache()

        self.decryptor = BatchDecryptor(
            encryption, self.cache, batch_size=settings.decrypt_batch_size
        )
        self.resolver = CredentialResolver(encryption, fingerprints, store)
        self.search_index = SearchIndex(
            self.decryptor,
            store,
            limit=settings.search_index_limit,
            batch_size=settings.search_batch_size,
            min_query_length=settings.min_query_length,
            seller_id=seller_id,
        )
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=settings.detail_retries + 1,
            backoff=exponential_backoff(settings.detail_retry_base_delay),
        )

    # ==================== Write path ====================

    async def resolve_credentials_for_save(
        self,
        server_id: Optional[str] = None,
        login: Optional[str] = None,
        password: Optional[str] = None,
        shared: Optional[SharedCredentialSelection] = None,
        client_id: Optional[str] = None,
    ) -> Credential:
        """
        Decide the credential to persist without writing it.

        Raises:
            CapacityExceeded: If the slot group is full.
        """
        return await self.resolver.resolve_for_save(
            server_id=server_id,
            login=login,
            password=password,
            shared=shared,
            client_id=client_id,
            seller_id=self.seller_id,
        )

    async def create_client(
        self,
        client: ClientRecord,
        login: Optional[str] = None,
        password: Optional[str] = None,
        shared: Optional[SharedCredentialSelection] = None,
        login_2: Optional[str] = None,
        password_2: Optional[str] = None,
    ) -> ClientRecord:
        """
        Resolve credentials for a new client and insert it.

        Second-server values come from `login_2`/`password_2`, or from the
        record itself when those are not given, and are always encrypted.

        Raises:
            CapacityExceeded: If the slot group is full; nothing is written.
        """
        if self.seller_id and not client.seller_id:
            client.seller_id = self.seller_id

        credential = await self.resolve_credentials_for_save(
            server_id=client.server_id,
            login=login,
            password=password,
            shared=shared,
        )
        secondary = await self.resolver.resolve_secondary(
            login_2 if login_2 is not None else client.login_2,
            password_2 if password_2 is not None else client.password_2,
        )
        if credential.plaintext_fallback or secondary.plaintext_fallback:
            logger.warning(f"Client {client.id} saved with unencrypted credentials")

        record = client.with_credential(credential).with_secondary(secondary)
        saved = await self.store.insert_client(record)
        self._invalidate(saved.id)
        return saved

    async def update_credentials(
        self,
        client_id: str,
        server_id: Optional[str] = None,
        login: Optional[str] = None,
        password: Optional[str] = None,
        shared: Optional[SharedCredentialSelection] = None,
        login_2: Optional[str] = None,
        password_2: Optional[str] = None,
    ) -> Optional[ClientRecord]:
        """
        Resolve and store new credentials for an existing client.

        The client's own membership is excluded from the group count, so
        renewing under its current slot never trips the capacity check.
        When `login_2` or `password_2` is given the whole second-server pair
        is replaced, and an omitted or empty field is cleared.

        Returns:
            The updated record, or None if the client does not exist.

        Raises:
            CapacityExceeded: If the target slot group is full.
        """
        current = await self.store.get_client(client_id)
        if current is None:
            return None

        target_server = server_id if server_id is not None else current.server_id
        credential = await self.resolve_credentials_for_save(
            server_id=target_server,
            login=login,
            password=password,
            shared=shared,
            client_id=client_id,
        )
        secondary = None
        if login_2 is not None or password_2 is not None:
            secondary = await self.resolver.resolve_secondary(
                login_2 if login_2 is not None else "",
                password_2 if password_2 is not None else "",
            )
        if credential.plaintext_fallback or (secondary is not None and secondary.plaintext_fallback):
            logger.warning(f"Client {client_id} saved with unencrypted credentials")

        updated = await self.store.update_client_credentials(
            client_id, credential, server_id=target_server, secondary=secondary
        )
        self._invalidate(client_id)
        return updated

    def _invalidate(self, client_id: str) -> None:
        self.cache.invalidate(client_id)
        self.search_index.forget(client_id)

    async def list_shared_slots(self, server_id: str) -> list[SlotGroupSummary]:
        """Slot groups on a server, joinable groups first."""
        groups = await self.store.list_slot_groups(server_id, seller_id=self.seller_id)
        return sorted(groups, key=lambda group: (group.is_full, -group.member_count))

    # ==================== Read path ====================

    async def decrypt_for_display(self, client_id: str) -> Optional[DecryptedCredentials]:
        """
        Decrypt every credential field of one client for the detail view.

        Retries with backoff while a value that looked encrypted still looks
        encrypted after decrypting; after the last attempt the stored values
        are shown as they are.

        Returns:
            Decrypted credentials, or None if the client does not exist.
        """
        cached = self.cache.get(client_id)
        client = await self.store.get_client(client_id)
        if client is None:
            return None
        if cached is not None and not self.decryptor.pending_fields(client):
            return cached

        encryption = self.decryptor.encryption

        async def attempt() -> dict[str, str]:
            values = {}
            for name in client.present_fields:
                stored = getattr(client, name)
                if looks_encrypted(stored):
                    values[name] = await encryption.decrypt(stored)
                else:
                    values[name] = stored
            return values

        def unresolved(values: dict[str, str]) -> bool:
            return any(
                looks_encrypted(getattr(client, name)) and looks_encrypted(value)
                for name, value in values.items()
            )

        try:
            values = await self.retry_policy.run(attempt, should_retry=unresolved)
        except RetryExhausted as e:
            logger.warning(
                f"Could not decrypt credentials for client {client_id} "
                f"after {e.attempts} attempts, showing stored values"
            )
            return self._stored_values(client)

        return self.cache.merge(client_id, values)

    @staticmethod
    def _stored_values(client: ClientRecord) -> DecryptedCredentials:
        present = client.present_fields
        return DecryptedCredentials().merged(
            {name: getattr(client, name) for name in present}
        )

    async def resolve_window(
        self,
        clients: Iterable[ClientRecord],
    ) -> dict[str, DecryptedCredentials]:
        """Decrypt every credential field of the loaded window."""
        return await self.search_index.resolve_window(clients)

    async def search_by_query(self, text: str, archived: bool = False) -> set[str]:
        """
        Ids of clients whose decrypted login contains `text`.

        Refreshes the global login index for the view first.
        """
        await self.search_index.refresh_global(archived=archived)
        return self.search_index.match_ids(text)

    async def search_clients(
        self,
        text: str,
        loaded: Iterable[ClientRecord],
        archived: bool = False,
    ) -> list[ClientRecord]:
        """Visible search results, including matches outside the loaded window."""
        await self.search_index.refresh_global(archived=archived)
        return await self.search_index.search(text, loaded, archived=archived)

    def reset(self) -> None:
        """Drop all decrypted state (seller or session change)."""
        self.cache.clear()
        self.search_index.reset()
