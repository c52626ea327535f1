"""
Credential Resolver - Decides what credential to persist on client save.

Clients on the same server typing the same login/password share one slot
group. The resolver looks the group up by fingerprint, refuses to grow it
past MAX_SLOTS, and reuses the group's stored ciphertext so every member
keeps byte-identical values.
"""

import asyncio
import logging
from typing import Optional

from slotvault.application.interfaces import ClientStorePort, EncryptionPort, FingerprintPort
from slotvault.domain.errors import CapacityExceeded
from slotvault.domain.value_objects import (
    MAX_SLOTS,
    Credential,
    SecondaryCredential,
    SharedCredentialSelection,
)


logger = logging.getLogger(__name__)


class CredentialResolver:
    """
    Resolves the ciphertext and fingerprint to store for a client.

    Used on create and on update; on update the client being edited is
    excluded from its own group count.
    """

    def __init__(
        self,
        encryption: EncryptionPort,
        fingerprints: FingerprintPort,
        store: ClientStorePort,
        max_slots: int = MAX_SLOTS,
    ) -> None:
        self.encryption = encryption
        self.fingerprints = fingerprints
        self.store = store
        self.max_slots = max_slots

    async def resolve_for_save(
        self,
        server_id: Optional[str] = None,
        login: Optional[str] = None,
        password: Optional[str] = None,
        shared: Optional[SharedCredentialSelection] = None,
        client_id: Optional[str] = None,
        seller_id: Optional[str] = None,
    ) -> Credential:
        """
        Decide the credential to persist.

        Args:
            server_id: Panel server the credentials belong to.
            login: Plaintext login typed by the user.
            password: Plaintext password typed by the user.
            shared: Existing slot the user explicitly chose to join.
            client_id: Id of the client being updated (None on create).
            seller_id: Reseller scope for the group lookup.

        Returns:
            Credential to store.

        Raises:
            CapacityExceeded: If the matching group is already full.
        """
        login = login or ""
        password = password or ""

        if shared is not None and shared.encrypted_login:
            return await self._reuse_shared(shared, login, password)

        if server_id and login:
            return await self._resolve_grouped(
                server_id, login, password, client_id, seller_id
            )

        if login:
            fingerprint = await self.fingerprints.fingerprint(login, password)
            return await self._encrypt_fresh(login, password, fingerprint)

        return Credential.cleared()

    async def _reuse_shared(
        self,
        shared: SharedCredentialSelection,
        login: str,
        password: str,
    ) -> Credential:
        """Copy the chosen slot's ciphertext verbatim."""
        fingerprint = shared.fingerprint
        if login:
            computed = await self.fingerprints.fingerprint(login, password)
            if fingerprint and computed != fingerprint:
                logger.warning("Shared slot fingerprint differs from the typed credentials")
            fingerprint = computed

        return Credential(
            login=shared.encrypted_login,
            password=shared.encrypted_password or None,
            fingerprint=fingerprint,
        )

    async def _resolve_grouped(
        self,
        server_id: str,
        login: str,
        password: str,
        client_id: Optional[str],
        seller_id: Optional[str],
    ) -> Credential:
        """Join an existing slot group on the server or start a new one."""
        fingerprint = await self.fingerprints.fingerprint(login, password)
        members = await self.store.find_slot_members(
            server_id,
            fingerprint,
            exclude_id=client_id,
            seller_id=seller_id,
        )
        count = len(members)

        if count >= self.max_slots:
            logger.info(
                f"Slot group on server {server_id} is full ({count}/{self.max_slots})"
            )
            raise CapacityExceeded(count, self.max_slots)

        if count:
            first = members[0]
            logger.info(
                f"Using existing credentials for slot grouping "
                f"({count + 1}/{self.max_slots} clients)"
            )
            return Credential(
                login=first.login,
                password=first.password or None,
                fingerprint=first.credentials_fingerprint or fingerprint,
            )

        return await self._encrypt_fresh(login, password, fingerprint)

    async def resolve_secondary(
        self,
        login_2: Optional[str] = None,
        password_2: Optional[str] = None,
    ) -> SecondaryCredential:
        """
        Encrypt the second-server pair.

        Each field falls back to its plaintext on its own when the provider
        fails; empty fields are stored as None.
        """
        encrypted_login, login_failed = await self._encrypt_value(login_2)
        encrypted_password, password_failed = await self._encrypt_value(password_2)
        if login_failed or password_failed:
            logger.error("Encryption failed, storing second-server credentials unencrypted")

        return SecondaryCredential(
            login_2=encrypted_login,
            password_2=encrypted_password,
            plaintext_fallback=login_failed or password_failed,
        )

    async def _encrypt_fresh(self, login: str, password: str, fingerprint: str) -> Credential:
        """
        Encrypt a new credential pair.

        A provider failure stores the plaintext rather than losing the save;
        the returned credential is flagged so callers can surface it.
        """
        try:
            encrypted_login = await self.encryption.encrypt(login)
            encrypted_password = await self.encryption.encrypt(password) if password else None
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Encryption failed, storing credentials unencrypted: {e}")
            return Credential(
                login=login,
                password=password or None,
                fingerprint=fingerprint,
                plaintext_fallback=True,
            )

        return Credential(
            login=encrypted_login,
            password=encrypted_password,
            fingerprint=fingerprint,
        )

    async def _encrypt_value(self, value: Optional[str]) -> tuple[Optional[str], bool]:
        """Encrypt one value, returning (stored value, fell back to plaintext)."""
        if not value:
            return None, False
        try:
            return await self.encryption.encrypt(value), False
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug(f"Encrypt failed, keeping plaintext: {e}")
            return value, True
