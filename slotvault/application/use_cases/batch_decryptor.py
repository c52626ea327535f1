"""
Batch Decryptor - Resolves many stored credential values into plaintext.

Values are decrypted in fixed-size batches: calls inside a batch run
concurrently, batches run one after another to cap provider load.
Failures never propagate; the stored value is returned instead.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

from slotvault.application.interfaces import EncryptionPort
from slotvault.domain.entities import ClientRecord
from slotvault.domain.services import DecryptedCache, looks_encrypted
from slotvault.domain.value_objects import ALL_FIELDS, DecryptedCredentials


logger = logging.getLogger(__name__)


class DecryptOutcome(Enum):
    """How a single stored value was resolved."""
    PENDING = "pending"
    SKIPPED_PLAINTEXT = "skipped_plaintext"
    DECRYPTING = "decrypting"
    RESOLVED = "resolved"
    FALLBACK = "fallback"


@dataclass
class DecryptResult:
    """Resolved value plus the path taken to get it."""
    original: Optional[str]
    value: str
    outcome: DecryptOutcome = DecryptOutcome.PENDING


class BatchDecryptor:
    """
    Best-effort batch decryption with a shared cache.

    Every public method returns one string per input and never raises
    because of the encryption provider.
    """

    def __init__(
        self,
        encryption: EncryptionPort,
        cache: DecryptedCache,
        batch_size: int = 10,
    ) -> None:
        """
        Initialize the decryptor.

        Args:
            encryption: Provider used for decrypt calls.
            cache: Session cache receiving resolved client fields.
            batch_size: Concurrent provider calls per batch.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.encryption = encryption
        self.cache = cache
        self.batch_size = batch_size

    async def resolve_value(self, value: Optional[str]) -> DecryptResult:
        """
        Resolve one stored value, recording the path taken.

        Plaintext-looking values never reach the provider. A decrypt that
        raises, echoes its input, or yields something that still looks
        encrypted is discarded in favour of the stored value.
        """
        result = DecryptResult(original=value, value=value or "")
        if not value:
            result.outcome = DecryptOutcome.SKIPPED_PLAINTEXT
            return result
        if not looks_encrypted(value):
            result.outcome = DecryptOutcome.SKIPPED_PLAINTEXT
            return result

        result.outcome = DecryptOutcome.DECRYPTING
        try:
            decrypted = await self.encryption.decrypt(value)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug(f"Decrypt failed, keeping stored value: {type(e).__name__}")
            result.outcome = DecryptOutcome.FALLBACK
            return result

        if decrypted == value or looks_encrypted(decrypted):
            logger.debug("Decrypt round-trip still looks encrypted, keeping stored value")
            result.outcome = DecryptOutcome.FALLBACK
            return result

        result.value = decrypted
        result.outcome = DecryptOutcome.RESOLVED
        return result

    async def safe_decrypt(self, value: Optional[str]) -> str:
        """Decrypt one value, falling back to the stored value."""
        return (await self.resolve_value(value)).value

    async def decrypt_many(
        self,
        values: Sequence[Optional[str]],
        batch_size: Optional[int] = None,
    ) -> list[str]:
        """
        Decrypt a list of values in sequential batches.

        Returns:
            One resolved string per input, in input order.
        """
        size = batch_size or self.batch_size
        resolved: list[str] = []
        for start in range(0, len(values), size):
            batch = values[start:start + size]
            results = await asyncio.gather(*(self.safe_decrypt(v) for v in batch))
            resolved.extend(results)
        return resolved

    def pending_fields(
        self,
        client: ClientRecord,
        fields: tuple[str, ...] = ALL_FIELDS,
    ) -> tuple[str, ...]:
        """Fields present on the record that the cache has not resolved yet."""
        present = tuple(name for name in fields if getattr(client, name))
        return self.cache.missing_fields(client.id, present)

    async def resolve_clients(
        self,
        clients: Iterable[ClientRecord],
        fields: tuple[str, ...] = ALL_FIELDS,
        batch_size: Optional[int] = None,
    ) -> dict[str, DecryptedCredentials]:
        """
        Resolve credential fields for many clients into the cache.

        Only the gap is decrypted: a client whose primary fields are cached
        but whose second-server fields were added later gets just the
        second-server fields resolved.

        Returns:
            Cache entries for every client that has credentials.
        """
        clients = [c for c in clients if c.has_credentials]
        work: list[tuple[str, str, str]] = []
        for client in clients:
            for name in self.pending_fields(client, fields):
                work.append((client.id, name, getattr(client, name)))

        if work:
            logger.debug(f"Decrypting {len(work)} fields for {len(clients)} clients")
            values = await self.decrypt_many([value for _, _, value in work], batch_size)

            per_client: dict[str, dict[str, str]] = {}
            for (client_id, name, _), plain in zip(work, values):
                per_client.setdefault(client_id, {})[name] = plain
            for client_id, resolved in per_client.items():
                self.cache.merge(client_id, resolved)

        return {
            client.id: self.cache.get(client.id) or DecryptedCredentials()
            for client in clients
        }
