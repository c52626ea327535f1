"""
Decrypted Cache - Session-scoped store of decrypted credential fields.
"""

import logging
from typing import Iterator, Optional

from slotvault.domain.value_objects import DecryptedCredentials


logger = logging.getLogger(__name__)


class DecryptedCache:
    """
    In-memory map of client id to decrypted credentials.

    Entries are additive: resolving more fields for a client extends its
    entry instead of replacing it. One instance lives per session and is
    injected wherever decrypted values are read.
    """

    def __init__(self) -> None:
        self._entries: dict[str, DecryptedCredentials] = {}

    def __contains__(self, client_id: object) -> bool:
        return client_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def get(self, client_id: str) -> Optional[DecryptedCredentials]:
        """Get the entry for a client, if any."""
        return self._entries.get(client_id)

    def put(self, client_id: str, entry: DecryptedCredentials) -> None:
        """Store an entry, replacing any previous one."""
        self._entries[client_id] = entry

    def merge(self, client_id: str, values: dict[str, str]) -> DecryptedCredentials:
        """
        Extend a client's entry with newly resolved fields.

        Returns:
            The updated entry.
        """
        current = self._entries.get(client_id) or DecryptedCredentials()
        updated = current.merged(values)
        self._entries[client_id] = updated
        return updated

    def missing_fields(self, client_id: str, present: tuple[str, ...]) -> tuple[str, ...]:
        """Fields from `present` that still have to be resolved for a client."""
        entry = self._entries.get(client_id)
        if entry is None:
            return present
        return entry.missing(present)

    def invalidate(self, client_id: str) -> None:
        """Drop the entry for one client."""
        if self._entries.pop(client_id, None) is not None:
            logger.debug(f"Decrypted cache invalidated for client {client_id}")

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
