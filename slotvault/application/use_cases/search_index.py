"""
Search Index - Free-text search over credential fields encrypted at rest.

Two tracks feed the search:
- the loaded window: every credential field of the visible page is
  resolved into the decrypted cache;
- the global login index: up to `limit` logins of the current view are
  decrypted regardless of pagination, so a match outside the loaded page
  is still found and fetched.
"""

import logging
from typing import Iterable, Optional

from slotvault.application.interfaces import ClientStorePort
from slotvault.domain.entities import ClientRecord
from slotvault.domain.value_objects import ALL_FIELDS, DecryptedCredentials
from .batch_decryptor import BatchDecryptor


logger = logging.getLogger(__name__)

SEARCHABLE_FIELDS = ("login", "login_2")


class SearchIndex:
    """
    Maintains decrypted logins for search and merges off-page matches.

    State is per session and archived/active view; `reset()` drops it.
    """

    def __init__(
        self,
        decryptor: BatchDecryptor,
        store: ClientStorePort,
        limit: int = 1000,
        batch_size: int = 30,
        min_query_length: int = 2,
        seller_id: Optional[str] = None,
    ) -> None:
        """
        Initialize the index.

        Args:
            decryptor: Batch decryptor shared with the rest of the vault.
            store: Client store used for the global fetch and off-page lookups.
            limit: Maximum records pulled into the global login index.
            batch_size: Concurrent decrypt calls per batch for the global index.
            min_query_length: Shorter queries match nothing.
            seller_id: Reseller scope for store queries.
        """
        self.decryptor = decryptor
        self.store = store
        self.limit = limit
        self.batch_size = batch_size
        self.min_query_length = min_query_length
        self.seller_id = seller_id

        self._logins: dict[str, tuple[str, str]] = {}
        self._archived: Optional[bool] = None
        self._window_ids: frozenset[str] = frozenset()
        self._window_archived: dict[str, bool] = {}

    @property
    def indexed_logins(self) -> dict[str, tuple[str, str]]:
        """Read-only copy of the global login index."""
        return dict(self._logins)

    # ==================== Loaded window ====================

    def is_fully_resolved(self, client: ClientRecord) -> bool:
        """Check that none of the client's present fields are missing from the cache."""
        return not self.decryptor.pending_fields(client, ALL_FIELDS)

    def needs_resolution(self, clients: Iterable[ClientRecord]) -> bool:
        """Check whether any client in a window still has unresolved fields."""
        return any(
            c.has_credentials and not self.is_fully_resolved(c) for c in clients
        )

    async def resolve_window(
        self,
        clients: Iterable[ClientRecord],
    ) -> dict[str, DecryptedCredentials]:
        """
        Resolve all credential fields for the loaded window.

        Runs again only when the window's id set changed or some client
        still has unresolved fields; cached fields are never recomputed.
        """
        clients = list(clients)
        window_ids = frozenset(c.id for c in clients)
        self._window_archived = {c.id: c.is_archived for c in clients}
        if window_ids == self._window_ids and not self.needs_resolution(clients):
            return {
                c.id: self.decryptor.cache.get(c.id)
                for c in clients
                if c.id in self.decryptor.cache
            }

        self._window_ids = window_ids
        return await self.decryptor.resolve_clients(clients, ALL_FIELDS)

    # ==================== Global login index ====================

    async def refresh_global(self, archived: bool = False) -> int:
        """
        Fetch and decrypt logins for the archived or active view.

        Switching view drops the index built for the other one. Ids that
        are already indexed are not decrypted again; ids no longer returned
        for the view (archived, deleted, past the limit) are dropped.

        Returns:
            Number of newly indexed clients.
        """
        if self._archived is not None and self._archived != archived:
            self._logins.clear()
        self._archived = archived

        rows = await self.store.list_search_logins(
            self.limit, archived=archived, seller_id=self.seller_id
        )
        current_ids = {row[0] for row in rows}
        for stale_id in set(self._logins) - current_ids:
            del self._logins[stale_id]

        missing = [row for row in rows if row[0] not in self._logins]
        if not missing:
            return 0

        logger.info(f"Indexing logins for {len(missing)} clients")
        values: list[Optional[str]] = []
        for _, login, login_2 in missing:
            values.extend((login, login_2))

        decrypted = await self.decryptor.decrypt_many(values, self.batch_size)
        for position, (client_id, _, _) in enumerate(missing):
            self._logins[client_id] = (decrypted[2 * position], decrypted[2 * position + 1])

        return len(missing)

    def add_record(self, client: ClientRecord, login: str, login_2: str = "") -> None:
        """Insert or replace one client's decrypted logins."""
        if self._archived is None or client.is_archived == self._archived:
            self._logins[client.id] = (login, login_2)

    def forget(self, client_id: str) -> None:
        """Remove one client from the index."""
        self._logins.pop(client_id, None)

    # ==================== Query ====================

    def _normalize(self, query: str) -> Optional[str]:
        needle = (query or "").strip().lower()
        if len(needle) < self.min_query_length:
            return None
        return needle

    def match_ids(self, query: str) -> set[str]:
        """
        Ids whose decrypted login contains the query, case-insensitively.

        Looks at the global index and at logins resolved for the loaded
        window; window clients from the other archived/active view are skipped.
        """
        needle = self._normalize(query)
        if needle is None:
            return set()

        matches = {
            client_id
            for client_id, logins in self._logins.items()
            if any(needle in value.lower() for value in logins if value)
        }

        cache = self.decryptor.cache
        for client_id in self._window_ids:
            if self._archived is not None and self._window_archived.get(client_id) != self._archived:
                continue
            entry = cache.get(client_id)
            if entry is None:
                continue
            if any(
                needle in (getattr(entry, name) or "").lower()
                for name in SEARCHABLE_FIELDS
                if entry.has(name)
            ):
                matches.add(client_id)

        return matches

    async def search(
        self,
        query: str,
        loaded: Iterable[ClientRecord],
        archived: bool = False,
    ) -> list[ClientRecord]:
        """
        Visible result set for a query.

        Loaded clients whose logins match come first; matches outside the
        loaded window are fetched individually and appended.
        """
        loaded = list(loaded)
        ids = self.match_ids(query)
        if not ids:
            return []

        loaded_ids = {client.id for client in loaded}
        results = [client for client in loaded if client.id in ids]

        missing_ids = sorted(ids - loaded_ids)
        if missing_ids:
            fetched = await self.store.get_clients_by_ids(
                missing_ids, archived=archived, seller_id=self.seller_id
            )
            logger.debug(f"Fetched {len(fetched)} off-page search matches")
            results.extend(fetched)

        return results

    def reset(self) -> None:
        """Drop all index state."""
        self._logins.clear()
        self._archived = None
        self._window_ids = frozenset()
        self._window_archived = {}
