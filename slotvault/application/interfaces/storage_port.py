"""
Storage Port - Abstract interface for the client table.
"""

from abc import ABC, abstractmethod
from typing import Optional

from slotvault.domain.entities import ClientRecord
from slotvault.domain.value_objects import Credential, SecondaryCredential, SlotGroupSummary


class ClientStorePort(ABC):
    """Abstract interface for client credential persistence."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize storage connection."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close storage connection."""
        pass

    # Writes
    @abstractmethod
    async def insert_client(self, client: ClientRecord) -> ClientRecord:
        """Insert a new client record."""
        pass

    @abstractmethod
    async def update_client_credentials(
        self,
        client_id: str,
        credential: Credential,
        server_id: Optional[str] = None,
        secondary: Optional[SecondaryCredential] = None,
    ) -> Optional[ClientRecord]:
        """Replace a client's primary credential (and server and second-server pair, when given)."""
        pass

    # Reads
    @abstractmethod
    async def get_client(self, client_id: str) -> Optional[ClientRecord]:
        """Get a client by id."""
        pass

    @abstractmethod
    async def get_clients_by_ids(
        self,
        client_ids: list[str],
        archived: Optional[bool] = None,
        seller_id: Optional[str] = None,
    ) -> list[ClientRecord]:
        """Get several clients by id, optionally scoped to a view."""
        pass

    @abstractmethod
    async def find_slot_members(
        self,
        server_id: str,
        fingerprint: str,
        exclude_id: Optional[str] = None,
        seller_id: Optional[str] = None,
    ) -> list[ClientRecord]:
        """Get active clients sharing a fingerprint on a server, oldest first."""
        pass

    @abstractmethod
    async def list_search_logins(
        self,
        limit: int,
        archived: bool = False,
        seller_id: Optional[str] = None,
    ) -> list[tuple[str, Optional[str], Optional[str]]]:
        """Get (id, login, login_2) tuples for the archived or active view."""
        pass

    @abstractmethod
    async def list_slot_groups(
        self,
        server_id: str,
        seller_id: Optional[str] = None,
    ) -> list[SlotGroupSummary]:
        """Get the slot groups on a server."""
        pass
