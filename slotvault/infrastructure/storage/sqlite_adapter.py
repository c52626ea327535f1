"""
SQLite Adapter - Client credential persistence for slotvault.

Implements the client store with slot-group lookups by fingerprint.
"""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import aiosqlite

from slotvault.application.interfaces import ClientStorePort
from slotvault.domain.entities import ClientRecord
from slotvault.domain.errors import CapacityExceeded, StorageError
from slotvault.domain.value_objects import MAX_SLOTS, Credential, SecondaryCredential, SlotGroupSummary
from .migrations import SLOT_CAPACITY_ERROR, run_migrations


logger = logging.getLogger(__name__)


class SQLiteClientStore(ClientStorePort):
    """
    SQLite database adapter for the clients table.

    Provides async reads and writes of client credentials and the
    filtered slot-group queries the credential resolver depends on.
    """

    def __init__(self, db_path: Path) -> None:
        """
        Initialize the adapter.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None

    async def initialize(self) -> None:
        """Initialize database and run migrations."""
        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Run migrations synchronously first
        run_migrations(self.db_path)

        # Open async connection
        self._connection = await aiosqlite.connect(str(self.db_path))
        self._connection.row_factory = aiosqlite.Row

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    @property
    def conn(self) -> aiosqlite.Connection:
        """Get the active connection or raise error."""
        if not self._connection:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._connection

    async def _count_slot_members(
        self,
        server_id: Optional[str],
        fingerprint: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> int:
        """Count active members of a group, for capacity error reporting."""
        if not server_id or not fingerprint:
            return 0
        cursor = await self.conn.execute(
            """
            SELECT COUNT(*) AS total FROM clients
            WHERE server_id = ? AND credentials_fingerprint = ?
              AND is_archived = 0 AND id != ?
            """,
            (server_id, fingerprint, exclude_id or ""),
        )
        row = await cursor.fetchone()
        return row["total"] if row else 0

    async def _raise_write_error(
        self,
        error: sqlite3.IntegrityError,
        server_id: Optional[str],
        fingerprint: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> None:
        """Translate a failed write into a vault error."""
        await self.conn.rollback()
        if SLOT_CAPACITY_ERROR in str(error):
            count = await self._count_slot_members(server_id, fingerprint, exclude_id)
            logger.warning(
                f"Slot capacity guard rejected write on server {server_id} ({count}/{MAX_SLOTS})"
            )
            raise CapacityExceeded(count, MAX_SLOTS) from error
        raise StorageError(f"Client write failed: {error}") from error

    # ==================== Write Operations ====================

    async def insert_client(self, client: ClientRecord) -> ClientRecord:
        """
        Insert a new client record.

        Raises:
            CapacityExceeded: If the slot capacity trigger rejects the row.
            StorageError: On any other integrity failure.
        """
        data = client.to_dict()
        try:
            await self.conn.execute(
                """
                INSERT INTO clients
                (id, seller_id, name, server_id, login, password, login_2, password_2,
                 credentials_fingerprint, is_archived, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    data["id"],
                    data["seller_id"],
                    data["name"],
                    data["server_id"],
                    data["login"],
                    data["password"],
                    data["login_2"],
                    data["password_2"],
                    data["credentials_fingerprint"],
                    data["is_archived"],
                    data["created_at"],
                    data["updated_at"],
                )
            )
        except sqlite3.IntegrityError as e:
            await self._raise_write_error(e, client.server_id, client.credentials_fingerprint)
        await self.conn.commit()
        return client

    async def update_client_credentials(
        self,
        client_id: str,
        credential: Credential,
        server_id: Optional[str] = None,
        secondary: Optional[SecondaryCredential] = None,
    ) -> Optional[ClientRecord]:
        """
        Replace a client's primary credential.

        The second-server pair is replaced only when `secondary` is given.

        Returns:
            The updated record, or None if the client does not exist.
        """
        current = await self.get_client(client_id)
        if current is None:
            return None

        target_server = server_id if server_id is not None else current.server_id
        if secondary is None:
            secondary = SecondaryCredential(current.login_2, current.password_2)
        try:
            await self.conn.execute(
                """
                UPDATE clients
                SET server_id = ?, login = ?, password = ?,
                    login_2 = ?, password_2 = ?,
                    credentials_fingerprint = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    target_server,
                    credential.login,
                    credential.password,
                    secondary.login_2,
                    secondary.password_2,
                    credential.fingerprint,
                    datetime.now().isoformat(),
                    client_id,
                )
            )
        except sqlite3.IntegrityError as e:
            await self._raise_write_error(e, target_server, credential.fingerprint, client_id)
        await self.conn.commit()
        return await self.get_client(client_id)

    # ==================== Read Operations ====================

    async def get_client(self, client_id: str) -> Optional[ClientRecord]:
        """Get a client by id."""
        cursor = await self.conn.execute(
            "SELECT * FROM clients WHERE id = ?",
            (client_id,)
        )
        row = await cursor.fetchone()
        if row:
            return ClientRecord.from_dict(dict(row))
        return None

    async def get_clients_by_ids(
        self,
        client_ids: list[str],
        archived: Optional[bool] = None,
        seller_id: Optional[str] = None,
    ) -> list[ClientRecord]:
        """Get several clients by id, optionally scoped to the archived/active view."""
        if not client_ids:
            return []

        placeholders = ", ".join("?" for _ in client_ids)
        query = f"SELECT * FROM clients WHERE id IN ({placeholders})"
        params: list[Any] = list(client_ids)

        if archived is not None:
            query += " AND is_archived = ?"
            params.append(int(archived))

        if seller_id:
            query += " AND seller_id = ?"
            params.append(seller_id)

        cursor = await self.conn.execute(query, params)
        rows = await cursor.fetchall()
        return [ClientRecord.from_dict(dict(row)) for row in rows]

    async def find_slot_members(
        self,
        server_id: str,
        fingerprint: str,
        exclude_id: Optional[str] = None,
        seller_id: Optional[str] = None,
    ) -> list[ClientRecord]:
        """Get active clients sharing a fingerprint on a server, oldest first."""
        query = """
            SELECT * FROM clients
            WHERE server_id = ? AND credentials_fingerprint = ? AND is_archived = 0
        """
        params: list[Any] = [server_id, fingerprint]

        if exclude_id:
            query += " AND id != ?"
            params.append(exclude_id)

        if seller_id:
            query += " AND seller_id = ?"
            params.append(seller_id)

        query += " ORDER BY created_at, rowid"

        cursor = await self.conn.execute(query, params)
        rows = await cursor.fetchall()
        return [ClientRecord.from_dict(dict(row)) for row in rows]

    async def list_search_logins(
        self,
        limit: int,
        archived: bool = False,
        seller_id: Optional[str] = None,
    ) -> list[tuple[str, Optional[str], Optional[str]]]:
        """Get (id, login, login_2) tuples for the archived or active view."""
        query = "SELECT id, login, login_2 FROM clients WHERE is_archived = ?"
        params: list[Any] = [int(archived)]

        if seller_id:
            query += " AND seller_id = ?"
            params.append(seller_id)

        query += " ORDER BY created_at DESC LIMIT ?"
        params.append(limit)

        cursor = await self.conn.execute(query, params)
        rows = await cursor.fetchall()
        return [(row["id"], row["login"], row["login_2"]) for row in rows]

    async def list_slot_groups(
        self,
        server_id: str,
        seller_id: Optional[str] = None,
    ) -> list[SlotGroupSummary]:
        """Get the active slot groups on a server."""
        query = """
            SELECT * FROM clients
            WHERE server_id = ? AND credentials_fingerprint IS NOT NULL AND is_archived = 0
        """
        params: list[Any] = [server_id]

        if seller_id:
            query += " AND seller_id = ?"
            params.append(seller_id)

        query += " ORDER BY created_at, rowid"

        cursor = await self.conn.execute(query, params)
        rows = await cursor.fetchall()

        groups: dict[str, list[ClientRecord]] = {}
        for row in rows:
            client = ClientRecord.from_dict(dict(row))
            groups.setdefault(client.credentials_fingerprint, []).append(client)

        return [
            SlotGroupSummary(
                server_id=server_id,
                fingerprint=fingerprint,
                encrypted_login=members[0].login,
                encrypted_password=members[0].password,
                member_ids=tuple(member.id for member in members),
            )
            for fingerprint, members in groups.items()
        ]
