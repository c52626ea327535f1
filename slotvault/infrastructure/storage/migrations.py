"""
Database Migrations - Schema setup and versioning.

Creates the `clients` table holding encrypted panel credentials, and the
triggers that cap every slot group at MAX_SLOTS active members.
"""

import sqlite3
from pathlib import Path
from typing import Optional

from slotvault.domain.value_objects import MAX_SLOTS


SCHEMA_VERSION = 1

# Message raised by the capacity triggers; the adapter matches on it.
SLOT_CAPACITY_ERROR = "slot_capacity_exceeded"

SCHEMA_SQL = f"""
-- Clients with panel credentials
CREATE TABLE IF NOT EXISTS clients (
    id TEXT PRIMARY KEY,
    seller_id TEXT,
    name TEXT DEFAULT '',
    server_id TEXT,
    login TEXT,
    password TEXT,
    login_2 TEXT,
    password_2 TEXT,
    credentials_fingerprint TEXT,
    is_archived INTEGER NOT NULL DEFAULT 0,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

-- Indexes for performance
CREATE INDEX IF NOT EXISTS idx_clients_slot_group
    ON clients(server_id, credentials_fingerprint, is_archived);
CREATE INDEX IF NOT EXISTS idx_clients_seller_archived
    ON clients(seller_id, is_archived);

-- Slot capacity guard for concurrent writers
CREATE TRIGGER IF NOT EXISTS trg_clients_slot_capacity_insert
BEFORE INSERT ON clients
WHEN NEW.server_id IS NOT NULL
    AND NEW.credentials_fingerprint IS NOT NULL
    AND NEW.is_archived = 0
BEGIN
    SELECT RAISE(ABORT, '{SLOT_CAPACITY_ERROR}')
    WHERE (
        SELECT COUNT(*) FROM clients
        WHERE server_id = NEW.server_id
          AND credentials_fingerprint = NEW.credentials_fingerprint
          AND is_archived = 0
    ) >= {MAX_SLOTS};
END;

CREATE TRIGGER IF NOT EXISTS trg_clients_slot_capacity_update
BEFORE UPDATE OF server_id, credentials_fingerprint, is_archived ON clients
WHEN NEW.server_id IS NOT NULL
    AND NEW.credentials_fingerprint IS NOT NULL
    AND NEW.is_archived = 0
BEGIN
    SELECT RAISE(ABORT, '{SLOT_CAPACITY_ERROR}')
    WHERE (
        SELECT COUNT(*) FROM clients
        WHERE server_id = NEW.server_id
          AND credentials_fingerprint = NEW.credentials_fingerprint
          AND is_archived = 0
          AND id != NEW.id
    ) >= {MAX_SLOTS};
END;
"""


def run_migrations(db_path: Path, conn: Optional[sqlite3.Connection] = None) -> None:
    """
    Run database migrations to ensure schema is up to date.

    Args:
        db_path: Path to the SQLite database file.
        conn: Optional existing connection to use.
    """
    should_close = conn is None
    if conn is None:
        conn = sqlite3.connect(str(db_path))

    try:
        cursor = conn.cursor()

        # Check current version
        cursor.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
        )
        version_table_exists = cursor.fetchone() is not None

        current_version = 0
        if version_table_exists:
            cursor.execute("SELECT MAX(version) FROM schema_version")
            row = cursor.fetchone()
            current_version = row[0] if row and row[0] else 0

        # Run migrations if needed
        if current_version < SCHEMA_VERSION:
            cursor.executescript(SCHEMA_SQL)

            # Record new version
            cursor.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,)
            )
            conn.commit()

    finally:
        if should_close:
            conn.close()
