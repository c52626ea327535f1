# Storage Package
from .sqlite_adapter import SQLiteClientStore
from .migrations import run_migrations

__all__ = ["SQLiteClientStore", "run_migrations"]
