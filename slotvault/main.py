"""
slotvault - Credential vault for shared service-panel logins

Composition root and entry point.
"""

import asyncio
import logging
import sys
from typing import Optional

from slotvault.application.use_cases import CredentialVault
from slotvault.config.settings import Settings, get_settings
from slotvault.infrastructure.security import FernetEncryptionProvider, HmacFingerprintProvider
from slotvault.infrastructure.storage import SQLiteClientStore


logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


async def build_vault(settings: Settings, seller_id: Optional[str] = None) -> CredentialVault:
    """
    Initialize storage and crypto and return a ready vault.

    The caller owns the store and must close it (`vault.store.close()`).
    """
    encryption = FernetEncryptionProvider(
        key=settings.encryption_key or None,
        key_path=settings.encryption_key_path,
    )
    encryption.initialize()

    store = SQLiteClientStore(settings.database_path)
    await store.initialize()
    logger.info(f"Client store ready at {settings.database_path}")

    return CredentialVault(
        settings,
        encryption,
        HmacFingerprintProvider(settings.fingerprint_key),
        store,
        seller_id=seller_id,
    )


async def _init() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    vault = await build_vault(settings)
    await vault.store.close()
    logger.info("Vault initialized")


def main() -> None:
    """Create the database schema and encryption key if missing."""
    asyncio.run(_init())


if __name__ == "__main__":
    main()
