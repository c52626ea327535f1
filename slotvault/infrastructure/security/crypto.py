"""
Crypto Services - Credential encryption using Fernet and HMAC fingerprints.

Provides symmetric encryption for panel logins/passwords before they are
stored, and a keyed fingerprint used to group clients sharing an account.
"""

import base64
import binascii
import logging
from pathlib import Path
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes, hmac

from slotvault.application.interfaces import EncryptionPort, FingerprintPort
from slotvault.domain.errors import EncryptionError


logger = logging.getLogger(__name__)

# Separates login from password in the fingerprint input.
FIELD_SEPARATOR = "\x1f"


class FernetEncryptionProvider(EncryptionPort):
    """
    Encryption provider backed by Fernet.

    Fernet tokens are urlsafe base64. Stored ciphertext is re-encoded with
    the standard base64 alphabet so it reads like every other encrypted
    value in the clients table; decrypt accepts both alphabets.
    """

    def __init__(self, key: Optional[str] = None, key_path: Optional[Path] = None) -> None:
        """
        Initialize the provider.

        Args:
            key: Fernet key. Takes precedence over `key_path`.
            key_path: Path to store/load the encryption key.
        """
        if key is None and key_path is None:
            raise ValueError("Either key or key_path is required")
        self.key = key
        self.key_path = key_path
        self._fernet: Optional[Fernet] = None

    def initialize(self) -> None:
        """Initialize or load the encryption key."""
        if self.key:
            key = self.key.encode("utf-8")
        elif self.key_path.exists():
            key = self.key_path.read_bytes().strip()
        else:
            key = Fernet.generate_key()
            self.key_path.parent.mkdir(parents=True, exist_ok=True)
            self.key_path.write_bytes(key)
            # Restrict file permissions (Unix only)
            try:
                self.key_path.chmod(0o600)
            except OSError:
                pass  # Windows doesn't support chmod
            logger.info(f"Generated new encryption key at {self.key_path}")

        try:
            self._fernet = Fernet(key)
        except (ValueError, binascii.Error) as e:
            raise EncryptionError(f"Invalid encryption key: {e}") from e

    @property
    def fernet(self) -> Fernet:
        """Get the Fernet instance."""
        if not self._fernet:
            raise RuntimeError("FernetEncryptionProvider not initialized. Call initialize() first.")
        return self._fernet

    async def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a string.

        Args:
            plaintext: Plain text to encrypt.

        Returns:
            Standard base64 encoded ciphertext.
        """
        token = self.fernet.encrypt(plaintext.encode("utf-8"))
        return base64.b64encode(base64.urlsafe_b64decode(token)).decode("ascii")

    async def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a string.

        Args:
            ciphertext: Base64 encoded ciphertext (standard or urlsafe).

        Returns:
            Decrypted plain text.

        Raises:
            EncryptionError: If decryption fails (wrong key or corrupted data).
        """
        try:
            raw = base64.b64decode(
                ciphertext.replace("-", "+").replace("_", "/"), validate=True
            )
            decrypted = self.fernet.decrypt(base64.urlsafe_b64encode(raw))
            return decrypted.decode("utf-8")
        except (InvalidToken, binascii.Error, ValueError) as e:
            raise EncryptionError("Unable to decrypt value") from e


class HmacFingerprintProvider(FingerprintPort):
    """
    Fingerprint provider using HMAC-SHA256.

    Inputs are trimmed and lower-cased first, so the same account typed
    with different casing or stray spaces maps to the same fingerprint.
    """

    def __init__(self, key: str) -> None:
        if not key:
            raise ValueError("Fingerprint key is required")
        self._key = key.encode("utf-8")

    @staticmethod
    def normalize(login: str, password: str) -> str:
        """Normalize a plaintext pair into the fingerprint input."""
        return f"{(login or '').strip().lower()}{FIELD_SEPARATOR}{(password or '').strip().lower()}"

    async def fingerprint(self, login: str, password: str) -> str:
        """Derive the hex HMAC of the normalized pair."""
        mac = hmac.HMAC(self._key, hashes.SHA256())
        mac.update(self.normalize(login, password).encode("utf-8"))
        return mac.finalize().hex()
