"""
Crypto Ports - Abstract interfaces for encryption and fingerprinting.
"""

from abc import ABC, abstractmethod


class EncryptionPort(ABC):
    """Abstract interface for reversible credential encryption."""

    @abstractmethod
    async def encrypt(self, plaintext: str) -> str:
        """Encrypt a value. May raise on provider failure."""
        pass

    @abstractmethod
    async def decrypt(self, ciphertext: str) -> str:
        """Decrypt a value. May raise on provider failure."""
        pass


class FingerprintPort(ABC):
    """Abstract interface for deterministic credential fingerprints."""

    @abstractmethod
    async def fingerprint(self, login: str, password: str) -> str:
        """Derive a stable, non-reversible key for a plaintext pair."""
        pass
