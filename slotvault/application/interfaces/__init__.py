# Interfaces Package
from .crypto_port import EncryptionPort, FingerprintPort
from .storage_port import ClientStorePort

__all__ = ["EncryptionPort", "FingerprintPort", "ClientStorePort"]
