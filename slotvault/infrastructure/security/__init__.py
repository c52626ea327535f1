# Security Package
from .crypto import FernetEncryptionProvider, HmacFingerprintProvider

__all__ = ["FernetEncryptionProvider", "HmacFingerprintProvider"]
