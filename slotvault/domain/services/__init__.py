# Domain Services
from .classifier import looks_encrypted
from .decrypted_cache import DecryptedCache

__all__ = ["looks_encrypted", "DecryptedCache"]
