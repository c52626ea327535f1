# Use Cases Package
from .batch_decryptor import BatchDecryptor, DecryptOutcome, DecryptResult
from .credential_resolver import CredentialResolver
from .search_index import SearchIndex
from .credential_vault import CredentialVault

__all__ = [
    "BatchDecryptor",
    "DecryptOutcome",
    "DecryptResult",
    "CredentialResolver",
    "SearchIndex",
    "CredentialVault",
]
