"""
Vault Errors - Exceptions raised by the credential vault.
"""


class VaultError(Exception):
    """Base class for all credential vault errors."""


class CapacityExceeded(VaultError):
    """
    Raised when a save would push a slot group past its capacity.

    Attributes:
        count: Active members already sharing the credentials.
        limit: Maximum members allowed per slot group.
    """

    def __init__(self, count: int, limit: int) -> None:
        self.count = count
        self.limit = limit
        super().__init__(
            f"Login already shared by {count} active clients. "
            f"Limit: {limit} clients per slot."
        )


class EncryptionError(VaultError):
    """Raised when the encryption provider cannot encrypt or decrypt a value."""


class StorageError(VaultError):
    """Raised when the client store cannot complete an operation."""
