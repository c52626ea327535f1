"""
Credentials Value Objects - Stored and decrypted credential pairs.
"""

from dataclasses import dataclass, field, replace
from typing import Optional


PRIMARY_FIELDS = ("login", "password")
SECONDARY_FIELDS = ("login_2", "password_2")
ALL_FIELDS = PRIMARY_FIELDS + SECONDARY_FIELDS


@dataclass(frozen=True)
class Credential:
    """
    Immutable credential pair as it is persisted on a client record.

    `login` and `password` hold ciphertext, or legacy plaintext when the
    record predates encryption or the encryption provider was unavailable.

    Attributes:
        login: Stored login value (None when cleared)
        password: Stored password value (None when cleared or absent)
        fingerprint: Deterministic lookup key for the plaintext pair
        plaintext_fallback: Whether any field was persisted unencrypted
    """

    login: Optional[str] = None
    password: Optional[str] = None
    fingerprint: Optional[str] = None
    plaintext_fallback: bool = False

    @classmethod
    def cleared(cls) -> "Credential":
        """Credential with every field nulled."""
        return cls()

    @property
    def is_empty(self) -> bool:
        """Check if no login is stored."""
        return not self.login

    def to_columns(self) -> dict:
        """Convert to client table column values."""
        return {
            "login": self.login,
            "password": self.password,
            "credentials_fingerprint": self.fingerprint,
        }


@dataclass(frozen=True)
class SecondaryCredential:
    """
    Stored credential pair for the client's second server.

    Second-server logins never join a slot group, so there is no fingerprint.
    """

    login_2: Optional[str] = None
    password_2: Optional[str] = None
    plaintext_fallback: bool = False

    def to_columns(self) -> dict:
        return {"login_2": self.login_2, "password_2": self.password_2}


@dataclass(frozen=True)
class SharedCredentialSelection:
    """
    A shared slot the user explicitly chose to join.

    Carries the ciphertext of an existing group member so it can be
    reused byte-for-byte instead of being re-encrypted.
    """

    encrypted_login: str
    encrypted_password: Optional[str] = None
    fingerprint: Optional[str] = None
    member_count: int = 0


@dataclass
class DecryptedCredentials:
    """
    Decrypted view of a client's credential fields.

    Secondary-server fields stay None until they have been resolved, which
    is how a partially populated cache entry is told apart from a complete one.
    """

    login: str = ""
    password: str = ""
    login_2: Optional[str] = None
    password_2: Optional[str] = None
    resolved: set[str] = field(default_factory=set, compare=False, repr=False)

    def has(self, field_name: str) -> bool:
        """Check whether a field has been resolved."""
        return field_name in self.resolved

    def missing(self, present: tuple[str, ...]) -> tuple[str, ...]:
        """Return the fields from `present` that are not resolved yet."""
        return tuple(name for name in present if name not in self.resolved)

    def merged(self, values: dict[str, str]) -> "DecryptedCredentials":
        """Return a copy extended with newly resolved field values."""
        updated = replace(self, resolved=set(self.resolved) | set(values), **values)
        return updated

    def to_dict(self) -> dict:
        """Convert to a plain dictionary for display."""
        return {
            "login": self.login,
            "password": self.password,
            "login_2": self.login_2,
            "password_2": self.password_2,
        }
