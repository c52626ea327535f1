"""
Client Entity - A billed client record carrying panel credentials.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from slotvault.domain.value_objects import ALL_FIELDS, Credential, SecondaryCredential


@dataclass
class ClientRecord:
    """
    Client entity as stored in the `clients` table.

    Only the columns the credential vault reads or writes are modelled;
    other business fields live with the collaborators that own them.

    Attributes:
        id: Client id (primary key)
        seller_id: Reseller owning the record
        name: Display name
        server_id: Primary panel server
        login: Stored login (ciphertext or legacy plaintext)
        password: Stored password (ciphertext or legacy plaintext)
        login_2: Stored login on the second server
        password_2: Stored password on the second server
        credentials_fingerprint: Fingerprint of the primary plaintext pair
        is_archived: Archived clients never count towards a slot group
    """

    id: str
    seller_id: Optional[str] = None
    name: str = ""
    server_id: Optional[str] = None
    login: Optional[str] = None
    password: Optional[str] = None
    login_2: Optional[str] = None
    password_2: Optional[str] = None
    credentials_fingerprint: Optional[str] = None
    is_archived: bool = False
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        """Validate client data."""
        if not self.id:
            raise ValueError("id is required")
        self.is_archived = bool(self.is_archived)

    @property
    def credential(self) -> Credential:
        """Primary credential as persisted."""
        return Credential(
            login=self.login,
            password=self.password,
            fingerprint=self.credentials_fingerprint,
        )

    @property
    def present_fields(self) -> tuple[str, ...]:
        """Credential fields holding a non-empty stored value."""
        return tuple(name for name in ALL_FIELDS if getattr(self, name))

    @property
    def has_credentials(self) -> bool:
        return bool(self.present_fields)

    def with_credential(self, credential: Credential) -> "ClientRecord":
        """Return a copy carrying a new primary credential."""
        return ClientRecord(
            id=self.id,
            seller_id=self.seller_id,
            name=self.name,
            server_id=self.server_id,
            login=credential.login,
            password=credential.password,
            login_2=self.login_2,
            password_2=self.password_2,
            credentials_fingerprint=credential.fingerprint,
            is_archived=self.is_archived,
            created_at=self.created_at,
            updated_at=datetime.now(),
        )

    def with_secondary(self, secondary: SecondaryCredential) -> "ClientRecord":
        """Return a copy carrying new second-server credentials."""
        return replace(
            self,
            login_2=secondary.login_2,
            password_2=secondary.password_2,
            updated_at=datetime.now(),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for database storage."""
        return {
            "id": self.id,
            "seller_id": self.seller_id,
            "name": self.name,
            "server_id": self.server_id,
            "login": self.login,
            "password": self.password,
            "login_2": self.login_2,
            "password_2": self.password_2,
            "credentials_fingerprint": self.credentials_fingerprint,
            "is_archived": int(self.is_archived),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ClientRecord":
        """Create ClientRecord from dictionary (database row)."""
        created_at = data.get("created_at") or datetime.now()
        updated_at = data.get("updated_at") or created_at
        return cls(
            id=data["id"],
            seller_id=data.get("seller_id"),
            name=data.get("name") or "",
            server_id=data.get("server_id"),
            login=data.get("login"),
            password=data.get("password"),
            login_2=data.get("login_2"),
            password_2=data.get("password_2"),
            credentials_fingerprint=data.get("credentials_fingerprint"),
            is_archived=bool(data.get("is_archived") or 0),
            created_at=datetime.fromisoformat(created_at)
            if isinstance(created_at, str)
            else created_at,
            updated_at=datetime.fromisoformat(updated_at)
            if isinstance(updated_at, str)
            else updated_at,
        )
