"""
Slot Group Value Objects - Clients sharing one underlying account.
"""

from dataclasses import dataclass, field
from typing import Optional


# Maximum active clients allowed to share one (server, credentials) pair.
MAX_SLOTS = 3


@dataclass(frozen=True)
class SlotGroupSummary:
    """
    Active clients on a server sharing the same credential fingerprint.

    Attributes:
        server_id: Panel server the credentials belong to
        fingerprint: Credential fingerprint shared by every member
        encrypted_login: Stored login of the first member
        encrypted_password: Stored password of the first member
        member_ids: Ids of the active members
    """

    server_id: str
    fingerprint: str
    encrypted_login: Optional[str]
    encrypted_password: Optional[str]
    member_ids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def member_count(self) -> int:
        return len(self.member_ids)

    @property
    def free_slots(self) -> int:
        return max(MAX_SLOTS - self.member_count, 0)

    @property
    def is_full(self) -> bool:
        return self.member_count >= MAX_SLOTS
