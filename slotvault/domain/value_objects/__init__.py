# Domain Value Objects
from .credentials import (
    ALL_FIELDS,
    PRIMARY_FIELDS,
    SECONDARY_FIELDS,
    Credential,
    DecryptedCredentials,
    SecondaryCredential,
    SharedCredentialSelection,
)
from .retry_policy import RetryExhausted, RetryPolicy, exponential_backoff
from .slot_group import MAX_SLOTS, SlotGroupSummary

__all__ = [
    "ALL_FIELDS",
    "PRIMARY_FIELDS",
    "SECONDARY_FIELDS",
    "Credential",
    "DecryptedCredentials",
    "SecondaryCredential",
    "SharedCredentialSelection",
    "RetryExhausted",
    "RetryPolicy",
    "exponential_backoff",
    "MAX_SLOTS",
    "SlotGroupSummary",
]
