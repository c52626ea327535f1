"""
Ciphertext Classifier - Tells stored ciphertext apart from legacy plaintext.

Legacy client records may hold unencrypted logins, MAC addresses or
numeric ids. Decrypting those would garble them, and searching ciphertext
as if it were plaintext never matches, so every consumer asks this one
predicate before touching a stored value.
"""

import re
from typing import Optional


MIN_CIPHERTEXT_LENGTH = 20

_BASE64_ALPHABET = re.compile(r"[A-Za-z0-9+/=]*")
_HAS_LETTER = re.compile(r"[A-Za-z]")
_HAS_UPPER = re.compile(r"[A-Z]")
_HAS_LOWER = re.compile(r"[a-z]")


def looks_encrypted(value: Optional[str]) -> bool:
    """
    Guess whether a stored value is ciphertext.

    Args:
        value: Stored login or password.

    Returns:
        True if the value looks like base64 ciphertext.
    """
    if not value or len(value) < MIN_CIPHERTEXT_LENGTH:
        return False
    if not _BASE64_ALPHABET.fullmatch(value):
        return False
    # Phone numbers and numeric logins
    if not _HAS_LETTER.search(value):
        return False

    mixed_case = bool(_HAS_UPPER.search(value) and _HAS_LOWER.search(value))
    return mixed_case or value.endswith("=") or "+" in value or "/" in value
