"""
Unit tests for the Fernet encryption and HMAC fingerprint providers.
"""

import pytest
from cryptography.fernet import Fernet

from slotvault.domain.errors import EncryptionError
from slotvault.domain.services import looks_encrypted
from slotvault.infrastructure.security import FernetEncryptionProvider, HmacFingerprintProvider


@pytest.fixture
def provider() -> FernetEncryptionProvider:
    """Provider with an in-memory key."""
    crypto = FernetEncryptionProvider(key=Fernet.generate_key().decode("ascii"))
    crypto.initialize()
    return crypto


class TestFernetEncryption:
    """Tests for FernetEncryptionProvider."""

    @pytest.mark.asyncio
    async def test_round_trip(self, provider: FernetEncryptionProvider):
        """Decrypting returns the original plaintext."""
        cipher = await provider.encrypt("panel-user")
        assert await provider.decrypt(cipher) == "panel-user"

    @pytest.mark.asyncio
    async def test_ciphertext_is_classified_as_encrypted(self, provider: FernetEncryptionProvider):
        """Stored ciphertext uses the standard base64 alphabet."""
        cipher = await provider.encrypt("5531999998888")
        assert "-" not in cipher and "_" not in cipher
        assert looks_encrypted(cipher) is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("plaintext", ["user01", "Joao.Silva", "abc123XYZ", "001A2B3C4D5E"])
    async def test_round_trip_is_not_reflagged(self, provider: FernetEncryptionProvider, plaintext: str):
        """A decrypted plaintext never looks like ciphertext again."""
        decrypted = await provider.decrypt(await provider.encrypt(plaintext))
        assert looks_encrypted(decrypted) is False

    @pytest.mark.asyncio
    async def test_encrypt_is_not_deterministic(self, provider: FernetEncryptionProvider):
        """The same plaintext encrypts to different values."""
        assert await provider.encrypt("same") != await provider.encrypt("same")

    @pytest.mark.asyncio
    async def test_decrypt_plaintext_raises(self, provider: FernetEncryptionProvider):
        """Plaintext cannot be decrypted."""
        with pytest.raises(EncryptionError):
            await provider.decrypt("QWxhZGRpbjpvcGVuc2VzYW1l")

    @pytest.mark.asyncio
    async def test_decrypt_with_other_key_raises(self, provider: FernetEncryptionProvider):
        """Ciphertext from another key is rejected."""
        other = FernetEncryptionProvider(key=Fernet.generate_key().decode("ascii"))
        other.initialize()
        with pytest.raises(EncryptionError):
            await provider.decrypt(await other.encrypt("secret"))

    @pytest.mark.asyncio
    async def test_key_file_is_created_and_reused(self, tmp_path):
        """A missing key file is generated once and loaded afterwards."""
        key_path = tmp_path / "keys" / ".key"
        first = FernetEncryptionProvider(key_path=key_path)
        first.initialize()
        assert key_path.exists()

        second = FernetEncryptionProvider(key_path=key_path)
        second.initialize()
        assert await second.decrypt(await first.encrypt("secret")) == "secret"

    def test_uninitialized_raises(self):
        """Using the provider before initialize fails loudly."""
        crypto = FernetEncryptionProvider(key=Fernet.generate_key().decode("ascii"))
        with pytest.raises(RuntimeError, match="not initialized"):
            _ = crypto.fernet

    def test_invalid_key(self):
        """A malformed key is rejected on initialize."""
        crypto = FernetEncryptionProvider(key="not-a-key")
        with pytest.raises(EncryptionError):
            crypto.initialize()


class TestHmacFingerprint:
    """Tests for HmacFingerprintProvider."""

    @pytest.mark.asyncio
    async def test_deterministic(self):
        """Equal inputs give equal fingerprints across instances."""
        a = HmacFingerprintProvider("k")
        b = HmacFingerprintProvider("k")
        assert await a.fingerprint("user", "pass") == await b.fingerprint("user", "pass")

    @pytest.mark.asyncio
    async def test_normalizes_case_and_whitespace(self):
        """Case and surrounding spaces do not change the fingerprint."""
        fp = HmacFingerprintProvider("k")
        assert await fp.fingerprint("  User ", "Pass ") == await fp.fingerprint("user", "pass")

    @pytest.mark.asyncio
    async def test_different_pairs_differ(self):
        """Moving characters between login and password changes the fingerprint."""
        fp = HmacFingerprintProvider("k")
        assert await fp.fingerprint("ab", "c") != await fp.fingerprint("a", "bc")

    @pytest.mark.asyncio
    async def test_key_matters(self):
        """Different keys give different fingerprints."""
        first = await HmacFingerprintProvider("k1").fingerprint("u", "p")
        second = await HmacFingerprintProvider("k2").fingerprint("u", "p")
        assert first != second
