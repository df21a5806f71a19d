"""Shared fixtures for Column Crypt tests."""

import base64
from collections.abc import Iterator

import pytest

from column_crypt.config import get_settings
from column_crypt.constants import CIPHER_DELIMITER_V1
from column_crypt.security.cache import DecryptionCache
from column_crypt.security.codec import EnvelopeCodec
from column_crypt.security.keys import KeyMaterial

TEST_KEY = bytes(range(32))
TEST_KEY_B64 = base64.b64encode(TEST_KEY).decode("ascii")

# Low iteration count keeps PBKDF2 fast in unit tests
TEST_ITERATIONS = 1000


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Provide a valid key via the environment and reset cached settings."""
    monkeypatch.setenv("COLUMN_CRYPT_ENCRYPTION_KEY", TEST_KEY_B64)
    monkeypatch.delenv("COLUMN_CRYPT_ASSOCIATED_DATA", raising=False)
    monkeypatch.delenv("COLUMN_CRYPT_FIXED_NONCE", raising=False)
    monkeypatch.delenv("COLUMN_CRYPT_CACHE_MAX_ENTRIES", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def material() -> KeyMaterial:
    return KeyMaterial(key=TEST_KEY, iterations=TEST_ITERATIONS)


@pytest.fixture()
def codec(material: KeyMaterial) -> EnvelopeCodec:
    return EnvelopeCodec(material)


@pytest.fixture()
def fixed_codec(material: KeyMaterial) -> EnvelopeCodec:
    return EnvelopeCodec(material, fixed_nonce=True)


@pytest.fixture()
def cache(codec: EnvelopeCodec) -> DecryptionCache:
    return DecryptionCache(codec, max_entries=100)


def tamper(envelope: str, segment: int = 0, byte_index: int = 0) -> str:
    """Flip one bit in a segment of an envelope, keeping it well-formed."""
    parts = envelope.split(CIPHER_DELIMITER_V1)
    raw = bytearray(base64.b64decode(parts[segment]))
    raw[byte_index] ^= 0x01
    parts[segment] = base64.b64encode(bytes(raw)).decode("ascii")
    return CIPHER_DELIMITER_V1.join(parts)


@pytest.fixture()
def tamper_envelope():
    return tamper
