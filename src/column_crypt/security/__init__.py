"""Security module for Column Crypt.

Provides the AES-GCM envelope codec, envelope detection and the decryption
cache used to read encrypted columns.
"""

from column_crypt.security.cache import CacheStats, DecryptionCache, DecryptResult
from column_crypt.security.codec import EnvelopeCodec
from column_crypt.security.detector import is_encrypted
from column_crypt.security.errors import (
    AuthenticationError,
    CipherError,
    EnvelopeFormatError,
    KeyMaterialError,
)
from column_crypt.security.keys import KeyMaterial, iteration_epoch

__all__ = [
    "AuthenticationError",
    "CacheStats",
    "CipherError",
    "DecryptResult",
    "DecryptionCache",
    "EnvelopeCodec",
    "EnvelopeFormatError",
    "KeyMaterial",
    "KeyMaterialError",
    "is_encrypted",
    "iteration_epoch",
]
