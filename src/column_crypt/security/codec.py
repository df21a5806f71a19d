"""AES-256-GCM envelope codec for column values.

Envelope format (v1)::

    base64(ciphertext)|||||||base64(nonce)|||||||base64(tag)|||||||

The trailing delimiter doubles as the format marker, so a v1 envelope always
splits into exactly four parts, the last one empty.

The nonce is produced by PBKDF2-HMAC-SHA256 over the base64 text of the key,
using the iteration epoch as the iteration count. With ``fixed_nonce`` the
salt is empty and every encryption in the same epoch reuses one nonce;
otherwise a fresh random salt is drawn per call. Decryption reads the nonce
from the envelope and works for either mode.
"""

from __future__ import annotations

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from column_crypt.constants import (
    CIPHER_DELIMITER_V1,
    NONCE_SALT_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
)
from column_crypt.security.errors import AuthenticationError, EnvelopeFormatError
from column_crypt.security.keys import KeyMaterial


def derive_nonce(material: KeyMaterial, salt: bytes = b"") -> bytes:
    """Derive a 12-byte nonce from the key text and the iteration epoch."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=NONCE_SIZE,
        salt=salt,
        iterations=material.iterations,
    )
    return kdf.derive(material.key_b64.encode("utf-8"))


def format_envelope(ciphertext: bytes, nonce: bytes, tag: bytes) -> str:
    """Serialize envelope parts into the v1 wire format."""
    return "".join(
        base64.b64encode(part).decode("ascii") + CIPHER_DELIMITER_V1
        for part in (ciphertext, nonce, tag)
    )


def parse_envelope(envelope: str) -> tuple[bytes, bytes, bytes]:
    """Split a v1 envelope into ``(ciphertext, nonce, tag)``.

    Raises:
        EnvelopeFormatError: On a wrong segment count, bad base64, or a nonce
            or tag of the wrong size.
    """
    parts = envelope.split(CIPHER_DELIMITER_V1)
    if len(parts) != 4 or parts[3] != "":
        raise EnvelopeFormatError("Invalid Decryption Value")

    decoded: list[bytes] = []
    for name, segment in zip(("ciphertext", "nonce", "tag"), parts[:3]):
        try:
            decoded.append(base64.b64decode(segment.encode("ascii"), validate=True))
        except (binascii.Error, UnicodeEncodeError) as e:
            raise EnvelopeFormatError(f"Invalid base64 in {name} segment") from e

    ciphertext, nonce, tag = decoded
    if len(nonce) != NONCE_SIZE:
        raise EnvelopeFormatError(f"Nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
    if len(tag) != TAG_SIZE:
        raise EnvelopeFormatError(f"Tag must be {TAG_SIZE} bytes, got {len(tag)}")
    return ciphertext, nonce, tag


class EnvelopeCodec:
    """Encrypts and decrypts single string values.

    Instances hold only immutable key material and may be shared freely
    between threads.
    """

    def __init__(self, material: KeyMaterial, fixed_nonce: bool = False) -> None:
        """Initialize the codec.

        Args:
            material: Key, associated data and iteration epoch.
            fixed_nonce: Derive the nonce without a salt, reproducing the
                one-nonce-per-epoch behavior of existing ciphertext.
        """
        self._material = material
        self._aesgcm = AESGCM(material.key)
        self._fixed_nonce = fixed_nonce
        self._fixed = derive_nonce(material) if fixed_nonce else None

    @property
    def fixed_nonce(self) -> bool:
        return self._fixed_nonce

    def _next_nonce(self) -> bytes:
        if self._fixed is not None:
            return self._fixed
        return derive_nonce(self._material, os.urandom(NONCE_SALT_SIZE))

    def encrypt(self, plaintext: str | None) -> str | None:
        """Encrypt a string into a v1 envelope.

        Returns:
            The envelope, or None when there is nothing to encrypt.
        """
        if not plaintext:
            return None

        nonce = self._next_nonce()
        sealed = self._aesgcm.encrypt(
            nonce, plaintext.encode("utf-8"), self._material.associated_data
        )
        return format_envelope(sealed[:-TAG_SIZE], nonce, sealed[-TAG_SIZE:])

    def decrypt(self, envelope: str | None) -> str | None:
        """Decrypt a v1 envelope.

        Raises:
            EnvelopeFormatError: The value is not a well-formed envelope.
            AuthenticationError: Tag verification failed.
        """
        if envelope is None:
            return None

        ciphertext, nonce, tag = parse_envelope(envelope)
        try:
            plain = self._aesgcm.decrypt(
                nonce, ciphertext + tag, self._material.associated_data
            )
        except InvalidTag as e:
            raise AuthenticationError("Authentication tag mismatch") from e

        try:
            return plain.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EnvelopeFormatError("Decrypted value is not valid UTF-8") from e
