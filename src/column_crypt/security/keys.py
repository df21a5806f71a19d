"""Key material for column encryption.

The key, associated data and iteration epoch are fixed for the life of the
process. They are captured once in an immutable ``KeyMaterial`` value and
handed to the codec explicitly.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from column_crypt.constants import (
    ASSOCIATED_DATA_SIZE,
    EPOCH_MULTIPLIER,
    EPOCH_OFFSET,
    KEY_SIZE,
    LEGACY_ASSOCIATED_DATA,
)
from column_crypt.logging import get_logger
from column_crypt.security.errors import KeyMaterialError

if TYPE_CHECKING:
    from column_crypt.config import Settings

log = get_logger("column_crypt.security.keys")


def iteration_epoch(year: int | None = None) -> int:
    """Return the PBKDF2 iteration count for a calendar year.

    Args:
        year: Calendar year; defaults to the current local year.

    Returns:
        ``year * 11 - 10007``.
    """
    if year is None:
        year = datetime.now().year
    return year * EPOCH_MULTIPLIER - EPOCH_OFFSET


def _decode_b64(value: str, expected_size: int, label: str) -> bytes:
    try:
        raw = base64.b64decode(value.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise KeyMaterialError(f"{label} is not valid base64") from e
    if len(raw) != expected_size:
        raise KeyMaterialError(f"{label} must be {expected_size} bytes, got {len(raw)}")
    return raw


@dataclass(frozen=True)
class KeyMaterial:
    """Immutable process-wide encryption configuration."""

    key: bytes = field(repr=False)
    associated_data: bytes = field(default=LEGACY_ASSOCIATED_DATA, repr=False)
    iterations: int = field(default_factory=iteration_epoch)

    def __post_init__(self) -> None:
        if len(self.key) != KEY_SIZE:
            raise KeyMaterialError(f"Key must be {KEY_SIZE} bytes, got {len(self.key)}")
        if len(self.associated_data) != ASSOCIATED_DATA_SIZE:
            raise KeyMaterialError(
                f"Associated data must be {ASSOCIATED_DATA_SIZE} bytes, "
                f"got {len(self.associated_data)}"
            )
        if self.iterations < 1:
            raise KeyMaterialError(f"Iteration count must be positive, got {self.iterations}")

    @property
    def key_b64(self) -> str:
        """Base64 text of the key, used as the nonce-derivation password."""
        return base64.b64encode(self.key).decode("ascii")

    @classmethod
    def from_base64(
        cls,
        key: str,
        associated_data: str | None = None,
        iterations: int | None = None,
    ) -> KeyMaterial:
        """Build key material from base64 text."""
        raw_key = _decode_b64(key, KEY_SIZE, "Encryption key")
        raw_ad = (
            _decode_b64(associated_data, ASSOCIATED_DATA_SIZE, "Associated data")
            if associated_data
            else LEGACY_ASSOCIATED_DATA
        )
        if iterations is None:
            iterations = iteration_epoch()
        return cls(key=raw_key, associated_data=raw_ad, iterations=iterations)

    @classmethod
    def from_settings(cls, settings: Settings) -> KeyMaterial:
        """Build key material from application settings."""
        associated_data = (
            settings.associated_data.get_secret_value() if settings.associated_data else None
        )
        material = cls.from_base64(
            settings.encryption_key.get_secret_value(),
            associated_data=associated_data,
        )
        log.info(
            "key_material_loaded",
            iterations=material.iterations,
            legacy_associated_data=associated_data is None,
        )
        return material
