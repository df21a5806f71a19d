"""Bounded decryption cache shared by concurrent readers."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from column_crypt.constants import MAX_CACHE_SIZE
from column_crypt.logging import get_logger
from column_crypt.security.codec import EnvelopeCodec
from column_crypt.security.detector import is_encrypted
from column_crypt.security.errors import CipherError
from column_crypt.security.keys import KeyMaterial

if TYPE_CHECKING:
    from column_crypt.config import Settings

log = get_logger("column_crypt.security.cache")


@dataclass(frozen=True)
class DecryptResult:
    """Outcome of decrypting one value."""

    success: bool
    value: str | None
    error: str | None = None


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time cache counters."""

    size: int
    capacity: int
    hits: int
    misses: int
    failures: int


class DecryptionCache:
    """Memoizes envelope decryptions up to a fixed number of entries.

    Once full the cache stops inserting; nothing is evicted until
    ``clear()``. The lock guards the map only, decryption runs outside it, so
    two threads may decrypt the same envelope at once and the later insert
    wins.
    """

    def __init__(self, codec: EnvelopeCodec, max_entries: int = MAX_CACHE_SIZE) -> None:
        """Initialize the cache.

        Args:
            codec: Codec used on cache misses.
            max_entries: Maximum number of cached plaintexts.
        """
        if max_entries < 0:
            raise ValueError("max_entries must be >= 0")
        self._codec = codec
        self._max_entries = max_entries
        self._entries: dict[str, str | None] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._failures = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> DecryptionCache:
        """Build a codec and cache from application settings."""
        codec = EnvelopeCodec(
            KeyMaterial.from_settings(settings),
            fixed_nonce=settings.fixed_nonce,
        )
        return cls(codec, max_entries=settings.cache_max_entries)

    @property
    def codec(self) -> EnvelopeCodec:
        return self._codec

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _lookup(self, envelope: str) -> tuple[bool, str | None]:
        with self._lock:
            if envelope in self._entries:
                self._hits += 1
                return True, self._entries[envelope]
            self._misses += 1
            return False, None

    def _store(self, envelope: str, plaintext: str | None) -> None:
        with self._lock:
            if len(self._entries) < self._max_entries:
                self._entries[envelope] = plaintext

    def _record_failure(self) -> None:
        with self._lock:
            self._failures += 1

    def try_decrypt(self, value: str | None) -> str | None:
        """Decrypt a value if it looks encrypted.

        Values that do not look encrypted and values that fail to decrypt are
        returned unchanged.
        """
        result = self.try_decrypt_with_error(value)
        if not result.success:
            log.warning("decryption_failed", error=result.error, length=len(value or ""))
        return result.value

    def try_decrypt_with_error(self, value: str | None) -> DecryptResult:
        """Decrypt a value, reporting failure explicitly.

        Returns:
            A successful result holding the plaintext (or the untouched value
            when it does not look encrypted), or a failed result holding the
            original value and the error message.
        """
        if value is None or not is_encrypted(value):
            return DecryptResult(success=True, value=value)

        found, cached = self._lookup(value)
        if found:
            return DecryptResult(success=True, value=cached)

        try:
            plaintext = self._codec.decrypt(value)
        except CipherError as e:
            self._record_failure()
            return DecryptResult(success=False, value=value, error=f"Decryption failed: {e}")

        self._store(value, plaintext)
        return DecryptResult(success=True, value=plaintext)

    def clear(self) -> None:
        """Drop every cached entry."""
        with self._lock:
            self._entries.clear()
        log.debug("decryption_cache_cleared")

    def stats(self) -> CacheStats:
        """Return the current counters."""
        with self._lock:
            return CacheStats(
                size=len(self._entries),
                capacity=self._max_entries,
                hits=self._hits,
                misses=self._misses,
                failures=self._failures,
            )
