"""Single-value encryption tools and cursor reading."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Protocol

from column_crypt.logging import get_logger
from column_crypt.security.codec import EnvelopeCodec
from column_crypt.security.detector import is_encrypted
from column_crypt.security.errors import CipherError
from column_crypt.transcoder import ResultTranscoder

log = get_logger("column_crypt.tools")


class Cursor(Protocol):
    """The part of a DB-API cursor needed to read an executed query."""

    @property
    def description(self) -> Any: ...

    def fetchall(self) -> list[Any]: ...


@dataclass(frozen=True)
class OperationResult:
    """Result of a tool invocation."""

    success: bool
    data: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def encrypt_data(codec: EnvelopeCodec, plain_text: str | None) -> OperationResult:
    """Encrypt a plain text value."""
    if not plain_text:
        return OperationResult(success=False, error="Plain text cannot be null or empty")

    encrypted = codec.encrypt(plain_text)
    if encrypted is None:
        return OperationResult(success=False, error="Encryption failed - returned null")

    log.info(
        "encrypted_data",
        plain_length=len(plain_text),
        encrypted_length=len(encrypted),
    )
    return OperationResult(
        success=True,
        data={
            "plain_text": plain_text,
            "encrypted_value": encrypted,
            "encrypted_length": len(encrypted),
        },
    )


def decrypt_data(codec: EnvelopeCodec, encrypted_text: str | None) -> OperationResult:
    """Decrypt a single envelope, reporting codec errors as a failed result."""
    if not encrypted_text:
        return OperationResult(success=False, error="Encrypted text cannot be null or empty")

    if not is_encrypted(encrypted_text):
        return OperationResult(
            success=False,
            error="Input does not appear to be encrypted (missing delimiter pattern)",
        )

    try:
        decrypted = codec.decrypt(encrypted_text)
    except CipherError as e:
        log.error("decryption_failed", error_type=type(e).__name__, error=str(e))
        return OperationResult(success=False, error=str(e))

    if decrypted is None:
        return OperationResult(success=False, error="Decryption failed - returned null")

    log.info(
        "decrypted_data",
        encrypted_length=len(encrypted_text),
        decrypted_length=len(decrypted),
    )
    return OperationResult(
        success=True,
        data={
            "encrypted_text": encrypted_text,
            "decrypted_value": decrypted,
            "decrypted_length": len(decrypted),
        },
    )


def read_cursor(cursor: Cursor, transcoder: ResultTranscoder) -> OperationResult:
    """Read every row of an executed cursor, decrypting encrypted columns.

    Column names come from ``cursor.description``. Errors raised by the
    cursor itself are reported as a failed result.
    """
    try:
        columns = [column[0] for column in cursor.description or ()]
        records = cursor.fetchall()
    except Exception as e:
        log.error("read_cursor_failed", error=str(e), exc_info=True)
        return OperationResult(success=False, error=str(e))

    result = transcoder.transcode_records(columns, records)
    return OperationResult(success=True, data=result.rows)
