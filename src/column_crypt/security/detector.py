"""Syntactic detection of encrypted column values."""

from column_crypt.constants import CIPHER_DELIMITER_V1, MIN_ENCRYPTED_LENGTH


def is_encrypted(value: str | None) -> bool:
    """Check whether a value looks like a v1 envelope.

    Only the length and the presence of the delimiter are checked, so
    plaintext that happens to contain ``|||||||`` is reported as encrypted.

    Args:
        value: The raw column value.

    Returns:
        True if the value may be an envelope.
    """
    if not value or len(value) < MIN_ENCRYPTED_LENGTH:
        return False
    return CIPHER_DELIMITER_V1 in value
