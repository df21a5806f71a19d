"""Exceptions raised by the column encryption codec."""


class CipherError(Exception):
    """Base class for column encryption failures."""


class EnvelopeFormatError(CipherError):
    """The value is not a well-formed v1 envelope."""


class AuthenticationError(CipherError):
    """The envelope failed AES-GCM tag verification."""


class KeyMaterialError(CipherError):
    """Configured key or associated data is unusable."""
