"""Centralized constants for Column Crypt."""

# Envelope format (v1)
CIPHER_DELIMITER_V1 = "|||||||"
KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16
ASSOCIATED_DATA_SIZE = 80

# Nonce derivation
NONCE_SALT_SIZE = 64
EPOCH_MULTIPLIER = 11
EPOCH_OFFSET = 10007

# Detection
MIN_ENCRYPTED_LENGTH = 20

# Cache
MAX_CACHE_SIZE = 10000

# Associated data shared by every envelope written by the legacy servers
LEGACY_ASSOCIATED_DATA = bytes(
    [
        81, 74, 18, 10, 2, 83, 160, 248, 17, 3, 100, 194, 83, 7, 93, 20,
        26, 236, 255, 3, 63, 87, 5, 1, 91, 73, 188, 96, 194, 78, 60, 103,
        35, 2, 34, 165, 8, 241, 98, 10, 92, 110, 39, 42, 40, 72, 42, 43,
        34, 90, 98, 76, 5, 4, 34, 56, 103, 84, 6, 188, 26, 77, 35, 56,
        35, 48, 8, 7, 100, 38, 46, 73, 61, 50, 217, 64, 65, 32, 25, 11,
    ]
)  # fmt: skip
