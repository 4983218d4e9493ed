"""
SecureStore exceptions.

Every failure of the store is surfaced to the caller; nothing is retried
internally. ``AuthenticationError`` covers tampering, corruption and a wrong
key alike, and must be treated as "this secret is unusable".
"""


class SecureStoreError(Exception):
    """Base class for all SecureStore errors."""


class InvalidKeyLength(SecureStoreError, ValueError):
    """Key material is not exactly 32 bytes."""


class KeyMaterialError(SecureStoreError, RuntimeError):
    """Key material could not be obtained from its source."""


class InvalidKeyError(SecureStoreError, ValueError):
    """A secret name cannot be mapped to a safe file name."""


class DirectoryCreationError(SecureStoreError, OSError):
    """The storage directory cannot be created or made owner-only."""


class CipherInitError(SecureStoreError):
    """The AEAD cipher could not be initialized."""


class StorageIOError(SecureStoreError, OSError):
    """Filesystem failure other than "not found"."""


class DecryptionError(SecureStoreError):
    """A stored record could not be decrypted."""


class AuthenticationError(DecryptionError):
    """Authentication tag did not verify (tampered, corrupted or wrong key)."""


class FormatError(AuthenticationError):
    """Stored record is malformed (bad encoding, truncated, unknown version)."""
