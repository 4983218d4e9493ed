"""SecureStore.

Encrypted at-rest storage of small secrets (tokens, credentials).
"""
from .version import (
    __title__, __description__, __version__, __author__, __author_email__
)
from .exceptions import (
    SecureStoreError,
    InvalidKeyLength,
    KeyMaterialError,
    InvalidKeyError,
    DirectoryCreationError,
    CipherInitError,
    StorageIOError,
    DecryptionError,
    AuthenticationError,
    FormatError,
)
from .vault import (
    KeyMaterial,
    CryptoEngine,
    StorageLocator,
    SecureValueStore,
    StoreConfig,
    rotate_key,
)

__all__ = [
    "SecureStoreError",
    "InvalidKeyLength",
    "KeyMaterialError",
    "InvalidKeyError",
    "DirectoryCreationError",
    "CipherInitError",
    "StorageIOError",
    "DecryptionError",
    "AuthenticationError",
    "FormatError",
    "KeyMaterial",
    "CryptoEngine",
    "StorageLocator",
    "SecureValueStore",
    "StoreConfig",
    "rotate_key",
]
