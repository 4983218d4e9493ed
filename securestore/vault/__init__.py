"""Secure Store Vault — Encrypted at-rest key-value storage for small secrets.

Security Note (Threat Model):
    Records are unreadable and tamper-evident without the key material.
    Decrypted values exist in process memory while in use, and the key
    material lives in memory for the process lifetime. Protecting the key
    at rest (OS credential vault, HSM) is left to the caller that injects it.
"""

from .keys import KeyMaterial, generate_salt
from .crypto import CryptoEngine
from .permissions import PermissionPolicy, PosixPermissions, WindowsPermissions, default_policy
from .locator import StorageLocator
from .store import SecureValueStore
from .key_rotation import rotate_key
from .config import StoreConfig, generate_master_key

__all__ = [
    "KeyMaterial",
    "generate_salt",
    "CryptoEngine",
    "PermissionPolicy",
    "PosixPermissions",
    "WindowsPermissions",
    "default_policy",
    "StorageLocator",
    "SecureValueStore",
    "rotate_key",
    "StoreConfig",
    "generate_master_key",
]
