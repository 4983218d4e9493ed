"""
Store Configuration — Validated settings and key material loading.

Reads settings from environment variables:
    SECURESTORE_APP_NAME = <application identity>        (default: securestore)
    SECURESTORE_ROOT = <application data root>           (default: ~/.<app_name>)
    SECURESTORE_CIPHER_BACKEND = aesgcm | chacha20       (default: aesgcm)
    SECURESTORE_KEY = <base64-encoded 32-byte key>

Security Note:
    Never log key material. Only log key fingerprints.
"""
import os
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .keys import DEFAULT_KEY_ENV, KeyMaterial
from .locator import StorageLocator, validate_app_name

logger = logging.getLogger("securestore.vault")


def generate_master_key() -> str:
    """Generate a random 32-byte key and return it as a base64 string.

    This is a utility for operators to provision ``SECURESTORE_KEY``.
    """
    return KeyMaterial.generate().to_base64()


class StoreConfig(BaseModel):
    """Validated store configuration."""

    app_name: str = Field(default="securestore")
    data_root: Optional[Path] = None
    cipher_backend: str = Field(default="aesgcm")
    key_env: str = Field(default=DEFAULT_KEY_ENV, min_length=1)

    @field_validator("app_name")
    @classmethod
    def validate_app(cls, v: str) -> str:
        """Validate app_name is a single safe path component."""
        return validate_app_name(v)

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        if v not in ("aesgcm", "chacha20"):
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """Create StoreConfig by loading values from environment.

        Returns:
            Populated StoreConfig instance.
        """
        values = {}
        app_name = os.environ.get("SECURESTORE_APP_NAME")
        if app_name:
            values["app_name"] = app_name
        root = os.environ.get("SECURESTORE_ROOT")
        if root:
            values["data_root"] = Path(root).expanduser()
        cipher_backend = os.environ.get("SECURESTORE_CIPHER_BACKEND")
        if cipher_backend:
            values["cipher_backend"] = cipher_backend
        return cls(**values)

    def load_key(self) -> KeyMaterial:
        """Load key material from the ``key_env`` environment variable."""
        return KeyMaterial.from_env(self.key_env)

    def locator(self) -> StorageLocator:
        """Build the StorageLocator described by this configuration."""
        return StorageLocator(self.app_name, self.data_root)
