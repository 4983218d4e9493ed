"""
SecureValueStore — Encrypted key-value storage on the local filesystem.

Provides the public API of the store:
- ``set(key, value)`` — encrypt and atomically persist a secret
- ``get(key, default)`` — decrypt and return a secret (default if absent)
- ``delete(key)`` — remove a secret; absent keys are not an error
- ``keys()`` / ``exists(key)`` — enumerate and check stored secrets

No internal locking: concurrent writers to the same key are last-writer-wins,
while readers always see a complete record.

Security Note:
    Never log plaintext or ciphertext values. Only log key names and
    operations.
"""
import os
import re
import logging
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from ..exceptions import DecryptionError, InvalidKeyError, StorageIOError
from .crypto import CryptoEngine, serialize_value, deserialize_value
from .keys import KeyMaterial
from .locator import StorageLocator

logger = logging.getLogger("securestore.vault")

RECORD_SUFFIX = ".enc"
_TEMP_SUFFIX = ".tmp"
_MAX_KEY_LENGTH = 200
_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._@+-]*$")


class SecureValueStore:
    """Encrypted secrets, one ``<key>.enc`` file per secret.

    Args:
        key_material: Key used for every record of this store.
        locator: Resolves the secrets directory.
        engine: AEAD engine; AES-256-GCM when omitted.
    """

    def __init__(
        self,
        key_material: KeyMaterial,
        locator: Optional[StorageLocator] = None,
        *,
        engine: Optional[CryptoEngine] = None,
    ):
        if not isinstance(key_material, KeyMaterial):
            raise TypeError(
                f"key_material must be KeyMaterial, got {type(key_material).__name__}"
            )
        self._key = key_material
        self._previous: tuple = ()
        self._locator = locator or StorageLocator()
        self._engine = engine or CryptoEngine()
        self._directory = self._locator.ensure()

    @classmethod
    def from_config(cls, config, key_material: Optional[KeyMaterial] = None) -> "SecureValueStore":
        """Build a store from a ``StoreConfig``.

        Key material is loaded from ``config.key_env`` when not given.
        """
        if key_material is None:
            key_material = config.load_key()
        return cls(
            key_material,
            config.locator(),
            engine=CryptoEngine(config.cipher_backend),
        )

    def __repr__(self) -> str:
        return (
            f"<SecureValueStore directory={self._directory} "
            f"key={self._key.fingerprint}>"
        )

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def key_material(self) -> KeyMaterial:
        return self._key

    @property
    def engine(self) -> CryptoEngine:
        return self._engine

    # ------------------------------------------------------------------
    # Key validation
    # ------------------------------------------------------------------

    def _validate_key(self, key: str) -> str:
        """Validate a secret name and return its record file name.

        Raises:
            InvalidKeyError: If key is empty, too long, or not a safe
                file name (separators, traversal, leading dot, NUL...).
        """
        if not isinstance(key, str) or not key:
            raise InvalidKeyError("Secret key cannot be empty")
        if len(key) > _MAX_KEY_LENGTH:
            raise InvalidKeyError(
                f"Secret key cannot exceed {_MAX_KEY_LENGTH} characters"
            )
        if not _KEY_PATTERN.match(key):
            raise InvalidKeyError(f"Secret key is not a safe name: {key!r}")
        return key + RECORD_SUFFIX

    def path_for(self, key: str) -> Path:
        """Return the record path of ``key``."""
        return self._locator.path_for(self._validate_key(key))

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    def _read(self, path: Path) -> Optional[bytes]:
        """Read a record. Returns None if the file does not exist."""
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as err:
            raise StorageIOError(f"Cannot read {path.name}: {err}") from err

    def _decrypt(self, record: bytes) -> bytes:
        """Decrypt with the active key, then with any retired key."""
        try:
            return self._engine.decrypt(record, self._key)
        except DecryptionError:
            for key_material in self._previous:
                try:
                    return self._engine.decrypt(record, key_material)
                except DecryptionError:
                    continue
            raise

    def _write(self, path: Path, record: str) -> None:
        """Atomically replace ``path`` with ``record``.

        The record is written to an owner-only temporary file in the same
        directory, flushed to disk, then renamed over the target.
        """
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{path.stem}.", suffix=_TEMP_SUFFIX, dir=self._directory,
            )
            with os.fdopen(fd, "w", encoding="ascii", newline="") as fp:
                fp.write(record)
                fp.flush()
                os.fsync(fp.fileno())
            self._locator.permissions.secure_file(Path(tmp_path))
            os.replace(tmp_path, path)
            tmp_path = None
        except OSError as err:
            raise StorageIOError(f"Cannot write {path.name}: {err}") from err
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except FileNotFoundError:
                    pass
                except OSError as err:
                    logger.warning("Cannot remove temporary file %s: %s", tmp_path, err)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set(self, key: str, value: Union[str, bytes]) -> None:
        """Encrypt and persist a secret, replacing any previous value.

        Args:
            key: Secret name.
            value: Secret value (str or bytes, empty allowed).

        Raises:
            InvalidKeyError: If key is not a safe name.
            TypeError: If value is neither str nor bytes.
            StorageIOError: If the record cannot be written.
        """
        path = self.path_for(key)
        plaintext_bytes = serialize_value(value)
        record = self._engine.encrypt(plaintext_bytes, self._key)
        self._write(path, record)
        logger.debug("Store set: key=%s", key)

    def get(self, key: str, default: Any = None) -> Any:
        """Decrypt and return a secret.

        An absent secret returns ``default``; a stored empty string returns
        ``""``, so the two are never conflated.

        Args:
            key: Secret name.
            default: Value returned if key not found.

        Returns:
            Decrypted value (same type as stored), or default if not found.

        Raises:
            InvalidKeyError: If key is not a safe name.
            AuthenticationError: If the record was tampered with, is corrupt,
                or was written under different key material.
            FormatError: If the record is malformed.
            StorageIOError: If the record cannot be read.
        """
        path = self.path_for(key)
        record = self._read(path)
        if record is None:
            return default
        return deserialize_value(self._decrypt(record))

    def delete(self, key: str) -> bool:
        """Remove a secret. Deleting an absent secret is not an error.

        Args:
            key: Secret name to delete.

        Returns:
            True if a record was removed, False if none existed.

        Raises:
            InvalidKeyError: If key is not a safe name.
            StorageIOError: If the record exists but cannot be removed.
        """
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as err:
            raise StorageIOError(f"Cannot delete {path.name}: {err}") from err
        logger.debug("Store delete: key=%s", key)
        return True

    def exists(self, key: str) -> bool:
        """Check if a secret is stored under ``key``."""
        return self.path_for(key).is_file()

    def keys(self) -> list[str]:
        """List stored secret names, sorted.

        Temporary files of in-flight writes are never listed.
        """
        try:
            entries = list(self._directory.iterdir())
        except OSError as err:
            raise StorageIOError(f"Cannot list {self._directory}: {err}") from err
        names = []
        for entry in entries:
            if entry.suffix != RECORD_SUFFIX or not entry.is_file():
                continue
            name = entry.name[:-len(RECORD_SUFFIX)]
            if _KEY_PATTERN.match(name) and len(name) <= _MAX_KEY_LENGTH:
                names.append(name)
        return sorted(names)

    def __contains__(self, key: str) -> bool:
        return self.exists(key)

    # ------------------------------------------------------------------
    # Rotation support
    # ------------------------------------------------------------------

    @property
    def previous_keys(self) -> tuple:
        """Retired key material still accepted when reading records."""
        return self._previous

    def use_key(self, key_material: KeyMaterial, *, previous=()) -> None:
        """Switch the key used for new records.

        Args:
            key_material: Key used by every subsequent ``set``.
            previous: Retired keys still accepted by ``get`` for records
                that were not re-encrypted yet.
        """
        if not isinstance(key_material, KeyMaterial):
            raise TypeError(
                f"key_material must be KeyMaterial, got {type(key_material).__name__}"
            )
        self._key = key_material
        self._previous = tuple(k for k in previous if k != key_material)

    def read_record(self, key: str) -> Optional[bytes]:
        """Return the raw encoded record of ``key``, None if absent."""
        return self._read(self.path_for(key))

    def write_record(self, key: str, record: str) -> None:
        """Atomically replace the encoded record of ``key``."""
        self._write(self.path_for(key), record)
