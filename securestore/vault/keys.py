"""
Key Material — The 256-bit symmetric key used by every store operation.

Key material is never embedded in code. It is injected by the caller:
- ``KeyMaterial.from_env()`` — base64-encoded key from an environment variable
- ``KeyMaterial.derive()`` — HKDF-SHA256 over a high-entropy machine secret
- ``KeyMaterial.from_passphrase()`` — PBKDF2-HMAC-SHA256 over a user passphrase
- ``KeyMaterial.generate()`` — fresh random key (operators, tests)

Security Note:
    Never log key material. Use ``fingerprint`` when a key must be identified.
"""
import os
import hmac
import base64
import hashlib
import secrets
import binascii
import logging

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..exceptions import InvalidKeyLength, KeyMaterialError

logger = logging.getLogger("securestore.vault")

KEY_LENGTH = 32  # AES-256
SALT_SIZE = 16
PBKDF2_ITERATIONS = 600_000  # OWASP recommended minimum
DEFAULT_KEY_ENV = "SECURESTORE_KEY"
DEFAULT_CONTEXT = "securestore-v1"


def generate_salt() -> bytes:
    """Generate a random salt for passphrase derivation."""
    return os.urandom(SALT_SIZE)


class KeyMaterial:
    """Immutable 32-byte symmetric key.

    Args:
        key: Raw key bytes, exactly 32 bytes long.

    Raises:
        InvalidKeyLength: If ``key`` is not exactly 32 bytes.
    """

    __slots__ = ("_key",)

    def __init__(self, key: bytes):
        if not isinstance(key, (bytes, bytearray, memoryview)):
            raise InvalidKeyLength(
                f"Key material must be bytes, got {type(key).__name__}"
            )
        key = bytes(key)
        if len(key) != KEY_LENGTH:
            raise InvalidKeyLength(
                f"Key material must be exactly {KEY_LENGTH} bytes, "
                f"got {len(key)}"
            )
        object.__setattr__(self, "_key", key)

    def __setattr__(self, name, value):
        raise AttributeError("KeyMaterial is immutable")

    def __delattr__(self, name):
        raise AttributeError("KeyMaterial is immutable")

    def __bytes__(self) -> bytes:
        return self._key

    def __len__(self) -> int:
        return len(self._key)

    def __eq__(self, other) -> bool:
        if not isinstance(other, KeyMaterial):
            return NotImplemented
        return hmac.compare_digest(self._key, other._key)

    def __hash__(self) -> int:
        return hash(self.fingerprint)

    def __repr__(self) -> str:
        return f"<KeyMaterial fingerprint={self.fingerprint}>"

    @property
    def fingerprint(self) -> str:
        """Short, non-reversible identifier safe to log."""
        return hashlib.sha256(self._key).hexdigest()[:8]

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    @classmethod
    def generate(cls) -> "KeyMaterial":
        """Return a fresh random key."""
        return cls(secrets.token_bytes(KEY_LENGTH))

    @classmethod
    def from_base64(cls, value: str) -> "KeyMaterial":
        """Build key material from its base64 transport form.

        Raises:
            InvalidKeyLength: If ``value`` is not base64 or does not decode
                to exactly 32 bytes.
        """
        try:
            key = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as err:
            raise InvalidKeyLength(
                "Key material is not valid base64"
            ) from err
        return cls(key)

    def to_base64(self) -> str:
        """Return the base64 transport form of this key."""
        return base64.b64encode(self._key).decode("ascii")

    @classmethod
    def from_env(cls, name: str = DEFAULT_KEY_ENV) -> "KeyMaterial":
        """Load a base64-encoded key from the environment variable ``name``.

        Raises:
            KeyMaterialError: If the variable is not set.
            InvalidKeyLength: If it does not decode to exactly 32 bytes.
        """
        raw = os.environ.get(name)
        if not raw:
            raise KeyMaterialError(
                f"No key material found in environment. "
                f"Set {name}=<base64-encoded-32-byte-key>"
            )
        key = cls.from_base64(raw.strip())
        logger.debug("Loaded key material from %s (fingerprint=%s)", name, key.fingerprint)
        return key

    @classmethod
    def derive(
        cls,
        secret: bytes,
        salt: bytes | None = None,
        *,
        context: str = DEFAULT_CONTEXT,
    ) -> "KeyMaterial":
        """Derive a key from a high-entropy secret using HKDF-SHA256.

        Args:
            secret: Input key material (machine secret, vault-provided seed).
            salt: Optional salt.
            context: Context string for domain separation.
        """
        if not secret:
            raise KeyMaterialError("Cannot derive key material from an empty secret")
        hkdf = HKDF(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=salt,
            info=context.encode("utf-8"),
        )
        return cls(hkdf.derive(secret))

    @classmethod
    def from_passphrase(
        cls,
        passphrase: str,
        salt: bytes,
        iterations: int = PBKDF2_ITERATIONS,
    ) -> "KeyMaterial":
        """Derive a key from a user passphrase using PBKDF2-HMAC-SHA256."""
        if not passphrase:
            raise KeyMaterialError("Cannot derive key material from an empty passphrase")
        if len(salt) < SALT_SIZE:
            raise KeyMaterialError(
                f"Salt must be at least {SALT_SIZE} bytes, got {len(salt)}"
            )
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=salt,
            iterations=iterations,
        )
        return cls(kdf.derive(passphrase.encode("utf-8")))
