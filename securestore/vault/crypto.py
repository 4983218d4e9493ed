"""
Vault Crypto Core — Authenticated encryption, record encoding and serialization.

Record format (base64 text, standard alphabet, padded):
    [version 1B][nonce 12B][encrypted_payload + tag 16B]

Security Note:
    Never log plaintext or ciphertext values.
    Nonces are random 96-bit; collision probability negligible under normal usage.
    Tampering, corruption and a wrong key all raise the same AuthenticationError.
"""
import os
import base64
import binascii
import logging
from typing import Any, Union

import orjson
from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from ..exceptions import AuthenticationError, CipherInitError, FormatError
from .keys import KeyMaterial

logger = logging.getLogger("securestore.vault")

RECORD_VERSION = 1
VERSION_SIZE = 1
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16

_CIPHERS = {
    "aesgcm": AESGCM,
    "chacha20": ChaCha20Poly1305,
}

_BYTES_WRAPPER_KEY = "__vault_bytes_b64__"

# Single message for every tag failure: no oracle between tamper and wrong key.
_AUTH_FAILED = "Record authentication failed"


class CryptoEngine:
    """AEAD encryption of byte payloads under a KeyMaterial.

    Args:
        cipher_backend: ``"aesgcm"`` (AES-256-GCM) or ``"chacha20"``
            (ChaCha20-Poly1305). Both use a 12-byte nonce and 16-byte tag.

    Raises:
        CipherInitError: If the backend is not supported.
    """

    def __init__(self, cipher_backend: str = "aesgcm"):
        backend = cipher_backend.lower()
        if backend not in _CIPHERS:
            raise CipherInitError(f"Unsupported cipher backend: {cipher_backend}")
        self.cipher_backend = backend
        self._cipher_cls = _CIPHERS[backend]

    def __repr__(self) -> str:
        return f"<CryptoEngine backend={self.cipher_backend}>"

    def _cipher(self, key: KeyMaterial):
        if not isinstance(key, KeyMaterial):
            raise CipherInitError(
                f"Expected KeyMaterial, got {type(key).__name__}"
            )
        try:
            return self._cipher_cls(bytes(key))
        except (ValueError, TypeError, UnsupportedAlgorithm) as err:
            raise CipherInitError(
                f"Cannot initialize {self.cipher_backend} cipher: {err}"
            ) from err

    def encrypt(self, plaintext: bytes, key: KeyMaterial) -> str:
        """Encrypt plaintext into an encoded record.

        Args:
            plaintext: Data to encrypt, any byte string (empty included).
            key: Key material.

        Returns:
            base64 text of ``version || nonce || ciphertext || tag``.
        """
        cipher = self._cipher(key)
        nonce = os.urandom(NONCE_SIZE)
        ct = cipher.encrypt(nonce, bytes(plaintext), None)
        raw = bytes([RECORD_VERSION]) + nonce + ct
        return base64.b64encode(raw).decode("ascii")

    def decrypt(self, record: Union[str, bytes], key: KeyMaterial) -> bytes:
        """Decrypt an encoded record.

        Args:
            record: base64 record as produced by ``encrypt``.
            key: Key material.

        Returns:
            Decrypted plaintext bytes.

        Raises:
            FormatError: If the record is not canonical base64, is shorter
                than version + nonce, or carries an unknown version.
            AuthenticationError: If the tag does not verify.
        """
        cipher = self._cipher(key)
        raw = decode_record(record)
        _min = VERSION_SIZE + NONCE_SIZE
        if len(raw) < _min:
            raise FormatError(
                f"Record too short: {len(raw)} bytes (minimum {_min})"
            )
        if raw[0] != RECORD_VERSION:
            raise FormatError(f"Unsupported record version: {raw[0]}")
        nonce = raw[VERSION_SIZE:_min]
        ct = raw[_min:]
        try:
            return cipher.decrypt(nonce, ct, None)
        except InvalidTag as err:
            raise AuthenticationError(_AUTH_FAILED) from err


def decode_record(record: Union[str, bytes]) -> bytes:
    """Decode a base64 record, rejecting any non-canonical encoding.

    Re-encoding and comparing catches edits to padding or to trailing bits
    that a lenient decoder would silently ignore.
    """
    if isinstance(record, str):
        try:
            record = record.encode("ascii")
        except UnicodeEncodeError as err:
            raise FormatError("Record is not ASCII base64") from err
    try:
        raw = base64.b64decode(record, validate=True)
    except (binascii.Error, ValueError) as err:
        raise FormatError("Record is not valid base64") from err
    if base64.b64encode(raw) != record:
        raise FormatError("Record is not canonical base64")
    return raw


# ---------------------------------------------------------------------------
# Value serialization
# ---------------------------------------------------------------------------

def serialize_value(value: Union[str, bytes]) -> bytes:
    """Serialize a secret value to bytes for encryption.

    Supports str and bytes. bytes values are wrapped as
    {"__vault_bytes_b64__": "<base64>"} for a safe JSON round-trip.

    Raises:
        TypeError: If value is neither str nor bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        wrapped = {_BYTES_WRAPPER_KEY: base64.b64encode(bytes(value)).decode("ascii")}
        return orjson.dumps(wrapped)
    if isinstance(value, str):
        return orjson.dumps(value)
    raise TypeError(
        f"Secret values must be str or bytes, got {type(value).__name__}"
    )


def deserialize_value(data: bytes) -> Any:
    """Deserialize bytes produced by ``serialize_value``.

    Raises:
        FormatError: If the decrypted payload is not a serialized value.
    """
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise FormatError("Decrypted payload is not a serialized value") from err
    if isinstance(parsed, dict) and _BYTES_WRAPPER_KEY in parsed and len(parsed) == 1:
        return base64.b64decode(parsed[_BYTES_WRAPPER_KEY])
    if not isinstance(parsed, str):
        raise FormatError("Decrypted payload is not a serialized value")
    return parsed
