"""
Tests for the CryptoEngine and value serialization.

Tests cover:
- Round trip of arbitrary byte strings
- Record layout and nonce uniqueness
- Tamper, truncation and wrong-key detection
- Cipher backend selection
- str/bytes value serialization
"""
import base64
import pytest

from securestore.exceptions import (
    AuthenticationError,
    CipherInitError,
    DecryptionError,
    FormatError,
)
from securestore.vault.crypto import (
    CryptoEngine,
    NONCE_SIZE,
    RECORD_VERSION,
    TAG_SIZE,
    VERSION_SIZE,
    serialize_value,
    deserialize_value,
)
from securestore.vault.keys import KeyMaterial


@pytest.fixture(params=["aesgcm", "chacha20"])
def engine(request):
    return CryptoEngine(request.param)


def _flip(record: str, index: int) -> str:
    raw = bytearray(record.encode("ascii"))
    raw[index] ^= 0x01
    return raw.decode("latin-1")


class TestRoundTrip:
    """decrypt(encrypt(x, k), k) == x."""

    @pytest.mark.parametrize("plaintext", [
        b"",
        b"hunter2",
        bytes(range(256)),
        b"\x00" * 64,
        b"x" * (1024 * 1024),
    ])
    def test_round_trip(self, engine, key, plaintext):
        record = engine.encrypt(plaintext, key)
        assert engine.decrypt(record, key) == plaintext

    def test_accepts_bytes_record(self, engine, key):
        record = engine.encrypt(b"token", key)
        assert engine.decrypt(record.encode("ascii"), key) == b"token"


class TestRecordLayout:
    """version || nonce || ciphertext || tag, base64 encoded."""

    def test_layout(self, engine, key):
        record = engine.encrypt(b"abc", key)
        raw = base64.b64decode(record)
        assert raw[0] == RECORD_VERSION
        assert len(raw) == VERSION_SIZE + NONCE_SIZE + 3 + TAG_SIZE

    def test_ciphertext_hides_plaintext(self, engine, key):
        record = engine.encrypt(b"super-secret-token", key)
        assert b"super-secret-token" not in base64.b64decode(record)

    def test_nonce_uniqueness(self, key):
        engine = CryptoEngine()
        nonces = set()
        for _ in range(10_000):
            raw = base64.b64decode(engine.encrypt(b"same plaintext", key))
            nonces.add(raw[VERSION_SIZE:VERSION_SIZE + NONCE_SIZE])
        assert len(nonces) == 10_000


class TestTamperDetection:
    """Any modification of a record is rejected."""

    def test_every_single_byte_flip(self, key):
        engine = CryptoEngine()
        record = engine.encrypt(b"credential", key)
        for index in range(len(record)):
            with pytest.raises(AuthenticationError):
                engine.decrypt(_flip(record, index), key)

    def test_wrong_key(self, engine, key):
        record = engine.encrypt(b"credential", key)
        with pytest.raises(AuthenticationError) as wrong_key:
            engine.decrypt(record, KeyMaterial.generate())
        raw = bytearray(base64.b64decode(record))
        raw[-1] ^= 0xFF
        tampered = base64.b64encode(bytes(raw)).decode("ascii")
        with pytest.raises(AuthenticationError) as tampered_tag:
            engine.decrypt(tampered, key)
        # no oracle: same type, same message
        assert type(wrong_key.value) is type(tampered_tag.value)
        assert str(wrong_key.value) == str(tampered_tag.value)

    def test_truncated_record(self, key):
        engine = CryptoEngine()
        short = base64.b64encode(bytes([RECORD_VERSION]) + b"\x00" * 4).decode("ascii")
        with pytest.raises(FormatError):
            engine.decrypt(short, key)

    def test_empty_record(self, key):
        with pytest.raises(FormatError):
            CryptoEngine().decrypt("", key)

    def test_nonce_only_record_fails_authentication(self, key):
        engine = CryptoEngine()
        raw = bytes([RECORD_VERSION]) + b"\x00" * NONCE_SIZE
        with pytest.raises(AuthenticationError):
            engine.decrypt(base64.b64encode(raw).decode("ascii"), key)

    def test_unknown_version(self, key):
        engine = CryptoEngine()
        raw = bytearray(base64.b64decode(engine.encrypt(b"v", key)))
        raw[0] = 99
        with pytest.raises(FormatError):
            engine.decrypt(base64.b64encode(bytes(raw)).decode("ascii"), key)

    def test_invalid_base64(self, key):
        with pytest.raises(FormatError):
            CryptoEngine().decrypt("@@@not-base64@@@", key)

    def test_trailing_newline_rejected(self, key):
        engine = CryptoEngine()
        record = engine.encrypt(b"v", key)
        with pytest.raises(FormatError):
            engine.decrypt(record + "\n", key)

    def test_errors_are_decryption_errors(self):
        assert issubclass(FormatError, AuthenticationError)
        assert issubclass(AuthenticationError, DecryptionError)

    def test_cross_backend_fails(self, key):
        record = CryptoEngine("aesgcm").encrypt(b"v", key)
        with pytest.raises(AuthenticationError):
            CryptoEngine("chacha20").decrypt(record, key)


class TestCipherInit:
    """Engine construction and key checks."""

    def test_unknown_backend(self):
        with pytest.raises(CipherInitError):
            CryptoEngine("des")

    def test_backend_is_case_insensitive(self):
        assert CryptoEngine("AESGCM").cipher_backend == "aesgcm"

    def test_raw_bytes_key_rejected(self):
        with pytest.raises(CipherInitError):
            CryptoEngine().encrypt(b"v", b"k" * 32)


class TestValueSerialization:
    """str and bytes values keep their type."""

    @pytest.mark.parametrize("value", ["", "token", "ñandú 🔑", b"", b"\x00\xffbinary"])
    def test_round_trip(self, value):
        restored = deserialize_value(serialize_value(value))
        assert restored == value
        assert type(restored) is type(value)

    @pytest.mark.parametrize("value", [None, 42, {"a": 1}, ["x"]])
    def test_rejects_other_types(self, value):
        with pytest.raises(TypeError):
            serialize_value(value)

    def test_rejects_non_value_payload(self):
        with pytest.raises(FormatError):
            deserialize_value(b"not json")
        with pytest.raises(FormatError):
            deserialize_value(b"42")
