"""
Tests for StoreConfig.
"""
from pathlib import Path

import pytest
from pydantic import ValidationError

from securestore.exceptions import KeyMaterialError
from securestore.vault import KeyMaterial, StoreConfig, generate_master_key


class TestStoreConfig:
    """Validated settings."""

    def test_defaults(self):
        config = StoreConfig()
        assert config.app_name == "securestore"
        assert config.data_root is None
        assert config.cipher_backend == "aesgcm"
        assert config.key_env == "SECURESTORE_KEY"

    def test_invalid_cipher(self):
        with pytest.raises(ValidationError):
            StoreConfig(cipher_backend="rc4")

    def test_cipher_normalized(self):
        assert StoreConfig(cipher_backend="ChaCha20").cipher_backend == "chacha20"

    @pytest.mark.parametrize("name", ["", "../etc", "a/b"])
    def test_invalid_app_name(self, name):
        with pytest.raises(ValidationError):
            StoreConfig(app_name=name)

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SECURESTORE_APP_NAME", "desktop-app")
        monkeypatch.setenv("SECURESTORE_ROOT", str(tmp_path))
        monkeypatch.setenv("SECURESTORE_CIPHER_BACKEND", "chacha20")
        config = StoreConfig.from_env()
        assert config.app_name == "desktop-app"
        assert config.data_root == Path(tmp_path)
        assert config.cipher_backend == "chacha20"
        assert config.locator().directory == Path(tmp_path) / "secure"

    def test_from_env_defaults(self, monkeypatch):
        for name in ("SECURESTORE_APP_NAME", "SECURESTORE_ROOT", "SECURESTORE_CIPHER_BACKEND"):
            monkeypatch.delenv(name, raising=False)
        assert StoreConfig.from_env() == StoreConfig()

    def test_load_key(self, monkeypatch):
        encoded = generate_master_key()
        monkeypatch.setenv("CUSTOM_KEY", encoded)
        config = StoreConfig(key_env="CUSTOM_KEY")
        assert config.load_key() == KeyMaterial.from_base64(encoded)

    def test_load_key_missing(self, monkeypatch):
        monkeypatch.delenv("SECURESTORE_KEY", raising=False)
        with pytest.raises(KeyMaterialError):
            StoreConfig().load_key()
