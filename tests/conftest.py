import pytest

from securestore.vault import KeyMaterial, StorageLocator, SecureValueStore


@pytest.fixture
def key():
    """Fresh random key material."""
    return KeyMaterial.generate()


@pytest.fixture
def locator(tmp_path):
    """Locator rooted in an isolated temporary directory."""
    return StorageLocator("testapp", tmp_path / "appdata")


@pytest.fixture
def store(key, locator):
    """Store backed by an isolated temporary directory."""
    return SecureValueStore(key, locator)
