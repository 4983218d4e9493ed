"""
Store Key Rotation — Re-encryption of every record under new key material.

Runs on demand; there is no rotation schedule. Each record is replaced
atomically, so an interrupted rotation leaves every file either at the old
or the new key. The operation is idempotent: records already readable under
the new key are skipped.

When some records cannot be rotated, the store keeps the old key as a
retired read key, so nothing that was readable before becomes unreadable.
Running the rotation again retries only those records.

Security Note:
    Plaintext exists in memory only during re-encryption of each record.
    Never log plaintext or ciphertext values.
"""
import logging
from typing import Optional

from ..exceptions import DecryptionError, StorageIOError
from .keys import KeyMaterial
from .store import SecureValueStore

logger = logging.getLogger("securestore.vault")


def rotate_key(
    store: SecureValueStore,
    new_key: KeyMaterial,
    *,
    old_key: Optional[KeyMaterial] = None,
) -> dict:
    """Re-encrypt all records of ``store`` from old_key to new_key.

    On return the store writes with ``new_key``. If any record could not be
    rotated, the old key(s) remain accepted for reading.

    Args:
        store: Store whose records are rotated.
        new_key: Target key material.
        old_key: Source key material; defaults to the store's current key
            plus any retired key it still reads with.

    Returns:
        Stats dict with keys: total, rotated, skipped, errors.
    """
    if old_key is not None:
        candidates = [old_key]
    else:
        candidates = [store.key_material, *store.previous_keys]
    old_keys = [k for k in candidates if k != new_key]
    engine = store.engine
    stats = {"total": 0, "rotated": 0, "skipped": 0, "errors": 0}

    logger.info(
        "Starting key rotation from %s to %s",
        ", ".join(k.fingerprint for k in old_keys) or "-", new_key.fingerprint,
    )

    for name in store.keys():
        stats["total"] += 1
        try:
            record = store.read_record(name)
        except StorageIOError as err:
            logger.error("Error rotating secret key=%s: %s", name, err)
            stats["errors"] += 1
            continue
        if record is None:
            # Deleted while rotating.
            stats["skipped"] += 1
            continue
        try:
            engine.decrypt(record, new_key)
        except DecryptionError:
            pass
        else:
            stats["skipped"] += 1
            continue
        plaintext = None
        for key_material in old_keys:
            try:
                plaintext = engine.decrypt(record, key_material)
                break
            except DecryptionError:
                continue
        if plaintext is None:
            logger.error("Error rotating secret key=%s: record unreadable", name)
            stats["errors"] += 1
            continue
        try:
            store.write_record(name, engine.encrypt(plaintext, new_key))
        except StorageIOError as err:
            logger.error("Error rotating secret key=%s: %s", name, err)
            stats["errors"] += 1
            continue
        stats["rotated"] += 1

    if stats["errors"]:
        store.use_key(new_key, previous=old_keys)
        logger.warning(
            "Key rotation incomplete, keeping %d retired key(s) for reading",
            len(old_keys),
        )
    else:
        store.use_key(new_key)
    logger.info("Key rotation complete: %s", stats)
    return stats
