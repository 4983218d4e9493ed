"""
Storage Locator — Resolves and provisions the owner-only secrets directory.

Layout:
    <app-data-root>/secure/<name>.enc

``app-data-root`` defaults to ``~/.<app_name>``.
"""
import re
import logging
from pathlib import Path
from typing import Optional, Union

from ..exceptions import DirectoryCreationError
from .permissions import PermissionPolicy, default_policy

logger = logging.getLogger("securestore.vault")

SECURE_DIR_NAME = "secure"

_APP_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")


def validate_app_name(app_name: str) -> str:
    """Ensure ``app_name`` is a single, safe path component.

    Raises:
        ValueError: If app_name is empty or contains separators/traversal.
    """
    if not app_name or not _APP_NAME_PATTERN.match(app_name) or ".." in app_name:
        raise ValueError(f"Invalid application name: {app_name!r}")
    return app_name


class StorageLocator:
    """Resolves the secrets directory and keeps it owner-only.

    Args:
        app_name: Application identity, used to namespace the default root.
        root: Application data root; defaults to ``~/.<app_name>``.
        permissions: Permission policy; defaults to the platform policy.
    """

    def __init__(
        self,
        app_name: str = "securestore",
        root: Optional[Union[str, Path]] = None,
        *,
        permissions: Optional[PermissionPolicy] = None,
    ):
        self.app_name = validate_app_name(app_name)
        if root is None:
            try:
                root = Path.home() / f".{app_name}"
            except (RuntimeError, KeyError) as err:
                raise DirectoryCreationError(
                    f"Cannot resolve the home directory: {err}"
                ) from err
        self.root = Path(root).expanduser()
        self._permissions = permissions
        self._ready = False

    def __repr__(self) -> str:
        return f"<StorageLocator directory={self.directory}>"

    @property
    def directory(self) -> Path:
        return self.root / SECURE_DIR_NAME

    @property
    def permissions(self) -> PermissionPolicy:
        """Permission policy, resolved lazily for the running platform."""
        if self._permissions is None:
            try:
                self._permissions = default_policy()
            except OSError as err:
                raise DirectoryCreationError(
                    f"No permission policy available: {err}"
                ) from err
        return self._permissions

    def ensure(self) -> Path:
        """Create the secrets directory (if needed) and enforce owner-only access.

        Idempotent: an existing, already private directory is a no-op success.

        Returns:
            Path of the secrets directory.

        Raises:
            DirectoryCreationError: If the directory cannot be created or its
                permissions cannot be enforced.
        """
        directory = self.directory
        policy = self.permissions
        try:
            directory.mkdir(mode=0o700, parents=True, exist_ok=True)
            if not directory.is_dir():
                raise NotADirectoryError(f"{directory} is not a directory")
            policy.secure_directory(directory)
            private = policy.is_private(directory)
        except OSError as err:
            raise DirectoryCreationError(
                f"Cannot provision secrets directory {directory}: {err}"
            ) from err
        if not private:
            raise DirectoryCreationError(
                f"Secrets directory {directory} is accessible to other users"
            )
        if not self._ready:
            logger.info("Secrets directory ready: %s (%s)", directory, policy.name)
            self._ready = True
        return directory

    def path_for(self, filename: str) -> Path:
        """Join a pre-validated file name onto the secrets directory."""
        return self.directory / filename
