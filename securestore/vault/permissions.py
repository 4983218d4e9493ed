"""
Permission policies — owner-only access to the storage directory and records.

Platform differences are modeled as a capability selected once, when the
locator is built, instead of branching inline on every write:
- ``PosixPermissions`` — mode 0700 on the directory, 0600 on record files
- ``WindowsPermissions`` — protected DACL granting only the current user

Use ``default_policy()`` to pick the variant for the running platform.
"""
import os
import stat
import logging
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger("securestore.vault")

DIRECTORY_MODE = 0o700
FILE_MODE = 0o600


class PermissionPolicy(ABC):
    """Enforces and verifies owner-only access on filesystem entries."""

    name: str = "abstract"

    @abstractmethod
    def secure_directory(self, path: Path) -> None:
        """Restrict ``path`` (a directory) to its owner.

        Raises:
            OSError: If the restriction cannot be applied.
        """

    @abstractmethod
    def secure_file(self, path: Path) -> None:
        """Restrict ``path`` (a regular file) to its owner.

        Raises:
            OSError: If the restriction cannot be applied.
        """

    @abstractmethod
    def is_private(self, path: Path) -> bool:
        """Return True if no principal other than the owner can access ``path``."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


class PosixPermissions(PermissionPolicy):
    """chmod-based policy for POSIX systems."""

    name = "posix"

    def __init__(self, directory_mode: int = DIRECTORY_MODE, file_mode: int = FILE_MODE):
        if directory_mode & 0o077 or file_mode & 0o077:
            raise ValueError("Permission modes must not grant group or other access")
        self.directory_mode = directory_mode
        self.file_mode = file_mode

    def secure_directory(self, path: Path) -> None:
        os.chmod(path, self.directory_mode)

    def secure_file(self, path: Path) -> None:
        os.chmod(path, self.file_mode)

    def is_private(self, path: Path) -> bool:
        st = os.stat(path)
        if hasattr(os, "getuid") and st.st_uid != os.getuid():
            return False
        return stat.S_IMODE(st.st_mode) & 0o077 == 0


class WindowsPermissions(PermissionPolicy):
    """DACL-based policy for Windows, built on pywin32."""

    name = "windows"

    def __init__(self):
        try:
            import win32api
            import win32con
            import win32security
        except ImportError as err:
            raise OSError(
                "pywin32 is required to enforce owner-only permissions on Windows"
            ) from err
        self._win32api = win32api
        self._win32con = win32con
        self._win32security = win32security

    def _current_user_sid(self):
        user_name = self._win32api.GetUserName()
        sid, _, _ = self._win32security.LookupAccountName(None, user_name)
        return sid

    def _apply(self, path: Path) -> None:
        win32security = self._win32security
        win32con = self._win32con
        sid = self._current_user_sid()
        dacl = win32security.ACL()
        dacl.AddAccessAllowedAceEx(
            win32security.ACL_REVISION,
            win32security.OBJECT_INHERIT_ACE | win32security.CONTAINER_INHERIT_ACE,
            win32con.GENERIC_ALL,
            sid,
        )
        try:
            win32security.SetNamedSecurityInfo(
                str(path),
                win32security.SE_FILE_OBJECT,
                win32security.DACL_SECURITY_INFORMATION
                | win32security.PROTECTED_DACL_SECURITY_INFORMATION,
                None,
                None,
                dacl,
                None,
            )
        except self._win32api.error as err:
            raise PermissionError(
                f"Cannot set owner-only DACL on {path}: {err}"
            ) from err

    def secure_directory(self, path: Path) -> None:
        self._apply(path)

    def secure_file(self, path: Path) -> None:
        self._apply(path)

    def is_private(self, path: Path) -> bool:
        win32security = self._win32security
        sd = win32security.GetNamedSecurityInfo(
            str(path),
            win32security.SE_FILE_OBJECT,
            win32security.DACL_SECURITY_INFORMATION,
        )
        dacl = sd.GetSecurityDescriptorDacl()
        if dacl is None:
            # A NULL DACL grants everyone full access.
            return False
        owner = self._current_user_sid()
        for index in range(dacl.GetAceCount()):
            ace = dacl.GetAce(index)
            if ace[-1] != owner:
                return False
        return True


def default_policy() -> PermissionPolicy:
    """Return the permission policy for the running platform."""
    if os.name == "nt":
        return WindowsPermissions()
    return PosixPermissions()
