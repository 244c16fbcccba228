"""Exception hierarchy shared by the pipeline and the command line."""

from __future__ import annotations

from pathlib import Path


class XdrEdidError(RuntimeError):
    """Base class for every failure reported to the user."""


class PrivilegeError(XdrEdidError):
    """Raised (or returned) when the process lacks superuser privileges."""


class EdidNotFoundError(XdrEdidError):
    """Raised when no EDID source file could be located."""


class PatchError(XdrEdidError):
    """Raised when strict patching is requested and the anchor is missing."""


class ModelineError(XdrEdidError):
    """Raised when ``cvt`` produced no usable modeline."""


class StanzaValueError(XdrEdidError):
    """Raised when a value cannot be written into a quoted X11 config field."""


class FileAccessError(XdrEdidError):
    """A filesystem operation on ``path`` failed."""

    action = "access"

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Unable to {self.action} {path}: {reason}")
        self.path = path
        self.reason = reason

    @classmethod
    def from_os_error(cls, path: Path, err: OSError) -> "FileAccessError":
        return cls(path, err.strerror or str(err))


class EdidReadError(FileAccessError):
    action = "read EDID from"


class EdidWriteError(FileAccessError):
    action = "write custom EDID to"


class ConfigWriteError(FileAccessError):
    action = "update X11 configuration"


__all__ = [
    "ConfigWriteError",
    "EdidNotFoundError",
    "EdidReadError",
    "EdidWriteError",
    "FileAccessError",
    "ModelineError",
    "PatchError",
    "PrivilegeError",
    "StanzaValueError",
    "XdrEdidError",
]
