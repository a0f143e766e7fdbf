"""Exceptions for mtpmirror."""

from __future__ import annotations


class MirrorError(Exception):
    """Base class for mirror errors."""


class DeviceError(MirrorError):
    """Raised when a source cannot be opened as a device."""


class DownloadError(MirrorError):
    """A single file could not be fetched from the device.

    Absorbed by the traversal and charged to the
    :class:`~mtpmirror.budget.FailureBudget`.
    """

    def __init__(self, name: str, reason: str):
        super().__init__(f"couldn't write {name}: {reason}")
        self.name = name
        self.reason = reason


class MirrorAbort(MirrorError):
    """Run-ending condition.  Nothing below the CLI catches this."""


class LocalFilesystemError(MirrorAbort):
    """The local mirror destination is unusable (mkdir or stat failed)."""

    def __init__(self, path, error: OSError):
        super().__init__(f"{error.strerror or error} ({path})")
        self.path = path
        self.error = error


class FailureBudgetExceeded(MirrorAbort):
    """Raised once the cumulative copy-failure count exceeds the limit."""

    def __init__(self, count: int, limit: int):
        super().__init__(f"too many failed copies ({count} > {limit})")
        self.count = count
        self.limit = limit


class PathStackError(RuntimeError):
    """Push/pop pairing was broken.  A bug, never a runtime condition."""
