"""mtpmirror — mirror a device's folder/file tree onto local disk."""

from .budget import FailureBudget, DEFAULT_MAX_FAILURES
from .change import should_copy
from .exceptions import (
    MirrorError, DeviceError, DownloadError, MirrorAbort,
    LocalFilesystemError, FailureBudgetExceeded, PathStackError,
)
from .mirror import TreeMirror, MirrorReport, MirrorIssue, mirror_tree, mirror_devices, iter_entries
from .pathstack import PathStack
from .store import (
    SIZE_UNKNOWN, ROOT, EntryKind, RemoteEntry, DeviceStorage, RemoteStore,
    DirectoryStore, describe_entry, open_device,
)

__version__ = "0.1.0"

__all__ = [
    "FailureBudget", "DEFAULT_MAX_FAILURES", "should_copy",
    "MirrorError", "DeviceError", "DownloadError", "MirrorAbort",
    "LocalFilesystemError", "FailureBudgetExceeded", "PathStackError",
    "TreeMirror", "MirrorReport", "MirrorIssue", "mirror_tree", "mirror_devices", "iter_entries",
    "PathStack",
    "SIZE_UNKNOWN", "ROOT", "EntryKind", "RemoteEntry", "DeviceStorage", "RemoteStore",
    "DirectoryStore", "describe_entry", "open_device",
]
