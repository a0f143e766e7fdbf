"""Remote device abstraction and the directory-backed device.

A *device* exposes one or more storages, each holding a tree of folders
and files addressed by opaque item ids.  The mirror only talks to the
:class:`RemoteStore` protocol; concrete transports implement it.
"""

from __future__ import annotations

import os
import shutil
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

from .exceptions import DeviceError, DownloadError

#: Declared size of abstract entries whose size the device does not know.
SIZE_UNKNOWN = 0xFFFFFFFF

#: Parent id meaning "top level of the storage".
ROOT = 0xFFFFFFFF


class EntryKind(str, Enum):
    """Kind of remote entry: ``FOLDER`` or ``FILE``."""
    FOLDER = "folder"
    FILE = "file"

    def __str__(self) -> str:          # noqa: D105
        return self.value


@dataclass
class RemoteEntry:
    """One item listed by a device.

    Attributes:
        item_id: Opaque id, unique within the device.
        name: Entry name (a single path component for well-formed devices).
        size: Declared size in bytes, or :data:`SIZE_UNKNOWN`.
        kind: :class:`EntryKind` of the entry.
        parent_id: Id of the containing folder, :data:`ROOT` at top level.
        storage_id: Storage the entry lives on.
        filetype: Human-readable file type description.
    """
    item_id: int
    name: str
    size: int
    kind: EntryKind
    parent_id: int = ROOT
    storage_id: int = 0
    filetype: str = "Unknown"

    @property
    def is_folder(self) -> bool:
        return self.kind == EntryKind.FOLDER

    @property
    def size_known(self) -> bool:
        return self.size != SIZE_UNKNOWN


@dataclass
class DeviceStorage:
    """A storage area on a device."""
    id: int
    description: str | None = None


@runtime_checkable
class RemoteStore(Protocol):
    """What the mirror needs from a device transport.

    After every :meth:`list_entries` call the caller must call
    :meth:`drain_errors`, whatever the outcome.

    Stores that read from the local filesystem may also define
    ``contains_path(path) -> bool``; the mirror refuses destinations for
    which it returns True.
    """

    friendly_name: str | None
    storages: list[DeviceStorage]

    def list_entries(self, storage_id: int, parent_id: int) -> list[RemoteEntry]: ...

    def drain_errors(self) -> list[str]: ...

    def download_file(self, item_id: int, local_path: str | os.PathLike[str]) -> None: ...

    def release_entry(self, entry: RemoteEntry) -> None: ...

    def close(self) -> None: ...


def describe_entry(entry: RemoteEntry) -> str:
    """Render the multi-line file info block for *entry*."""
    lines = [f"File ID: {entry.item_id}"]
    if entry.name is not None:
        lines.append(f"   Filename: {entry.name}")
    if entry.size_known:
        lines.append(f"   File size {entry.size} (0x{entry.size:016X}) bytes")
    else:
        lines.append("   None. (abstract file, size = -1)")
    lines.append(f"   Parent ID: {entry.parent_id}")
    lines.append(f"   Storage ID: 0x{entry.storage_id:08X}")
    lines.append(f"   Filetype: {entry.filetype}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Shared bookkeeping
# ---------------------------------------------------------------------------

class _BaseStore:
    """Item-id table and error stack shared by the concrete stores."""

    friendly_name: str | None = None

    def __init__(self):
        self.storages: list[DeviceStorage] = []
        self._items: dict[int, object] = {}
        self._next_id = 1
        self._errors: list[str] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def _register(self, target) -> int:
        item_id = self._next_id
        self._next_id += 1
        self._items[item_id] = target
        return item_id

    def _lookup(self, item_id: int):
        try:
            return self._items[item_id]
        except KeyError:
            raise KeyError(f"Unknown or released item id: {item_id}") from None

    def _push_error(self, msg: str) -> None:
        self._errors.append(msg)

    def drain_errors(self) -> list[str]:
        errors, self._errors = self._errors, []
        return errors

    def release_entry(self, entry: RemoteEntry) -> None:
        self._items.pop(entry.item_id, None)

    def close(self) -> None:
        self._items.clear()


# ---------------------------------------------------------------------------
# Directory-backed device
# ---------------------------------------------------------------------------

class DirectoryStore(_BaseStore):
    """A local directory exposed as a single-storage device.

    Useful for mounted devices and card readers.  Entries are listed in
    name order; symlinks are followed, other special files are skipped.
    A folder already listed once in the current walk (a symlink cycle or
    a bind mount) is reported on the error stack and left out.
    """

    def __init__(self, root: str | os.PathLike[str], *, name: str | None = None):
        super().__init__()
        self.root = Path(root)
        if not self.root.is_dir():
            raise DeviceError(f"Not a directory: {self.root}")
        self.friendly_name = name if name is not None else self.root.resolve().name
        self.storages = [DeviceStorage(id=0x00010001, description=self.root.resolve().name)]
        # (st_dev, st_ino) of folders handed out since the last root listing
        self._seen_dirs: set[tuple[int, int]] = set()

    def contains_path(self, path: str | os.PathLike[str]) -> bool:
        """True if *path* is the device root or lies below it."""
        target = Path(path).resolve()
        root = self.root.resolve()
        return target == root or root in target.parents

    def _dir_for(self, storage_id: int, parent_id: int) -> Path:
        if storage_id != self.storages[0].id:
            raise KeyError(f"Unknown storage id: 0x{storage_id:08X}")
        if parent_id == ROOT:
            return self.root
        return self._lookup(parent_id)

    def list_entries(self, storage_id: int, parent_id: int) -> list[RemoteEntry]:
        directory = self._dir_for(storage_id, parent_id)
        try:
            if parent_id == ROOT:
                st = directory.stat()
                self._seen_dirs = {(st.st_dev, st.st_ino)}
            children = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            self._push_error(f"cannot list {directory}: {exc.strerror or exc}")
            return []
        entries = []
        for child in children:
            try:
                st = child.stat()
            except OSError as exc:
                self._push_error(f"cannot stat {child}: {exc.strerror or exc}")
                continue
            if stat.S_ISDIR(st.st_mode):
                key = (st.st_dev, st.st_ino)
                if key in self._seen_dirs:
                    self._push_error(f"skipping {child}: folder already visited (loop)")
                    continue
                self._seen_dirs.add(key)
                kind, size, filetype = EntryKind.FOLDER, 0, "Folder"
            elif stat.S_ISREG(st.st_mode):
                kind, size, filetype = EntryKind.FILE, st.st_size, _filetype_for(child.name)
            else:
                continue
            entries.append(RemoteEntry(
                item_id=self._register(child),
                name=child.name,
                size=size,
                kind=kind,
                parent_id=parent_id,
                storage_id=storage_id,
                filetype=filetype,
            ))
        return entries

    def download_file(self, item_id: int, local_path: str | os.PathLike[str]) -> None:
        src = self._lookup(item_id)
        try:
            shutil.copyfile(src, local_path)
        except OSError as exc:
            raise DownloadError(Path(local_path).name, exc.strerror or str(exc)) from exc


def _filetype_for(name: str) -> str:
    """Guess a file type description from the extension."""
    import mimetypes

    mime, _ = mimetypes.guess_type(name)
    if mime is None:
        return "Unknown"
    return mime


# ---------------------------------------------------------------------------
# Device discovery
# ---------------------------------------------------------------------------

def _is_bare_repo(path: Path) -> bool:
    return path.suffix == ".git" or ((path / "HEAD").is_file() and (path / "objects").is_dir())


def open_device(source: str | os.PathLike[str]) -> RemoteStore:
    """Open *source* as a device.

    Bare git repositories become a :class:`~mtpmirror.gittree.GitTreeStore`
    (one storage per branch); other directories a :class:`DirectoryStore`.
    Raises :class:`DeviceError` otherwise.
    """
    path = Path(source)
    if not path.exists():
        raise DeviceError(f"No such device: {source}")
    if not path.is_dir():
        raise DeviceError(f"Not a directory: {source}")
    if _is_bare_repo(path):
        from .gittree import GitTreeStore
        return GitTreeStore(path)
    return DirectoryStore(path)
