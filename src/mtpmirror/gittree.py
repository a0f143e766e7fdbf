"""Bare git repository exposed as a device.

Each branch is a storage; trees are folders and blobs are files.  Reads
go through dulwich, so no git binary is needed.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path

from dulwich.errors import NotGitRepository
from dulwich.objects import S_ISGITLINK
from dulwich.repo import Repo

from ._objsize import BlobSizer
from .exceptions import DeviceError, DownloadError
from .store import ROOT, DeviceStorage, EntryKind, RemoteEntry, _BaseStore, _filetype_for

_STORAGE_BASE = 0x00010001


class GitTreeStore(_BaseStore):
    """Read-only device view of a bare repository's branches."""

    def __init__(self, path: str | os.PathLike[str]):
        super().__init__()
        self.path = Path(path)
        try:
            self._repo = Repo(str(self.path))
        except NotGitRepository as exc:
            raise DeviceError(f"Not a git repository: {path}") from exc
        name = self.path.resolve().name
        self.friendly_name = name[:-4] if name.endswith(".git") else name
        self._sizer = BlobSizer(self._repo.object_store)
        self._roots: dict[int, bytes] = {}
        branches = self._repo.refs.as_dict(b"refs/heads")
        for i, branch in enumerate(sorted(branches)):
            storage_id = _STORAGE_BASE + i
            commit = self._repo[branches[branch]]
            self._roots[storage_id] = commit.tree
            self.storages.append(
                DeviceStorage(id=storage_id, description=branch.decode("utf-8", "replace"))
            )

    def _tree_for(self, storage_id: int, parent_id: int) -> bytes:
        if storage_id not in self._roots:
            raise KeyError(f"Unknown storage id: 0x{storage_id:08X}")
        if parent_id == ROOT:
            return self._roots[storage_id]
        kind, sha = self._lookup(parent_id)
        if kind != EntryKind.FOLDER:
            raise KeyError(f"Item {parent_id} is not a folder")
        return sha

    def list_entries(self, storage_id: int, parent_id: int) -> list[RemoteEntry]:
        tree_sha = self._tree_for(storage_id, parent_id)
        try:
            tree = self._repo[tree_sha]
        except KeyError:
            self._push_error(f"missing tree object {tree_sha.decode()}")
            return []
        entries = []
        for item in tree.items():
            name = item.path.decode("utf-8", "surrogateescape")
            if S_ISGITLINK(item.mode):
                self._push_error(f"skipping submodule {name}")
                continue
            if stat.S_ISDIR(item.mode):
                kind, size, filetype = EntryKind.FOLDER, 0, "Folder"
            else:
                try:
                    size = self._sizer.size(item.sha)
                except KeyError:
                    self._push_error(f"missing blob for {name}")
                    continue
                kind, filetype = EntryKind.FILE, _filetype_for(name)
            entries.append(RemoteEntry(
                item_id=self._register((kind, item.sha)),
                name=name,
                size=size,
                kind=kind,
                parent_id=parent_id,
                storage_id=storage_id,
                filetype=filetype,
            ))
        return entries

    def download_file(self, item_id: int, local_path: str | os.PathLike[str]) -> None:
        _kind, sha = self._lookup(item_id)
        out = Path(local_path)
        try:
            blob = self._repo[sha]
        except KeyError as exc:
            raise DownloadError(out.name, f"missing blob {sha.decode()}") from exc
        try:
            with open(out, "wb") as f:
                for chunk in blob.as_raw_chunks():
                    f.write(chunk)
        except OSError as exc:
            raise DownloadError(out.name, exc.strerror or str(exc)) from exc

    def close(self) -> None:
        super().close()
        self._sizer.close()
        self._repo.close()
