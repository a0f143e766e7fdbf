"""Shared fixtures for mtpmirror tests."""

import pytest
from click.testing import CliRunner

from mtpmirror.exceptions import DownloadError
from mtpmirror.store import ROOT, SIZE_UNKNOWN, DeviceStorage, EntryKind, RemoteEntry


class FakeStore:
    """In-memory device built from a nested dict.

    Dict values are ``bytes`` (file), ``None`` (abstract file of unknown
    size) or another dict (folder).  Names in *fail* raise
    :class:`DownloadError` on download.  Every call is logged in
    :attr:`calls`.
    """

    def __init__(self, tree, *, fail=(), errors=None, name="fake", storages=None):
        self.friendly_name = name
        self.storages = [DeviceStorage(id=0x00010001, description="Internal")]
        self._trees = {0x00010001: tree}
        if storages is not None:
            self.storages = []
            self._trees = {}
            for i, (desc, sub) in enumerate(storages.items()):
                sid = 0x00010001 + i
                self.storages.append(DeviceStorage(id=sid, description=desc))
                self._trees[sid] = sub
        self.fail = set(fail)
        self._pending_errors = dict(errors or {})
        self._errors = []
        self._items = {}
        self._next_id = 1
        self.calls = []
        self.live = set()
        self.closed = False

    def list_entries(self, storage_id, parent_id):
        self.calls.append(("list", parent_id))
        node = self._trees[storage_id] if parent_id == ROOT else self._items[parent_id][1]
        key = "" if parent_id == ROOT else self._items[parent_id][0]
        if key in self._pending_errors:
            self._errors.append(self._pending_errors.pop(key))
        entries = []
        for name, value in node.items():
            item_id = self._next_id
            self._next_id += 1
            self._items[item_id] = (name, value)
            self.live.add(item_id)
            if isinstance(value, dict):
                kind, size = EntryKind.FOLDER, 0
            elif value is None:
                kind, size = EntryKind.FILE, SIZE_UNKNOWN
            else:
                kind, size = EntryKind.FILE, len(value)
            entries.append(RemoteEntry(item_id, name, size, kind, parent_id, storage_id))
        return entries

    def drain_errors(self):
        self.calls.append(("drain",))
        errors, self._errors = self._errors, []
        return errors

    def download_file(self, item_id, local_path):
        name, value = self._items[item_id]
        self.calls.append(("download", name))
        if name in self.fail:
            raise DownloadError(name, "device busy")
        with open(local_path, "wb") as f:
            f.write(value or b"")

    def release_entry(self, entry):
        self.calls.append(("release", entry.item_id))
        self.live.discard(entry.item_id)

    def close(self):
        self.closed = True

    @property
    def downloads(self):
        return [c[1] for c in self.calls if c[0] == "download"]


@pytest.fixture
def make_store():
    return FakeStore


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def device_dir(tmp_path):
    """A directory device.

    Tree:
        a.txt (5 bytes), b.txt (5 bytes),
        docs/guide.md, docs/sub/deep.txt, empty/
    """
    root = tmp_path / "phone"
    root.mkdir()
    (root / "a.txt").write_bytes(b"aaaaa")
    (root / "b.txt").write_bytes(b"bbbbb")
    docs = root / "docs"
    docs.mkdir()
    (docs / "guide.md").write_text("guide")
    sub = docs / "sub"
    sub.mkdir()
    (sub / "deep.txt").write_text("deep")
    (root / "empty").mkdir()
    return root


@pytest.fixture
def dest(tmp_path):
    """A not-yet-created mirror root."""
    return tmp_path / "mirror"
