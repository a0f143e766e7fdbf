"""Blob sizes for folder listings without reading blob contents.

Packed objects stored whole carry their size in the pack entry header;
loose objects carry it in the first few bytes of the zlib stream.  Only
deltified pack entries fall back to a full read through dulwich.
"""

from __future__ import annotations

import os
import zlib

_OBJ_COMMIT, _OBJ_TAG = 1, 4


class BlobSizer:
    """Size lookups against one dulwich ``DiskObjectStore``.

    Pack files are opened on first use and kept open until :meth:`close`.
    """

    def __init__(self, object_store):
        self._store = object_store
        self._files: dict[str, object] = {}

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def size(self, sha: bytes) -> int:
        """Return the size in bytes of object *sha* (40-char hex bytes).

        Raises ``KeyError`` if the object does not exist.
        """
        for pack in self._store.packs:
            try:
                offset = pack.index.object_offset(sha)
            except KeyError:
                continue
            type_num, size = self._pack_entry_header(pack.data._filename, offset)
            if _OBJ_COMMIT <= type_num <= _OBJ_TAG:
                return size
            return self._store[sha].raw_length()
        return self._loose_size(sha)

    def _pack_entry_header(self, filename: str, offset: int) -> tuple[int, int]:
        f = self._files.get(filename)
        if f is None:
            f = self._files[filename] = open(filename, "rb")
        f.seek(offset)
        byte = f.read(1)[0]
        type_num = (byte >> 4) & 0x07
        size = byte & 0x0F
        shift = 4
        while byte & 0x80:
            byte = f.read(1)[0]
            size |= (byte & 0x7F) << shift
            shift += 7
        return type_num, size

    def _loose_size(self, sha: bytes) -> int:
        hexsha = sha.decode("ascii")
        path = os.path.join(self._store.path, hexsha[:2], hexsha[2:])
        try:
            with open(path, "rb") as f:
                head = zlib.decompressobj().decompress(f.read(64), 64)
        except FileNotFoundError:
            # Alternates and other backends
            return self._store[sha].raw_length()
        # "blob <size>\0"
        kind_and_size = head.split(b"\x00", 1)[0]
        return int(kind_and_size.split(b" ", 1)[1])

    def close(self) -> None:
        for f in self._files.values():
            f.close()
        self._files.clear()
