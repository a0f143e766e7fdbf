"""Tests for size-based change detection."""

import errno
import os

import pytest

from mtpmirror import change
from mtpmirror.change import should_copy
from mtpmirror.exceptions import LocalFilesystemError
from mtpmirror.store import SIZE_UNKNOWN


@pytest.fixture
def local_dir(tmp_path):
    (tmp_path / "song.mp3").write_bytes(b"x" * 100)
    return tmp_path


class TestShouldCopy:
    def test_same_size_skips(self, local_dir):
        assert should_copy(local_dir, "song.mp3", 100) is False

    def test_different_size_copies(self, local_dir):
        assert should_copy(local_dir, "song.mp3", 101) is True
        assert should_copy(local_dir, "song.mp3", 0) is True

    def test_missing_file_copies(self, local_dir):
        assert should_copy(local_dir, "other.mp3", 100) is True

    def test_missing_directory_copies(self, tmp_path):
        assert should_copy(tmp_path / "not-yet", "a.txt", 1) is True

    def test_unknown_size_always_copies(self, local_dir):
        assert should_copy(local_dir, "song.mp3", SIZE_UNKNOWN) is True
        assert should_copy(local_dir, "missing", SIZE_UNKNOWN) is True

    def test_accepts_string_directory(self, local_dir):
        assert should_copy(str(local_dir), "song.mp3", 100) is False

    def test_other_stat_error_is_fatal(self, local_dir, monkeypatch):
        def _denied(path, *args, **kwargs):
            raise PermissionError(errno.EACCES, "Permission denied", str(path))

        monkeypatch.setattr(change.os, "stat", _denied)
        with pytest.raises(LocalFilesystemError) as info:
            should_copy(local_dir, "song.mp3", 100)
        assert info.value.path == local_dir / "song.mp3"
        assert isinstance(info.value.error, PermissionError)
        assert "Permission denied" in str(info.value)

    def test_not_found_error_is_not_fatal(self, local_dir, monkeypatch):
        def _gone(path, *args, **kwargs):
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path))

        monkeypatch.setattr(change.os, "stat", _gone)
        assert should_copy(local_dir, "song.mp3", 100) is True
