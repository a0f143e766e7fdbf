"""Tests for ExcludeFilter."""

from mtpmirror._exclude import ExcludeFilter
from mtpmirror.pathstack import PathStack
from mtpmirror.store import EntryKind, RemoteEntry


def _entry(name, kind=EntryKind.FILE):
    return RemoteEntry(1, name, 0, kind)


class TestMatches:
    def test_glob_anywhere(self):
        ef = ExcludeFilter(["*.tmp"])
        assert ef.matches("foo.tmp") is True
        assert ef.matches("DCIM/bar.tmp") is True
        assert ef.matches("foo.jpg") is False

    def test_folder_only_pattern(self):
        ef = ExcludeFilter([".thumbnails/"])
        assert ef.matches(".thumbnails", is_dir=True) is True
        assert ef.matches(".thumbnails", is_dir=False) is False

    def test_negation(self):
        ef = ExcludeFilter(["*.tmp", "!keep.tmp"])
        assert ef.matches("x.tmp") is True
        assert ef.matches("keep.tmp") is False

    def test_anchored(self):
        ef = ExcludeFilter(["/Android"])
        assert ef.matches("Android", is_dir=True) is True
        assert ef.matches("Music/Android", is_dir=True) is False

    def test_bytes_patterns_accepted(self):
        assert ExcludeFilter([b"*.log"]).matches("a.log") is True


class TestIsExcludedEntry:
    def test_uses_stack_position(self):
        ef = ExcludeFilter(["/DCIM/.thumbnails/"])
        stack = PathStack()
        folder = _entry(".thumbnails", EntryKind.FOLDER)
        assert ef.is_excluded_entry(stack, folder) is False
        with stack.entered("DCIM"):
            assert ef.is_excluded_entry(stack, folder) is True
            assert ef.is_excluded_entry(stack, _entry(".thumbnails")) is False

    def test_full_path_past_display_limit(self):
        stack = PathStack(max_length=16)
        for _ in range(10):
            stack.push("level")
        ef = ExcludeFilter(["/" + "/".join(["level"] * 10) + "/skip.me"])
        assert ef.is_excluded_entry(stack, _entry("skip.me")) is True
        assert ef.is_excluded_entry(stack, _entry("keep.me")) is False


class TestFromOptions:
    def test_nothing_given(self):
        assert ExcludeFilter.from_options() is None
        assert ExcludeFilter.from_options((), None) is None

    def test_patterns_only(self):
        ef = ExcludeFilter.from_options(["*.log"])
        assert ef.matches("a.log") is True

    def test_exclude_from_file(self, tmp_path):
        pfile = tmp_path / "excludes.txt"
        pfile.write_text("*.log\n# comment\ncache/\n\n")
        ef = ExcludeFilter.from_options(exclude_from=str(pfile))
        assert ef.patterns == [b"*.log", b"cache/"]
        assert ef.matches("app.log") is True
        assert ef.matches("cache", is_dir=True) is True
        assert ef.matches("app.jpg") is False

    def test_combined(self, tmp_path):
        pfile = tmp_path / "excludes.txt"
        pfile.write_text("*.log\n")
        ef = ExcludeFilter.from_options(["*.tmp"], str(pfile))
        assert ef.matches("a.log") and ef.matches("a.tmp")

    def test_empty_file_gives_no_filter(self, tmp_path):
        pfile = tmp_path / "excludes.txt"
        pfile.write_text("# only a comment\n")
        assert ExcludeFilter.from_options(exclude_from=str(pfile)) is None
