"""Leave device entries out of a mirror run.

Patterns use gitignore syntax (``dulwich.ignore``) and are matched
against each entry's full path relative to the storage root, so
``/DCIM/.thumbnails/`` only hits the top-level camera folder while
``*.tmp`` hits temporary files anywhere on the device.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from dulwich.ignore import IgnoreFilter, read_ignore_patterns

if TYPE_CHECKING:
    from .pathstack import PathStack
    from .store import RemoteEntry


class ExcludeFilter:
    """Decides which remote entries are skipped."""

    def __init__(self, patterns: Iterable[str | bytes] = ()):
        self.patterns = [p.encode("utf-8") if isinstance(p, str) else p for p in patterns]
        self._ignore = IgnoreFilter(self.patterns)

    @classmethod
    def from_options(
        cls, patterns: Iterable[str] = (), exclude_from: str | None = None,
    ) -> ExcludeFilter | None:
        """Build a filter from ``--exclude`` values and an ``--exclude-from`` file.

        Returns ``None`` when neither yields a pattern.
        """
        lines: list[str | bytes] = list(patterns)
        if exclude_from is not None:
            with open(exclude_from, "rb") as f:
                lines.extend(read_ignore_patterns(f))
        return cls(lines) if lines else None

    def matches(self, rel_path: str, *, is_dir: bool = False) -> bool:
        """True if *rel_path* (``"DCIM/a.jpg"``) is excluded."""
        return self._ignore.is_ignored(rel_path + "/" if is_dir else rel_path) is True

    def is_excluded_entry(self, stack: PathStack, entry: RemoteEntry) -> bool:
        """True if *entry*, listed in the directory *stack* points at, is excluded."""
        return self.matches(stack.join(entry.name), is_dir=entry.is_folder)
