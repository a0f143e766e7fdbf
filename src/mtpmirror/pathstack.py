"""Directory nesting from the mirror root to the current directory."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from .exceptions import PathStackError

MAX_PATH_LENGTH = 1024


class PathStack:
    """Ordered directory names from the mirror root to the current directory.

    The stack is empty only at the mirror root.  Use :meth:`entered` so
    every push is matched by a pop, including when the body raises.
    """

    def __init__(self, *, max_length: int = MAX_PATH_LENGTH):
        if max_length < 0:
            raise ValueError("max_length must not be negative")
        self._segments: list[str] = []
        self.max_length = max_length

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[str]:
        return iter(self._segments)

    def __bool__(self) -> bool:
        return bool(self._segments)

    def __repr__(self) -> str:
        return f"PathStack({self.current_path()!r})"

    @property
    def depth(self) -> int:
        return len(self._segments)

    def push(self, name: str) -> None:
        """Append *name* as the new innermost directory."""
        if not is_single_component(name):
            raise ValueError(f"Invalid path segment: {name!r}")
        self._segments.append(name)

    def pop(self) -> str:
        """Remove and return the innermost directory name."""
        if not self._segments:
            raise PathStackError("pop with empty stack")
        return self._segments.pop()

    def current_path(self) -> str:
        """Return ``"a/b/c/"`` for the current nesting, ``""`` at the root.

        The result never exceeds :attr:`max_length`; longer paths are
        truncated.
        """
        path = "".join(f"{seg}/" for seg in self._segments)
        return path[:self.max_length]

    def join(self, name: str = "") -> str:
        """Return the full relative path of *name* inside the current directory.

        Unlike :meth:`current_path` this is never truncated.  With no
        *name* the result ends in a separator (``"a/b/"``), or is ``""``
        at the root.
        """
        return "/".join((*self._segments, name))

    @contextmanager
    def entered(self, name: str):
        """Push *name* for the duration of the ``with`` block."""
        self.push(name)
        try:
            yield self
        finally:
            self.pop()


def is_single_component(name) -> bool:
    """True if *name* can be used as one local path segment."""
    if not isinstance(name, str) or not name:
        return False
    if name in (".", ".."):
        return False
    if "/" in name or "\\" in name or "\0" in name:
        return False
    return True
