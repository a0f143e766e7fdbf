"""Size-based change detection for remote files."""

from __future__ import annotations

import os
from pathlib import Path

from .exceptions import LocalFilesystemError
from .store import SIZE_UNKNOWN


def should_copy(local_dir: str | os.PathLike[str], name: str, declared_size: int) -> bool:
    """Return True if ``local_dir/name`` is missing or its size differs.

    Entries with :data:`~mtpmirror.store.SIZE_UNKNOWN` are always copied,
    since there is nothing to compare against.  Any stat failure other
    than "not found" raises :class:`LocalFilesystemError`.
    """
    if declared_size == SIZE_UNKNOWN:
        return True
    local_path = Path(local_dir) / name
    try:
        st = os.stat(local_path)
    except (FileNotFoundError, NotADirectoryError):
        # NotADirectoryError: parent missing in dry-run, or a file in its place
        return True
    except OSError as exc:
        raise LocalFilesystemError(local_path, exc) from exc
    return st.st_size != declared_size
