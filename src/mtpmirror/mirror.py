"""Tree mirroring: replicate a device's folder/file tree onto local disk.

The traversal is depth-first and strictly sequential.  For every folder
the matching local directory is created and the walk recurses into it;
for every file the local copy is compared by size and fetched only when
missing or different.  Failed downloads are charged to a run-wide
:class:`~mtpmirror.budget.FailureBudget`; local filesystem failures end
the run at once.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, Iterator

from .budget import FailureBudget
from .change import should_copy
from .exceptions import DeviceError, DownloadError, FailureBudgetExceeded, LocalFilesystemError
from .pathstack import PathStack, is_single_component
from .store import ROOT, RemoteEntry, RemoteStore, describe_entry

if TYPE_CHECKING:
    from ._exclude import ExcludeFilter

Progress = Callable[..., None]


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class MirrorIssue:
    """A path that produced an error or warning during a run.

    Attributes:
        path: Path relative to the storage root.
        error: Human-readable message.
    """
    path: str
    error: str


@dataclass
class MirrorReport:
    """Result of a mirror run (dry-run or real).

    Attributes:
        downloaded: Files fetched (or that would be, in dry-run mode).
        skipped: Files whose local copy already matched by size.
        directories: Folders entered.
        excluded: Entries left out by the exclude filter.
        errors: Failed downloads.
        warnings: Device error-stack messages and unusable entry names.
    """
    downloaded: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    directories: list[str] = field(default_factory=list)
    excluded: list[str] = field(default_factory=list)
    errors: list[MirrorIssue] = field(default_factory=list)
    warnings: list[MirrorIssue] = field(default_factory=list)

    @property
    def in_sync(self) -> bool:
        """``True`` if nothing needed downloading and nothing failed."""
        return not self.downloaded and not self.errors

    @property
    def total(self) -> int:
        """Number of files considered."""
        return len(self.downloaded) + len(self.skipped) + len(self.errors)


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

class TreeMirror:
    """Recursive mirror of one device onto the directory *dest*.

    *budget* and *stack* may be shared between several instances so that
    failures accumulate across storages and devices.  *progress*, when
    given, is called as ``progress(msg, err=False)`` for every progress
    line and ``progress(msg, err=True)`` for diagnostics.
    """

    def __init__(
        self,
        store: RemoteStore,
        dest: str | os.PathLike[str],
        *,
        budget: FailureBudget | None = None,
        stack: PathStack | None = None,
        exclude: ExcludeFilter | None = None,
        dry_run: bool = False,
        describe: bool = False,
        progress: Progress | None = None,
        report: MirrorReport | None = None,
    ):
        self.store = store
        self.dest = Path(dest)
        self.budget = budget if budget is not None else FailureBudget()
        self.stack = stack if stack is not None else PathStack()
        self.exclude = exclude
        self.dry_run = dry_run
        self.describe = describe
        self._progress = progress
        self.report = report if report is not None else MirrorReport()

    def _emit(self, msg: str) -> None:
        if self._progress is not None:
            self._progress(msg, err=False)

    def _diag(self, msg: str) -> None:
        if self._progress is not None:
            self._progress(msg, err=True)

    def mirror(self, storage_id: int, directory_id: int = ROOT) -> MirrorReport:
        """Mirror *directory_id* of *storage_id* into the current stack position.

        Raises :class:`DeviceError` when the destination lies inside the
        device, since the walk would keep finding its own output.
        """
        contains_path = getattr(self.store, "contains_path", None)
        if contains_path is not None and contains_path(self.dest):
            raise DeviceError(f"Destination {self.dest} is inside the device")
        local_dir = self.dest.joinpath(*self.stack)
        if not self.dry_run:
            try:
                local_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                self._diag(f"couldn't mkdir {local_dir}: {exc.strerror or exc}")
                raise LocalFilesystemError(local_dir, exc) from exc
        self._visit(storage_id, directory_id, local_dir)
        return self.report

    def _visit(self, storage_id: int, directory_id: int, local_dir: Path) -> None:
        try:
            entries = self.store.list_entries(storage_id, directory_id)
        finally:
            for msg in self.store.drain_errors():
                self.report.warnings.append(MirrorIssue(self.stack.join(), msg))
                self._diag(msg)

        pending = iter(entries or ())
        try:
            for entry in pending:
                try:
                    self._visit_entry(storage_id, entry, local_dir)
                finally:
                    self.store.release_entry(entry)
        finally:
            # Siblings left unvisited by an abort
            for entry in pending:
                self.store.release_entry(entry)

    def _visit_entry(self, storage_id: int, entry: RemoteEntry, local_dir: Path) -> None:
        rel = self.stack.join(str(entry.name))
        if not is_single_component(entry.name):
            self.report.warnings.append(
                MirrorIssue(rel, f"unusable entry name {entry.name!r}")
            )
            self._diag(f"skipping entry {entry.item_id} with unusable name {entry.name!r}")
            return
        if self.exclude is not None and self.exclude.is_excluded_entry(self.stack, entry):
            self.report.excluded.append(rel)
            return
        if entry.is_folder:
            self._visit_folder(storage_id, entry, local_dir, rel)
        else:
            self._visit_file(entry, local_dir, rel)

    def _visit_folder(self, storage_id: int, entry: RemoteEntry, local_dir: Path, rel: str) -> None:
        child = local_dir / entry.name
        if not self.dry_run:
            try:
                child.mkdir(exist_ok=True)
            except OSError as exc:
                self._diag(f"couldn't mkdir {child}: {exc.strerror or exc}")
                raise LocalFilesystemError(child, exc) from exc
        self.report.directories.append(rel)
        self._emit(f"ENTER DIRECTORY:{entry.name}")
        with self.stack.entered(entry.name):
            self._visit(storage_id, entry.item_id, child)
        self._emit(f"LEAVE DIRECTORY:{entry.name}")

    def _visit_file(self, entry: RemoteEntry, local_dir: Path, rel: str) -> None:
        if self.describe:
            self._emit(describe_entry(entry))
        try:
            needed = should_copy(local_dir, entry.name, entry.size)
        except LocalFilesystemError as exc:
            self._diag(f"couldn't stat {exc.path}: {exc.error.strerror or exc.error}")
            raise
        if not needed:
            self.report.skipped.append(rel)
            self._emit(f"skip {rel}")
            return
        if self.dry_run:
            self.report.downloaded.append(rel)
            self._emit(f"would copy {rel}")
            return

        self._emit(f"copy {rel}")
        try:
            self.store.download_file(entry.item_id, local_dir / entry.name)
        except DownloadError as exc:
            self.report.errors.append(MirrorIssue(rel, exc.reason))
            self._diag(f"couldn't write {entry.name} in dir {local_dir}: {exc.reason}")
            try:
                count = self.budget.record_failure()
            except FailureBudgetExceeded as abort:
                self._diag(f"total fails so far: {abort.count}")
                raise
            self._diag(f"total fails so far: {count}")
            return
        self.report.downloaded.append(rel)


def mirror_tree(
    store: RemoteStore,
    storage_id: int,
    dest: str | os.PathLike[str],
    *,
    directory_id: int = ROOT,
    **kwargs,
) -> MirrorReport:
    """Mirror one storage (or one folder of it) into *dest*.

    Keyword arguments are passed to :class:`TreeMirror`.
    """
    return TreeMirror(store, dest, **kwargs).mirror(storage_id, directory_id)


def mirror_devices(
    devices: Iterable[RemoteStore],
    dest: str | os.PathLike[str],
    *,
    budget: FailureBudget | None = None,
    exclude: ExcludeFilter | None = None,
    dry_run: bool = False,
    describe: bool = False,
    per_storage: bool = False,
    progress: Progress | None = None,
) -> MirrorReport:
    """Mirror every storage of every device into *dest*.

    By default all storages share the destination root; with
    *per_storage* each one gets a sub-directory named after its
    description.  One path stack and one failure budget serve the whole
    run, so the failure ceiling is run-wide.
    """
    budget = budget if budget is not None else FailureBudget()
    stack = PathStack()
    report = MirrorReport()
    for device in devices:
        if progress is not None:
            progress(f"Mirroring device: {device.friendly_name or '(NULL)'}", err=False)
        for msg in device.drain_errors():
            report.warnings.append(MirrorIssue("", msg))
            if progress is not None:
                progress(msg, err=True)
        for storage in device.storages:
            target = Path(dest)
            if per_storage:
                target = target / storage_dirname(storage.description, storage.id)
            walker = TreeMirror(
                device, target, budget=budget, stack=stack, exclude=exclude,
                dry_run=dry_run, describe=describe, progress=progress, report=report,
            )
            walker.mirror(storage.id)
    return report


def storage_dirname(description: str | None, storage_id: int) -> str:
    """Return a local directory name for a storage."""
    if description:
        name = description.replace("/", "_").replace("\\", "_").strip()
        if is_single_component(name):
            return name
    return f"storage-{storage_id:08X}"


def iter_entries(
    store: RemoteStore, storage_id: int, *, errors: list[str] | None = None,
) -> Iterator[tuple[str, RemoteEntry]]:
    """Yield ``(rel_path, entry)`` for every entry of a storage, depth-first.

    Entries are released once the consumer moves past them.  Device
    error-stack messages are appended to *errors* when given.
    """
    stack = PathStack()

    def _walk(parent_id: int) -> Iterator[tuple[str, RemoteEntry]]:
        try:
            entries = store.list_entries(storage_id, parent_id)
        finally:
            drained = store.drain_errors()
            if errors is not None:
                errors.extend(drained)
        for entry in entries or ():
            try:
                yield stack.join(str(entry.name)), entry
                if entry.is_folder and is_single_component(entry.name):
                    with stack.entered(entry.name):
                        yield from _walk(entry.item_id)
            finally:
                store.release_entry(entry)

    yield from _walk(ROOT)
