"""Shared helpers, option decorators, and the main CLI group."""

from __future__ import annotations

from contextlib import contextmanager

import click

from .. import __version__
from ..budget import DEFAULT_MAX_FAILURES
from ..exceptions import DeviceError
from ..store import open_device


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _status(ctx, msg):
    """Emit a status message to stderr when verbose mode (-v) is on."""
    if ctx.obj.get("verbose"):
        click.echo(msg, err=True)


def _echo_progress(msg, err=False):
    """Progress callback for the mirror engine."""
    click.echo(msg, err=err)


def _dest_option(f):
    """Shared --dest/-d option decorator."""
    return click.option(
        "--dest", "-d", type=click.Path(file_okay=False), envvar="MTPMIRROR_DEST",
        default=".", show_default=True,
        help="Local mirror root (or set MTPMIRROR_DEST).",
    )(f)


def _dry_run_option(f):
    return click.option(
        "--dry-run", "-n", "dry_run", is_flag=True, default=False,
        help="Show what would be copied without writing anything.",
    )(f)


def _max_failures_option(f):
    return click.option(
        "--max-failures", type=click.IntRange(min=0), envvar="MTPMIRROR_MAX_FAILURES",
        default=DEFAULT_MAX_FAILURES, show_default=True,
        help="Abort once more than this many copies have failed "
             "(or set MTPMIRROR_MAX_FAILURES).",
    )(f)


def _exclude_options(f):
    """Shared --exclude / --exclude-from options."""
    f = click.option("--exclude-from", "exclude_from", type=click.Path(exists=True, dir_okay=False),
                     help="Read exclude patterns from file.")(f)
    f = click.option("--exclude", multiple=True,
                     help="Exclude entries matching pattern (gitignore syntax, repeatable).")(f)
    return f


def _build_exclude(exclude, exclude_from):
    """Return an ExcludeFilter, or None when no patterns were given."""
    from .._exclude import ExcludeFilter
    return ExcludeFilter.from_options(exclude, exclude_from)


@contextmanager
def _open_devices(ctx, sources):
    """Yield a generator of opened devices; each is closed after use.

    Sources that cannot be opened are reported and skipped.
    """
    opened = []

    def _gen():
        for i, source in enumerate(sources):
            try:
                device = open_device(source)
            except DeviceError as exc:
                click.echo(f"Unable to open raw device {i}: {exc}", err=True)
                continue
            opened.append(device)
            _status(ctx, f"Opened {source}")
            yield device
            device.close()
            opened.remove(device)

    try:
        yield _gen()
    finally:
        for device in opened:
            device.close()


# ---------------------------------------------------------------------------
# Main group
# ---------------------------------------------------------------------------

@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose output on stderr.")
@click.version_option(__version__, prog_name="mtpmirror")
@click.pass_context
def main(ctx, verbose):
    """mtpmirror — mirror a device's file tree onto local disk.

    Folders are recreated, files already present with the same size are
    skipped, and a limited number of failed copies is tolerated before
    the run aborts.

    \b
    Quick start:
      mtpmirror mirror /media/phone -d backup/
      mtpmirror mirror photos.git -d photos/ --per-storage
      mtpmirror files /media/phone

    \b
    A device is a directory (e.g. a mounted phone) or a bare git
    repository, whose branches are treated as storages.
    Set MTPMIRROR_DEST to avoid passing --dest on every call.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
