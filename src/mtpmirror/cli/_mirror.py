"""The mirror and files commands."""

from __future__ import annotations

import click

from ..budget import FailureBudget
from ..exceptions import DeviceError, MirrorAbort
from ..mirror import iter_entries, mirror_devices
from ..store import describe_entry
from ._helpers import (
    main,
    _build_exclude,
    _dest_option,
    _dry_run_option,
    _echo_progress,
    _exclude_options,
    _max_failures_option,
    _open_devices,
    _status,
)


# ---------------------------------------------------------------------------
# mirror
# ---------------------------------------------------------------------------

@main.command("mirror")
@click.argument("sources", nargs=-1, type=click.Path())
@_dest_option
@_max_failures_option
@_dry_run_option
@_exclude_options
@click.option("--per-storage", "per_storage", is_flag=True, default=False,
              help="Mirror each storage into its own sub-directory.")
@click.pass_context
def mirror_cmd(ctx, sources, dest, max_failures, dry_run, exclude, exclude_from, per_storage):
    """Mirror the file trees of SOURCES into --dest.

    Files whose local copy has the same size are skipped.  The run stops
    with a non-zero exit status after more than --max-failures failed
    copies, or on any local filesystem error.
    """
    if not sources:
        click.echo("mtpmirror: No devices have been found")
        return

    verbose = ctx.obj.get("verbose")
    budget = FailureBudget(max_failures)
    with _open_devices(ctx, sources) as devices:
        try:
            report = mirror_devices(
                devices, dest,
                budget=budget,
                exclude=_build_exclude(exclude, exclude_from),
                dry_run=dry_run,
                describe=verbose,
                per_storage=per_storage,
                progress=_echo_progress,
            )
        except (MirrorAbort, DeviceError) as exc:
            raise click.ClickException(str(exc))

    verb = "would be copied" if dry_run else "copied"
    _status(ctx, f"{len(report.downloaded)} file(s) {verb}, "
                 f"{len(report.skipped)} skipped, {len(report.errors)} failed.")
    for issue in report.errors:
        _status(ctx, f"  failed  {issue.path}: {issue.error}")
    click.echo("OK.")


# ---------------------------------------------------------------------------
# files
# ---------------------------------------------------------------------------

@main.command("files")
@click.argument("sources", nargs=-1, type=click.Path())
@click.option("--long", "-l", "long_format", is_flag=True, default=False,
              help="Print full file information blocks.")
@click.pass_context
def files_cmd(ctx, sources, long_format):
    """List every folder and file on SOURCES without copying."""
    if not sources:
        click.echo("mtpmirror: No devices have been found")
        return

    with _open_devices(ctx, sources) as devices:
        for device in devices:
            click.echo(f"Listing File Information on Device with name: "
                       f"{device.friendly_name or '(NULL)'}")
            for msg in device.drain_errors():
                click.echo(msg, err=True)
            for storage in device.storages:
                _status(ctx, f"Storage 0x{storage.id:08X}: {storage.description}")
                errors: list[str] = []
                for rel, entry in iter_entries(device, storage.id, errors=errors):
                    if entry.is_folder:
                        click.echo(f"{'':>12}  {rel}/")
                    elif long_format:
                        click.echo(describe_entry(entry))
                    else:
                        size = str(entry.size) if entry.size_known else "-"
                        click.echo(f"{size:>12}  {rel}")
                for msg in errors:
                    click.echo(msg, err=True)
