"""CLI sweep command for shelfscan."""

import click

from shelfscan.config import ShelfScanConfig
from shelfscan.introspector import default_scratch_dir, sweep_stale_partials


@click.command("sweep")
@click.option(
    "--max-age",
    type=click.IntRange(min=0),
    default=None,
    help="Delete scratch files older than this many seconds "
    "(default: scratch_max_age_seconds from configuration)",
)
@click.pass_context
def sweep_command(ctx: click.Context, max_age: int | None) -> None:
    """Delete stale partial-read copies from the scratch directory."""
    config: ShelfScanConfig = ctx.obj["config"]
    scratch_dir = config.probe.scratch_dir or default_scratch_dir()
    if max_age is None:
        max_age = config.probe.scratch_max_age_seconds

    removed = sweep_stale_partials(scratch_dir, max_age)
    click.echo(f"Removed {removed} stale file(s) from {scratch_dir}")
