"""CLI probe command for shelfscan."""

import dataclasses
import logging
import sys
from pathlib import Path

import click

from shelfscan.cache import ProbeCache
from shelfscan.cli.exit_codes import ExitCode
from shelfscan.config import ShelfScanConfig, parse_probe_mode
from shelfscan.introspector import Prober, format_human, format_json, is_available

logger = logging.getLogger(__name__)


@click.command("probe")
@click.argument("file", type=click.Path(exists=False))
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["human", "json"]),
    default="human",
    help="Output format (default: human)",
)
@click.option(
    "--mode",
    "-m",
    type=click.Choice(["minimal", "full"], case_sensitive=False),
    default=None,
    help="Probe mode (default: from configuration)",
)
@click.option(
    "--no-partial-read",
    is_flag=True,
    help="Probe the whole file instead of a copy of its head",
)
@click.option(
    "--no-cache",
    is_flag=True,
    help="Do not consult or populate the probe cache",
)
@click.pass_context
def probe_command(
    ctx: click.Context,
    file: str,
    output_format: str,
    mode: str | None,
    no_partial_read: bool,
    no_cache: bool,
) -> None:
    """Probe a media file and display its normalized metadata.

    FILE is the path to the media file to probe.

    Exit codes: 0 on success, 1 if FILE does not exist, 2 if probing failed.
    """
    config: ShelfScanConfig = ctx.obj["config"]
    file_path = Path(file)

    if not file_path.exists():
        click.echo(f"Error: File not found: {file_path}", err=True)
        sys.exit(ExitCode.TARGET_NOT_FOUND)

    probe_config = config.probe
    if mode is not None:
        probe_config = dataclasses.replace(probe_config, mode=parse_probe_mode(mode))
    if no_partial_read:
        probe_config = dataclasses.replace(probe_config, partial_read_enabled=False)

    if not is_available(probe_config.ffprobe_path):
        click.echo(
            f"Error: {probe_config.ffprobe_path} is not installed or not in PATH.\n"
            "Install ffmpeg, or set SHELFSCAN_FFPROBE_PATH.",
            err=True,
        )
        sys.exit(ExitCode.PROBE_FAILED)

    cache = None if no_cache else ProbeCache.from_config(config.cache)
    with Prober(probe_config, cache) as prober:
        result = prober.probe(file_path)

    if output_format == "json":
        click.echo(format_json(result))
    else:
        click.echo(format_human(result))

    if not result.ok:
        sys.exit(ExitCode.PROBE_FAILED)
