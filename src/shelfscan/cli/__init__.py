"""CLI module for shelfscan.

A small diagnostic front end over the probe pipeline: probe one file, sweep
the scratch directory, or print the effective configuration.
"""

import logging
from pathlib import Path

import click

from shelfscan.cli.exit_codes import ExitCode
from shelfscan.config import ConfigError, get_config
from shelfscan.logging import configure_logging

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(package_name="shelfscan")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.shelfscan/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """shelfscan - Probe media files and inspect scan configuration."""
    ctx.ensure_object(dict)

    # Tests may pass a prepared config in obj
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = get_config(
                config_path,
                strict=config_path is not None,
                logging_level=log_level,
                logging_file=log_file,
                logging_format="json" if log_json else None,
            )
        except ConfigError as e:
            click.echo(f"Error: Invalid configuration: {e}", err=True)
            ctx.exit(ExitCode.CONFIG_ERROR)

    configure_logging(ctx.obj["config"].logging)


# Defer import to avoid circular dependency
def _register_commands():
    from shelfscan.cli.config import config_command
    from shelfscan.cli.probe import probe_command
    from shelfscan.cli.sweep import sweep_command

    main.add_command(config_command)
    main.add_command(probe_command)
    main.add_command(sweep_command)


_register_commands()
