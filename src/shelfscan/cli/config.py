"""CLI command for showing the effective configuration."""

import json

import click

from shelfscan.config import ShelfScanConfig


@click.command("config")
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output in JSON format.",
)
@click.pass_context
def config_command(ctx: click.Context, json_output: bool) -> None:
    """Show the effective configuration.

    Values are resolved from defaults, the config file, SHELFSCAN_*
    environment variables and command-line options, in that order.
    """
    config: ShelfScanConfig = ctx.obj["config"]
    data = config.to_dict()

    if json_output:
        click.echo(json.dumps(data, indent=2))
        return

    for section, values in data.items():
        click.echo(f"[{section}]")
        for key, value in values.items():
            shown = "(unset)" if value is None else value
            click.echo(f"  {key} = {shown}")
