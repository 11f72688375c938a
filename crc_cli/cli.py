"""Main CLI entry point for crc."""

import click

from .commands import start
from .version import CRC_VERSION


@click.group()
@click.version_option(version=CRC_VERSION)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Log level shown on the console (defaults to info)",
)
@click.pass_context
def main(ctx: click.Context, log_level: str | None):
    """crc - run a local OpenShift cluster."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level.lower() if log_level else None


main.add_command(start.start)


if __name__ == "__main__":
    main()
