"""`crc start` command."""

from __future__ import annotations

import logging
import signal
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import click
from pydantic import ValidationError

from crc_cli import dependencies
from crc_cli.config import AppSettings, load_settings
from crc_cli.errors import ConfigValidationError, exit_code_for, to_serializable_error
from crc_cli.execution import ExecutionContext
from crc_cli.logging_config import configure_logging
from crc_cli.models.start_contracts import MachineStartResult, StartResult
from crc_cli.services.orchestrator import run_start
from crc_cli.services.renderer import (
    OUTPUT_FORMAT_HUMAN,
    OUTPUT_FORMAT_JSON,
    RenderError,
    ResultRenderer,
    detect_render_environment,
)
from crc_cli.version import BUILD_VARIANT_OPENSHIFT, CRC_LANDING_PAGE_URL

LOGGER = logging.getLogger("crc.start")


@contextmanager
def _cancel_on_interrupt(execution: ExecutionContext) -> Iterator[None]:
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handle_interrupt(_signum: int, _frame: Any) -> None:
        LOGGER.warning("Interrupted, stopping the start operation")
        execution.cancel()

    previous = signal.signal(signal.SIGINT, _handle_interrupt)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _settings_error(exc: ValidationError) -> ConfigValidationError:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'config'}: {error['msg']}"
        for error in exc.errors()
    )
    return ConfigValidationError("config", f"invalid configuration: {problems}")


def _execute_start(
    overrides: dict[str, Any],
) -> tuple[AppSettings | None, MachineStartResult | None, Exception | None]:
    try:
        settings = load_settings(**overrides)
    except ValidationError as exc:
        return None, None, _settings_error(exc)
    except ValueError as exc:
        return None, None, ConfigValidationError("config", str(exc))

    try:
        configure_logging(settings)
        execution = ExecutionContext.with_timeout(settings.start_timeout_seconds)
        start_dependencies = dependencies.build_start_dependencies(settings)
        with _cancel_on_interrupt(execution):
            result = run_start(
                settings,
                execution,
                orchestrator=start_dependencies.orchestrator,
                update_notifier=start_dependencies.update_notifier,
                pull_secret=start_dependencies.pull_secret,
            )
    except Exception as exc:
        LOGGER.debug("crc start failed", exc_info=True)
        return settings, None, exc
    return settings, result, None


@click.command()
@click.option(
    "-b",
    "--bundle",
    default=None,
    help="The system bundle used for deployment of the OpenShift cluster",
)
@click.option(
    "-p",
    "--pull-secret-file",
    default=None,
    help=f"File path of image pull secret (download from {CRC_LANDING_PAGE_URL})",
)
@click.option(
    "-c",
    "--cpus",
    type=int,
    default=None,
    help="Number of CPU cores to allocate to the OpenShift cluster",
)
@click.option(
    "-m",
    "--memory",
    type=int,
    default=None,
    help="MiB of memory to allocate to the OpenShift cluster",
)
@click.option(
    "-d",
    "--disk-size",
    type=click.IntRange(min=0),
    default=None,
    help="Total size in GiB of the disk used by the OpenShift cluster",
)
@click.option(
    "-n",
    "--nameserver",
    default=None,
    help="IPv4 address of nameserver to use for the OpenShift cluster",
)
@click.option(
    "--disable-update-check",
    is_flag=True,
    default=False,
    help="Don't check for update",
)
@click.option(
    "-o",
    "--output",
    "output_format",
    type=click.Choice([OUTPUT_FORMAT_JSON]),
    default=None,
    help="Output format",
)
@click.pass_context
def start(
    ctx: click.Context,
    bundle: str | None,
    pull_secret_file: str | None,
    cpus: int | None,
    memory: int | None,
    disk_size: int | None,
    nameserver: str | None,
    disable_update_check: bool,
    output_format: str | None,
) -> None:
    """Start the OpenShift cluster."""
    root_options = ctx.obj if isinstance(ctx.obj, dict) else {}
    settings, machine_result, error = _execute_start(
        {
            "bundle": bundle,
            "pull_secret_file": pull_secret_file,
            "cpus": cpus,
            "memory": memory,
            "disk_size": disk_size,
            "nameserver": nameserver,
            "disable_update_check": disable_update_check or None,
            "log_level": root_options.get("log_level"),
        }
    )

    renderer = ResultRenderer(
        output_format=output_format or OUTPUT_FORMAT_HUMAN,
        environment=detect_render_environment(
            platform=sys.platform,
            build_variant=settings.build_variant if settings else BUILD_VARIANT_OPENSHIFT,
        ),
    )
    try:
        renderer.render(StartResult.from_outcome(machine_result, to_serializable_error(error)))
    except RenderError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.exit(exit_code_for(error))
