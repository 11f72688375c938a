"""Decides which gates run before the backend start and drives the start itself."""

from __future__ import annotations

import logging
from typing import Protocol

from crc_cli.config import AppSettings
from crc_cli.errors import BackendStartError, CrcError, PreflightError
from crc_cli.execution import ExecutionContext
from crc_cli.models.start_contracts import MachineStartResult, PullSecretProvider, StartConfig
from crc_cli.services.machine import MachineBackend
from crc_cli.services.update_notifier import UpdateNotifier
from crc_cli.services.validation import validate_start_config

LOGGER = logging.getLogger("crc.start")


class Gate(Protocol):
    def check(self, ctx: ExecutionContext) -> None:
        ...


class PreflightGate(Protocol):
    def run(self) -> None:
        ...


class StartOrchestrator:
    """
    Start state machine.

    The cluster state is read once. When the cluster is not running, the
    daemon compatibility check runs first, then the preflight checks; a
    failure in either stops the flow before the backend is asked to start.
    An already running cluster skips both gates and goes straight to the
    backend, whose start call is expected to be idempotent.

    A failing status query is treated as "not running".
    """

    def __init__(
        self,
        *,
        machine: MachineBackend,
        compatibility: Gate,
        preflight: PreflightGate,
    ) -> None:
        self._machine = machine
        self._compatibility = compatibility
        self._preflight = preflight

    def start(self, start_config: StartConfig, ctx: ExecutionContext) -> MachineStartResult:
        if self._is_running():
            LOGGER.debug("cluster is already running, skipping daemon and preflight checks")
        else:
            self._compatibility.check(ctx)
            self._run_preflight()

        try:
            return self._machine.start(start_config, ctx)
        except CrcError:
            raise
        except Exception as exc:
            raise BackendStartError(str(exc) or type(exc).__name__) from exc

    def _is_running(self) -> bool:
        try:
            return self._machine.is_running()
        except Exception as exc:
            LOGGER.debug("cannot get cluster status, assuming it is not running: %s", exc)
            return False

    def _run_preflight(self) -> None:
        try:
            self._preflight.run()
        except Exception as exc:
            raise PreflightError(str(exc) or type(exc).__name__) from exc


def build_start_config(settings: AppSettings, pull_secret: PullSecretProvider) -> StartConfig:
    return StartConfig(
        bundle_path=settings.bundle,
        memory=settings.memory,
        disk_size=settings.disk_size,
        cpus=settings.cpus,
        name_server=settings.nameserver,
        pull_secret=pull_secret,
    )


def run_start(
    settings: AppSettings,
    ctx: ExecutionContext,
    *,
    orchestrator: StartOrchestrator,
    update_notifier: UpdateNotifier,
    pull_secret: PullSecretProvider,
) -> MachineStartResult:
    validate_start_config(
        memory=settings.memory,
        cpus=settings.cpus,
        disk_size=settings.disk_size,
        bundle_path=settings.bundle,
        nameserver=settings.nameserver,
    )

    # Logs only; never raises.
    update_notifier.notify(skip=settings.disable_update_check)

    start_config = build_start_config(settings, pull_secret)
    return orchestrator.start(start_config, ctx)
