from __future__ import annotations

import logging
import os
import platform
import shlex
import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from crc_cli.config import AppSettings

LOGGER = logging.getLogger("crc.preflight")

SUPPORTED_ARCHITECTURES: frozenset[str] = frozenset({"x86_64", "amd64"})


class PreflightCheckFailed(RuntimeError):
    def __init__(self, check_name: str, message: str) -> None:
        super().__init__(message)
        self.check_name = check_name


@dataclass(frozen=True)
class PreflightCheck:
    name: str
    description: str
    check: Callable[[], str | None]


class PreflightRunner:
    """Runs checks in order and stops at the first one reporting a problem."""

    def __init__(self, checks: Sequence[PreflightCheck]) -> None:
        self._checks = tuple(checks)

    def run(self) -> None:
        for check in self._checks:
            LOGGER.info("%s", check.description)
            problem = check.check()
            if problem is not None:
                raise PreflightCheckFailed(check.name, problem)
            LOGGER.debug("preflight check passed name=%s", check.name)


def _check_not_running_as_root() -> str | None:
    geteuid = getattr(os, "geteuid", None)
    if geteuid is None:
        return None
    if geteuid() == 0:
        return "crc should not be run as root"
    return None


def _check_supported_architecture() -> str | None:
    machine = platform.machine().lower()
    if machine in SUPPORTED_ARCHITECTURES:
        return None
    return f"crc can only run on x86_64 hosts, this host is {machine or 'unknown'}"


def _check_machine_executable(machine_command: str) -> Callable[[], str | None]:
    def _check() -> str | None:
        parts = shlex.split(machine_command)
        if not parts:
            return "no provisioning executable is configured"
        if shutil.which(parts[0]) is None:
            return f"cannot find '{parts[0]}' in PATH, run 'crc setup' to install it"
        return None

    return _check


def default_preflight_checks(settings: AppSettings) -> list[PreflightCheck]:
    return [
        PreflightCheck(
            name="check-root-user",
            description="Checking if running as non-root",
            check=_check_not_running_as_root,
        ),
        PreflightCheck(
            name="check-architecture",
            description="Checking if the host architecture is supported",
            check=_check_supported_architecture,
        ),
        PreflightCheck(
            name="check-machine-executable",
            description="Checking if the provisioning executable is installed",
            check=_check_machine_executable(settings.machine_command),
        ),
    ]
