from __future__ import annotations

import logging
from typing import Protocol

from crc_cli.config import NETWORK_MODE_SYSTEM
from crc_cli.errors import DaemonUnreachableError, VersionMismatchError
from crc_cli.execution import ExecutionContext
from crc_cli.services.daemon_client import DaemonApiError, DaemonVersion
from crc_cli.version import MACOS_INSTALL_PATH

LOGGER = logging.getLogger("crc.compatibility")


class VersionQuery(Protocol):
    def version(self, ctx: ExecutionContext) -> DaemonVersion:
        ...


def daemon_unreachable_message(*, macos_install_path_set: bool, cause: object) -> str:
    if macos_install_path_set:
        return f"Is '{MACOS_INSTALL_PATH}' running? Cannot reach daemon API: {cause}"
    return f"Is 'crc daemon' running? Cannot reach daemon API: {cause}"


class CompatibilityChecker:
    """Makes sure the daemon needed by the network mode is up and speaks our version."""

    def __init__(
        self,
        *,
        network_mode: str,
        daemon_client: VersionQuery,
        client_version: str,
        macos_install_path_set: bool = False,
    ) -> None:
        self._network_mode = network_mode
        self._daemon_client = daemon_client
        self._client_version = client_version
        self._macos_install_path_set = macos_install_path_set

    @property
    def daemon_required(self) -> bool:
        return self._network_mode != NETWORK_MODE_SYSTEM

    def check(self, ctx: ExecutionContext) -> None:
        if not self.daemon_required:
            LOGGER.debug("network mode %s does not need the daemon", self._network_mode)
            return

        try:
            daemon_version = self._daemon_client.version(ctx)
        except DaemonApiError as exc:
            raise DaemonUnreachableError(
                daemon_unreachable_message(
                    macos_install_path_set=self._macos_install_path_set,
                    cause=exc,
                )
            ) from exc

        if daemon_version.crc_version != self._client_version:
            raise VersionMismatchError(
                client_version=self._client_version,
                daemon_version=daemon_version.crc_version,
            )
        LOGGER.debug("daemon version %s matches", daemon_version.crc_version)
