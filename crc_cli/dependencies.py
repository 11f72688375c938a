from __future__ import annotations

import sys
from dataclasses import dataclass

from crc_cli.config import AppSettings
from crc_cli.models.start_contracts import PullSecretProvider
from crc_cli.services.compatibility import CompatibilityChecker
from crc_cli.services.daemon_client import DaemonClient
from crc_cli.services.machine import MachineClient
from crc_cli.services.orchestrator import StartOrchestrator
from crc_cli.services.preflight import PreflightRunner, default_preflight_checks
from crc_cli.services.pull_secret import InteractivePullSecretLoader
from crc_cli.services.update_notifier import UpdateNotifier
from crc_cli.version import CRC_VERSION, is_macos_install_path_set


@dataclass(frozen=True)
class StartDependencies:
    orchestrator: StartOrchestrator
    update_notifier: UpdateNotifier
    pull_secret: PullSecretProvider


def build_compatibility_checker(
    settings: AppSettings,
    *,
    platform: str = sys.platform,
) -> CompatibilityChecker:
    return CompatibilityChecker(
        network_mode=settings.network_mode,
        daemon_client=DaemonClient(
            base_url=settings.daemon_url,
            timeout_seconds=settings.daemon_timeout_seconds,
        ),
        client_version=CRC_VERSION,
        macos_install_path_set=is_macos_install_path_set(platform=platform),
    )


def build_orchestrator(settings: AppSettings) -> StartOrchestrator:
    return StartOrchestrator(
        machine=MachineClient(command=settings.machine_command),
        compatibility=build_compatibility_checker(settings),
        preflight=PreflightRunner(default_preflight_checks(settings)),
    )


def build_update_notifier(settings: AppSettings) -> UpdateNotifier:
    return UpdateNotifier(
        current_version=CRC_VERSION,
        release_info_url=settings.update_check_url,
        timeout_seconds=settings.update_check_timeout_seconds,
    )


def build_start_dependencies(settings: AppSettings) -> StartDependencies:
    return StartDependencies(
        orchestrator=build_orchestrator(settings),
        update_notifier=build_update_notifier(settings),
        pull_secret=InteractivePullSecretLoader(settings.pull_secret_file),
    )
