"""Checks run against the start options before anything is touched."""

from __future__ import annotations

import ipaddress
from pathlib import Path

from crc_cli.config import DEFAULT_CPUS, DEFAULT_DISK_SIZE_GIB, DEFAULT_MEMORY_MIB
from crc_cli.errors import ConfigValidationError

BUNDLE_EXTENSION = ".crcbundle"


def validate_memory(memory: int) -> None:
    if memory < DEFAULT_MEMORY_MIB:
        raise ConfigValidationError(
            "memory",
            f"requires memory in MiB >= {DEFAULT_MEMORY_MIB}, got {memory}",
        )


def validate_cpus(cpus: int) -> None:
    if cpus < DEFAULT_CPUS:
        raise ConfigValidationError("cpus", f"requires CPUs >= {DEFAULT_CPUS}, got {cpus}")


def validate_disk_size(disk_size: int) -> None:
    if disk_size < DEFAULT_DISK_SIZE_GIB:
        raise ConfigValidationError(
            "disk-size",
            f"requires disk size in GiB >= {DEFAULT_DISK_SIZE_GIB}, got {disk_size}",
        )


def validate_bundle(bundle_path: str) -> None:
    if not bundle_path.strip():
        raise ConfigValidationError("bundle", "bundle path must not be empty")
    path = Path(bundle_path)
    if not path.name.endswith(BUNDLE_EXTENSION):
        raise ConfigValidationError(
            "bundle",
            f"'{bundle_path}' is not a valid bundle, the file name must end in {BUNDLE_EXTENSION}",
        )
    if not path.is_file():
        raise ConfigValidationError(
            "bundle",
            f"file '{bundle_path}' does not exist, download it or use a different --bundle",
        )


def validate_ip_address(address: str) -> None:
    try:
        ipaddress.IPv4Address(address)
    except ValueError as exc:
        raise ConfigValidationError(
            "nameserver",
            f"'{address}' is not a valid IPv4 address",
        ) from exc


def validate_start_config(
    *,
    memory: int,
    cpus: int,
    disk_size: int,
    bundle_path: str,
    nameserver: str,
) -> None:
    """
    Validate start options in a fixed order and stop at the first failure.

    The order is memory, CPUs, disk size, bundle, nameserver; the nameserver
    is only checked when one is configured.
    """
    validate_memory(memory)
    validate_cpus(cpus)
    validate_disk_size(disk_size)
    validate_bundle(bundle_path)
    if nameserver:
        validate_ip_address(nameserver)
