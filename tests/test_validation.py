from __future__ import annotations

from pathlib import Path

import pytest

from crc_cli.errors import ConfigValidationError
from crc_cli.services.validation import (
    validate_bundle,
    validate_ip_address,
    validate_start_config,
)


def _validate(bundle: Path | str, **overrides: object) -> None:
    values: dict[str, object] = {
        "memory": 9216,
        "cpus": 4,
        "disk_size": 31,
        "bundle_path": str(bundle),
        "nameserver": "",
    }
    values.update(overrides)
    validate_start_config(**values)  # type: ignore[arg-type]


def test_valid_configuration_passes(bundle_path: Path) -> None:
    _validate(bundle_path, nameserver="10.0.0.53", memory=16384, cpus=8, disk_size=100)


@pytest.mark.parametrize(
    ("overrides", "expected_field"),
    [
        ({"memory": 1024, "cpus": 1, "disk_size": 1, "nameserver": "bogus"}, "memory"),
        ({"cpus": 1, "disk_size": 1, "nameserver": "bogus"}, "cpus"),
        ({"disk_size": 1, "nameserver": "bogus"}, "disk-size"),
        ({"bundle_path": "/nowhere/bundle.tar", "nameserver": "bogus"}, "bundle"),
        ({"nameserver": "999.1.1.1"}, "nameserver"),
    ],
)
def test_first_failing_field_is_reported(
    bundle_path: Path,
    overrides: dict[str, object],
    expected_field: str,
) -> None:
    with pytest.raises(ConfigValidationError) as exc_info:
        _validate(bundle_path, **overrides)
    assert exc_info.value.field == expected_field


def test_memory_error_names_minimum(bundle_path: Path) -> None:
    with pytest.raises(ConfigValidationError, match="9216"):
        _validate(bundle_path, memory=4096)


def test_empty_nameserver_is_not_checked(bundle_path: Path) -> None:
    _validate(bundle_path, nameserver="")


def test_bundle_must_have_bundle_extension(tmp_path: Path) -> None:
    bundle = tmp_path / "image.qcow2"
    bundle.write_bytes(b"")
    with pytest.raises(ConfigValidationError, match="must end in .crcbundle"):
        validate_bundle(str(bundle))


def test_bundle_must_exist(tmp_path: Path) -> None:
    with pytest.raises(ConfigValidationError, match="does not exist"):
        validate_bundle(str(tmp_path / "missing.crcbundle"))


@pytest.mark.parametrize("address", ["999.1.1.1", "1.2.3", "fe80::1", "dns.example.com"])
def test_invalid_ipv4_addresses_are_rejected(address: str) -> None:
    with pytest.raises(ConfigValidationError, match="not a valid IPv4 address"):
        validate_ip_address(address)


def test_validation_is_deterministic(bundle_path: Path) -> None:
    messages = []
    for _ in range(3):
        with pytest.raises(ConfigValidationError) as exc_info:
            _validate(bundle_path, cpus=2, nameserver="999.1.1.1")
        messages.append(str(exc_info.value))
    assert len(set(messages)) == 1
