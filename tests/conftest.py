from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from crc_cli.config import default_bundle_name

_CRC_ENV_VARS: tuple[str, ...] = (
    "CRC_LOG_DIR",
    "CRC_LOG_LEVEL",
    "CRC_BUNDLE",
    "CRC_PULL_SECRET_FILE",
    "CRC_CPUS",
    "CRC_MEMORY",
    "CRC_DISK_SIZE",
    "CRC_NAMESERVER",
    "CRC_NETWORK_MODE",
    "CRC_DAEMON_URL",
    "CRC_DISABLE_UPDATE_CHECK",
    "CRC_MACHINE_COMMAND",
    "CRC_START_TIMEOUT_SECONDS",
    "CRC_BUILD_VARIANT",
)


@pytest.fixture(autouse=True)
def crc_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "crc-home"
    home.mkdir()
    monkeypatch.setenv("CRC_HOME_DIR", str(home))
    for name in _CRC_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture(autouse=True)
def _restore_crc_logger() -> Iterator[None]:  # pyright: ignore[reportUnusedFunction]
    yield
    logger = logging.getLogger("crc")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def bundle_path(tmp_path: Path) -> Path:
    bundle = tmp_path / "bundles" / default_bundle_name()
    bundle.parent.mkdir(parents=True)
    bundle.write_bytes(b"bundle")
    return bundle
