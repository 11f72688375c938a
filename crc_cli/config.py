from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Literal, cast

import yaml
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from crc_cli.version import (
    BUILD_VARIANT_OKD,
    BUILD_VARIANT_OPENSHIFT,
    OPENSHIFT_VERSION,
    RELEASE_INFO_URL,
)

DEFAULT_HOME_DIR = "~/.crc"
CONFIG_FILE_NAME = "config.yaml"
DEFAULT_CPUS = 4
DEFAULT_MEMORY_MIB = 9216
DEFAULT_DISK_SIZE_GIB = 31
NETWORK_MODE_SYSTEM = "system"
NETWORK_MODE_USER = "user"
_HOME_RELATIVE_DEFAULTS: tuple[tuple[str, Path], ...] = (
    ("log_dir", Path("logs")),
)
_PATH_FIELDS: tuple[str, ...] = (
    "home_dir",
    *(field_name for field_name, _ in _HOME_RELATIVE_DEFAULTS),
)
_BOOLEAN_COERCION_FIELDS: tuple[str, ...] = ("disable_update_check",)


def default_hypervisor(platform: str = sys.platform) -> str:
    if platform == "darwin":
        return "hyperkit"
    if platform.startswith("win"):
        return "hyperv"
    return "libvirt"


def default_bundle_name(platform: str = sys.platform) -> str:
    return f"crc_{default_hypervisor(platform)}_{OPENSHIFT_VERSION}.crcbundle"


def default_network_mode(platform: str = sys.platform) -> str:
    if platform.startswith("linux"):
        return NETWORK_MODE_SYSTEM
    return NETWORK_MODE_USER


def _resolve_path(value: str | Path) -> Path:
    return Path(value).expanduser().resolve()


def _parse_bool_with_default(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value == 1:
            return True
        if value == 0:
            return False
        return default
    if not isinstance(value, str):
        return default

    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


class AppSettings(BaseSettings):
    """
    Resolved configuration for a single ``crc`` invocation.

    Values come from, highest priority first: explicit command-line flags,
    ``CRC_*`` environment variables, ``<home_dir>/config.yaml`` and the
    defaults declared here.
    """

    model_config = SettingsConfigDict(
        env_prefix="CRC_",
        extra="ignore",
        frozen=True,
    )

    # Local state.
    home_dir: Path = Field(
        default=Path(DEFAULT_HOME_DIR),
        description="Directory holding the config file, cached bundles and logs.",
    )
    log_dir: Path = Field(
        default=Path(DEFAULT_HOME_DIR) / "logs",
        description="Directory for the debug log. Defaults to `${CRC_HOME_DIR}/logs`.",
    )
    log_level: str = Field(
        default="info",
        description="Console log level (debug, info, warning, error).",
    )

    # Virtual machine shape.
    bundle: str = Field(
        default=str(Path(DEFAULT_HOME_DIR) / "cache" / default_bundle_name()),
        description="System bundle used for deployment of the OpenShift cluster.",
    )
    pull_secret_file: str = Field(
        default="",
        description="File path of the image pull secret. Prompted for when empty.",
    )
    cpus: int = Field(default=DEFAULT_CPUS, description="Number of CPU cores for the cluster.")
    memory: int = Field(default=DEFAULT_MEMORY_MIB, description="MiB of memory for the cluster.")
    disk_size: int = Field(
        default=DEFAULT_DISK_SIZE_GIB,
        description="Total size in GiB of the disk used by the cluster.",
    )
    nameserver: str = Field(
        default="",
        description="IPv4 address of the nameserver for the cluster. Empty means unset.",
    )

    # Daemon and networking.
    network_mode: Literal["system", "user"] = Field(
        default_factory=lambda: cast(Literal["system", "user"], default_network_mode()),
        description="`system` networking needs no daemon; `user` networking goes through it.",
    )
    daemon_url: str = Field(
        default="http://127.0.0.1:7655",
        description="Base URL of the crc daemon HTTP API.",
    )
    daemon_timeout_seconds: float = Field(default=5.0)

    # Update check.
    disable_update_check: bool = Field(default=False, description="Don't check for update.")
    update_check_url: str = Field(default=RELEASE_INFO_URL)
    update_check_timeout_seconds: float = Field(default=10.0)

    # Backend.
    machine_command: str = Field(
        default="crc-machine",
        description="Provisioning executable driven by `crc start`.",
    )
    start_timeout_seconds: float | None = Field(
        default=None,
        description="Abort the backend start after this many seconds. Unset means no limit.",
    )
    build_variant: Literal["openshift", "okd"] = Field(
        default=BUILD_VARIANT_OPENSHIFT,
        description="Distribution flavour of this build; `okd` adds a community notice.",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("CRC_LOG_LEVEL must be a string.")
        normalized = value.strip().lower()
        if normalized in {"debug", "info", "warning", "error"}:
            return normalized
        raise ValueError("CRC_LOG_LEVEL must be set to: debug, info, warning, error.")

    @field_validator("network_mode", mode="before")
    @classmethod
    def _normalize_network_mode(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("CRC_NETWORK_MODE must be a string.")
        normalized = value.strip().lower()
        if normalized in {NETWORK_MODE_SYSTEM, NETWORK_MODE_USER}:
            return normalized
        raise ValueError("CRC_NETWORK_MODE must be set to: system, user.")

    @field_validator("build_variant", mode="before")
    @classmethod
    def _normalize_build_variant(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("CRC_BUILD_VARIANT must be a string.")
        normalized = value.strip().lower()
        if normalized in {BUILD_VARIANT_OPENSHIFT, BUILD_VARIANT_OKD}:
            return normalized
        raise ValueError("CRC_BUILD_VARIANT must be set to: openshift, okd.")

    @field_validator("daemon_url", mode="before")
    @classmethod
    def _normalize_daemon_url(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("CRC_DAEMON_URL must be a string.")
        normalized = value.strip().rstrip("/")
        if not normalized:
            raise ValueError("CRC_DAEMON_URL must not be empty.")
        return normalized

    @field_validator("bundle", "pull_secret_file", mode="before")
    @classmethod
    def _expand_user_paths(cls, value: Any) -> Any:
        if isinstance(value, Path):
            value = str(value)
        if isinstance(value, str) and value.strip():
            return str(Path(value.strip()).expanduser())
        return value

    @field_validator("nameserver", mode="before")
    @classmethod
    def _strip_nameserver(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator(*_PATH_FIELDS, mode="before")
    @classmethod
    def _normalize_paths(cls, value: Any) -> Any:
        if value is None:
            return None
        return _resolve_path(value)

    @field_validator(*_BOOLEAN_COERCION_FIELDS, mode="before")
    @classmethod
    def _normalize_booleans(cls, value: Any, info: ValidationInfo) -> bool:
        field_name = info.field_name
        assert field_name is not None
        default_value = cls.model_fields[field_name].default
        assert isinstance(default_value, bool)
        return _parse_bool_with_default(value, default=default_value)


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    with open(path, encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping of option names to values.")
    return {str(key).replace("-", "_"): value for key, value in cast(dict[Any, Any], data).items()}


def _apply_home_defaults(settings: AppSettings) -> AppSettings:
    updates: dict[str, Any] = {}
    for field_name, relative_default in _HOME_RELATIVE_DEFAULTS:
        if field_name in settings.model_fields_set:
            continue
        updates[field_name] = _resolve_path(settings.home_dir / relative_default)
    if "bundle" not in settings.model_fields_set:
        updates["bundle"] = str(settings.home_dir / "cache" / default_bundle_name())
    if not updates:
        return settings
    return settings.model_copy(update=updates)


def load_settings(*, config_file: Path | None = None, **overrides: Any) -> AppSettings:
    """
    Resolve settings for one invocation.

    ``overrides`` holds explicitly passed command-line values; ``None`` means
    the flag was not given and lower-priority sources apply.
    """
    from_environment = AppSettings()
    path = config_file if config_file is not None else from_environment.home_dir / CONFIG_FILE_NAME
    file_values = {
        key: value
        for key, value in _read_config_file(path).items()
        if key in AppSettings.model_fields and key not in from_environment.model_fields_set
    }
    explicit_values = {key: value for key, value in overrides.items() if value is not None}

    settings = AppSettings(**{**file_values, **explicit_values})
    return _apply_home_defaults(settings)
