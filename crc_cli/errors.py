from __future__ import annotations

from pydantic import BaseModel, ConfigDict

GENERIC_EXIT_CODE = 1
PREFLIGHT_FAILED_EXIT_CODE = 2

ERROR_KIND_GENERIC = "generic"
ERROR_KIND_PREFLIGHT = "preflight"


class CrcError(RuntimeError):
    """Base class for failures raised by the start pipeline."""

    kind: str = ERROR_KIND_GENERIC
    exit_code: int = GENERIC_EXIT_CODE


class ConfigValidationError(CrcError):
    kind = "config-validation"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class DaemonUnreachableError(CrcError):
    kind = "daemon-unreachable"


class VersionMismatchError(CrcError):
    kind = "version-mismatch"

    def __init__(self, *, client_version: str, daemon_version: str) -> None:
        super().__init__(
            f"The executable version ({client_version}) doesn't match "
            f"the daemon version ({daemon_version})"
        )
        self.client_version = client_version
        self.daemon_version = daemon_version


class PreflightError(CrcError):
    kind = ERROR_KIND_PREFLIGHT
    exit_code = PREFLIGHT_FAILED_EXIT_CODE


class BackendStartError(CrcError):
    kind = "backend-start"


class StartCancelledError(CrcError):
    kind = "cancelled"


class SerializableError(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: str
    message: str

    @property
    def is_preflight(self) -> bool:
        return self.kind == ERROR_KIND_PREFLIGHT


def to_serializable_error(error: BaseException | None) -> SerializableError | None:
    if error is None:
        return None
    kind = error.kind if isinstance(error, CrcError) else ERROR_KIND_GENERIC
    message = str(error) or type(error).__name__
    return SerializableError(kind=kind, message=message)


def exit_code_for(error: BaseException | None) -> int:
    if error is None:
        return 0
    if isinstance(error, CrcError):
        return error.exit_code
    return GENERIC_EXIT_CODE
