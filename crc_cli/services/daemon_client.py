from __future__ import annotations

import json
from dataclasses import dataclass
from http.client import HTTPException
from typing import cast
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from crc_cli.execution import ExecutionContext


class DaemonApiError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class DaemonVersion:
    crc_version: str
    openshift_version: str | None = None
    commit_sha: str | None = None


class DaemonClient:
    """Client for the JSON API served by ``crc daemon``."""

    def __init__(self, *, base_url: str, timeout_seconds: float) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = max(1.0, float(timeout_seconds))

    def version(self, ctx: ExecutionContext) -> DaemonVersion:
        payload = self._get_json("/api/version", ctx)
        crc_version = payload.get("CrcVersion")
        if not isinstance(crc_version, str) or not crc_version:
            raise DaemonApiError("daemon version response has no CrcVersion")
        return DaemonVersion(
            crc_version=crc_version,
            openshift_version=_to_optional_text(payload.get("OpenshiftVersion")),
            commit_sha=_to_optional_text(payload.get("CommitSha")),
        )

    def _get_json(self, path: str, ctx: ExecutionContext) -> dict[str, object]:
        if ctx.cancelled:
            raise DaemonApiError("request cancelled before it was sent")
        timeout = ctx.remaining(self._timeout_seconds)
        if timeout <= 0:
            raise DaemonApiError("no time left to query the daemon")

        try:
            request = Request(
                url=f"{self._base_url}{path}",
                headers={"Accept": "application/json"},
                method="GET",
            )
            with urlopen(request, timeout=timeout) as response:
                raw_body = response.read().decode("utf-8", errors="replace")
        except HTTPError as exc:
            raise DaemonApiError(
                f"daemon API returned HTTP {exc.code}",
                status_code=exc.code,
            ) from exc
        except URLError as exc:
            raise DaemonApiError(f"{exc.reason}") from exc
        except TimeoutError as exc:
            raise DaemonApiError("timed out waiting for the daemon API") from exc
        except (HTTPException, OSError) as exc:
            raise DaemonApiError(f"daemon API connection failed: {exc}") from exc
        except ValueError as exc:
            raise DaemonApiError(f"invalid daemon URL {self._base_url!r}: {exc}") from exc

        try:
            parsed = json.loads(raw_body)
        except json.JSONDecodeError as exc:
            raise DaemonApiError("daemon API returned invalid JSON") from exc
        if not isinstance(parsed, dict):
            raise DaemonApiError("daemon API returned a non-object JSON payload")
        return cast(dict[str, object], parsed)


def _to_optional_text(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
