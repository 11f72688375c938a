from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from http.client import HTTPException
from pathlib import Path
from typing import cast
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from packaging.version import InvalidVersion, Version

CRC_VERSION = "1.22.0"
OPENSHIFT_VERSION = "4.7.0"

BUILD_VARIANT_OPENSHIFT = "openshift"
BUILD_VARIANT_OKD = "okd"

CRC_LANDING_PAGE_URL = "https://cloud.redhat.com/openshift/create/local"
RELEASE_INFO_URL = (
    "https://mirror.openshift.com/pub/openshift-v4/clients/crc/latest/release-info.json"
)
MACOS_INSTALL_PATH = "/Applications/CodeReady Containers.app"


class ReleaseInfoError(RuntimeError):
    pass


@dataclass(frozen=True)
class ReleaseInfo:
    crc_version: str
    openshift_version: str | None = None


def is_okd_build(build_variant: str) -> bool:
    return build_variant == BUILD_VARIANT_OKD


def is_macos_install_path_set(*, platform: str, executable: str | None = None) -> bool:
    """Return True when the running executable lives inside the macOS app bundle."""
    if platform != "darwin":
        return False
    candidate = executable if executable is not None else sys.argv[0]
    if not candidate:
        return False
    return Path(candidate).resolve().is_relative_to(Path(MACOS_INSTALL_PATH))


def fetch_release_info(url: str, *, timeout_seconds: float) -> ReleaseInfo:
    try:
        request = Request(url=url, headers={"Accept": "application/json"}, method="GET")
        with urlopen(request, timeout=max(1.0, timeout_seconds)) as response:
            raw_body = response.read().decode("utf-8", errors="replace")
    except HTTPError as exc:
        raise ReleaseInfoError(f"release info request failed: HTTP {exc.code}") from exc
    except URLError as exc:
        raise ReleaseInfoError(f"release info request failed: {exc.reason}") from exc
    except (HTTPException, OSError, ValueError) as exc:
        raise ReleaseInfoError(f"release info request failed: {exc}") from exc

    try:
        payload = json.loads(raw_body)
    except json.JSONDecodeError as exc:
        raise ReleaseInfoError("release info is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise ReleaseInfoError("release info is not a JSON object")

    version_block = cast(dict[str, object], payload).get("version")
    if not isinstance(version_block, dict):
        raise ReleaseInfoError("release info has no version block")
    version_fields = cast(dict[str, object], version_block)
    crc_version = version_fields.get("crcVersion")
    if not isinstance(crc_version, str) or not crc_version.strip():
        raise ReleaseInfoError("release info has no crcVersion")
    openshift_version = version_fields.get("ocpVersion")
    return ReleaseInfo(
        crc_version=crc_version.strip(),
        openshift_version=openshift_version if isinstance(openshift_version, str) else None,
    )


def new_version_available(
    current_version: str,
    *,
    release_info_url: str,
    timeout_seconds: float,
) -> tuple[bool, str]:
    """
    Compare the published release against ``current_version``.

    Returns ``(is_newer, latest_version)``. Raises ``ReleaseInfoError`` when
    the release information cannot be fetched or parsed.
    """
    release = fetch_release_info(release_info_url, timeout_seconds=timeout_seconds)
    try:
        is_newer = Version(release.crc_version) > Version(current_version)
    except InvalidVersion as exc:
        raise ReleaseInfoError(f"cannot compare versions: {exc}") from exc
    return is_newer, release.crc_version
