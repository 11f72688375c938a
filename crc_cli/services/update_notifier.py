from __future__ import annotations

import logging
from collections.abc import Callable

from crc_cli.version import CRC_LANDING_PAGE_URL, ReleaseInfoError, new_version_available

LOGGER = logging.getLogger("crc.update")

VersionSource = Callable[[], tuple[bool, str]]


class UpdateNotifier:
    """
    Best-effort "newer release available" notice.

    ``notify`` only ever logs. Failures to reach or parse the release
    information are logged at debug level and dropped; they never change the
    outcome of ``crc start``.
    """

    def __init__(
        self,
        *,
        current_version: str,
        release_info_url: str,
        timeout_seconds: float,
        version_source: VersionSource | None = None,
    ) -> None:
        self._current_version = current_version
        self._release_info_url = release_info_url
        self._timeout_seconds = timeout_seconds
        self._version_source = version_source or self._query_release_info

    def notify(self, *, skip: bool) -> None:
        if skip:
            return
        try:
            is_newer, latest_version = self._version_source()
        except (ReleaseInfoError, OSError) as exc:
            LOGGER.debug("Unable to find out if a new version is available: %s", exc)
            return

        if is_newer:
            LOGGER.warning(
                "A new version (%s) has been published on %s",
                latest_version,
                CRC_LANDING_PAGE_URL,
            )
            return
        LOGGER.debug("No new version available. The latest version is %s", latest_version)

    def _query_release_info(self) -> tuple[bool, str]:
        return new_version_available(
            self._current_version,
            release_info_url=self._release_info_url,
            timeout_seconds=self._timeout_seconds,
        )
