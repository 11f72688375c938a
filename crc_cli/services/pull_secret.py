from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import cast

import click

from crc_cli.version import CRC_LANDING_PAGE_URL

LOGGER = logging.getLogger("crc.pull_secret")

PromptFn = Callable[[str], str]


class PullSecretError(RuntimeError):
    pass


def validate_pull_secret(content: str) -> None:
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as exc:
        raise PullSecretError(f"invalid pull secret: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise PullSecretError("invalid pull secret: expected a JSON object")
    auths = cast(dict[str, object], parsed).get("auths")
    if not isinstance(auths, dict) or not auths:
        raise PullSecretError("invalid pull secret: missing 'auths' entries")


def _prompt_hidden(message: str) -> str:
    return click.prompt(message, hide_input=True, prompt_suffix=" ")


class InteractivePullSecretLoader:
    """
    Lazily supplies the image pull secret.

    The secret is read from ``pull_secret_file`` when one is configured,
    otherwise the user is prompted for it on an interactive terminal. The
    first successful load is cached.
    """

    def __init__(
        self,
        pull_secret_file: str,
        *,
        prompt: PromptFn | None = None,
        is_interactive: Callable[[], bool] | None = None,
    ) -> None:
        self._pull_secret_file = pull_secret_file
        self._prompt = prompt or _prompt_hidden
        self._is_interactive = is_interactive or sys.stdin.isatty
        self._cached: str | None = None

    def value(self) -> str:
        if self._cached is None:
            content = self._load().strip()
            validate_pull_secret(content)
            self._cached = content
        return self._cached

    def _load(self) -> str:
        if self._pull_secret_file:
            path = Path(self._pull_secret_file)
            LOGGER.debug("loading pull secret from %s", path)
            try:
                return path.read_text(encoding="utf-8")
            except OSError as exc:
                raise PullSecretError(f"cannot read pull secret file {path}: {exc}") from exc

        if not self._is_interactive():
            raise PullSecretError(
                "no pull secret file configured; pass --pull-secret-file "
                f"(download it from {CRC_LANDING_PAGE_URL})"
            )
        return self._prompt(
            f"Please enter the pull secret (copy it from {CRC_LANDING_PAGE_URL})"
        )
