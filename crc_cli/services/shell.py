from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import PurePath, PureWindowsPath

SUPPORTED_SHELLS: frozenset[str] = frozenset({"bash", "zsh", "sh", "fish", "powershell", "cmd"})


class ShellDetectionError(RuntimeError):
    pass


def detect_shell(
    *,
    platform: str,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Guess the user's shell from environment variables."""
    env = os.environ if environ is None else environ

    if platform.startswith("win"):
        if env.get("PSModulePath") and not env.get("PROMPT"):
            return "powershell"
        comspec = env.get("ComSpec")
        if comspec:
            return _normalize(PureWindowsPath(comspec).stem)
        raise ShellDetectionError("neither PSModulePath nor ComSpec is set")

    shell_path = env.get("SHELL")
    if not shell_path:
        raise ShellDetectionError("SHELL is not set")
    shell = _normalize(PurePath(shell_path).name)
    if shell not in SUPPORTED_SHELLS:
        raise ShellDetectionError(f"unsupported shell: {shell}")
    return shell


def generate_usage_hint(shell: str, command: str) -> str:
    if shell == "fish":
        return f"eval ({command})"
    if shell == "powershell":
        return f"& {command} | Invoke-Expression"
    if shell == "cmd":
        return f"@FOR /f \"tokens=*\" %i IN ('{command}') DO @call %i"
    return f"eval $({command})"


def _normalize(name: str) -> str:
    lowered = name.lower()
    if lowered in {"pwsh", "powershell"}:
        return "powershell"
    return lowered
