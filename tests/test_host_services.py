from __future__ import annotations

import time
from pathlib import Path

import pytest

from crc_cli.config import load_settings
from crc_cli.errors import StartCancelledError
from crc_cli.execution import ExecutionContext
from crc_cli.services.preflight import (
    PreflightCheck,
    PreflightCheckFailed,
    PreflightRunner,
    default_preflight_checks,
)
from crc_cli.services.pull_secret import (
    InteractivePullSecretLoader,
    PullSecretError,
    validate_pull_secret,
)
from crc_cli.services.shell import ShellDetectionError, detect_shell, generate_usage_hint

VALID_SECRET = '{"auths": {"cloud.openshift.com": {"auth": "dG9rZW4="}}}'


def test_pull_secret_is_read_from_file_once(tmp_path: Path) -> None:
    secret_file = tmp_path / "pull-secret.json"
    secret_file.write_text(f"{VALID_SECRET}\n", encoding="utf-8")
    loader = InteractivePullSecretLoader(str(secret_file))

    assert loader.value() == VALID_SECRET
    secret_file.unlink()
    assert loader.value() == VALID_SECRET


def test_missing_pull_secret_file_is_reported(tmp_path: Path) -> None:
    loader = InteractivePullSecretLoader(str(tmp_path / "missing.json"))
    with pytest.raises(PullSecretError, match="cannot read pull secret file"):
        loader.value()


def test_pull_secret_prompt_on_interactive_terminal() -> None:
    prompts: list[str] = []

    def _prompt(message: str) -> str:
        prompts.append(message)
        return VALID_SECRET

    loader = InteractivePullSecretLoader("", prompt=_prompt, is_interactive=lambda: True)

    assert loader.value() == VALID_SECRET
    assert loader.value() == VALID_SECRET
    assert len(prompts) == 1
    assert "Please enter the pull secret" in prompts[0]


def test_pull_secret_without_file_or_terminal_fails() -> None:
    def _prompt(message: str) -> str:
        raise AssertionError(f"unexpected prompt: {message}")

    loader = InteractivePullSecretLoader("", prompt=_prompt, is_interactive=lambda: False)
    with pytest.raises(PullSecretError, match="--pull-secret-file"):
        loader.value()


@pytest.mark.parametrize(
    "content",
    ["", "not json", "[]", '{"auths": {}}', '{"registry": "quay.io"}'],
)
def test_invalid_pull_secret_content(content: str) -> None:
    with pytest.raises(PullSecretError):
        validate_pull_secret(content)


def test_preflight_runner_stops_at_first_problem() -> None:
    ran: list[str] = []

    def _check(name: str, problem: str | None) -> PreflightCheck:
        def _run() -> str | None:
            ran.append(name)
            return problem

        return PreflightCheck(name=name, description=f"Checking {name}", check=_run)

    runner = PreflightRunner(
        [
            _check("first", None),
            _check("second", "hypervisor is not available"),
            _check("third", None),
        ]
    )

    with pytest.raises(PreflightCheckFailed) as exc_info:
        runner.run()
    assert exc_info.value.check_name == "second"
    assert str(exc_info.value) == "hypervisor is not available"
    assert ran == ["first", "second"]


def test_default_preflight_checks_flag_missing_machine_executable() -> None:
    settings = load_settings()
    checks = {
        check.name: check
        for check in default_preflight_checks(
            settings.model_copy(update={"machine_command": "crc-machine-that-does-not-exist"})
        )
    }

    problem = checks["check-machine-executable"].check()

    assert problem is not None
    assert "crc-machine-that-does-not-exist" in problem


@pytest.mark.parametrize(
    ("platform", "environ", "expected"),
    [
        ("linux", {"SHELL": "/bin/bash"}, "bash"),
        ("darwin", {"SHELL": "/usr/local/bin/fish"}, "fish"),
        ("linux", {"SHELL": "/usr/bin/pwsh"}, "powershell"),
        ("win32", {"PSModulePath": "C:\\Modules"}, "powershell"),
        (
            "win32",
            {"PSModulePath": "C:\\Modules", "PROMPT": "$P$G", "ComSpec": "C:\\Windows\\cmd.exe"},
            "cmd",
        ),
    ],
)
def test_detect_shell(platform: str, environ: dict[str, str], expected: str) -> None:
    assert detect_shell(platform=platform, environ=environ) == expected


@pytest.mark.parametrize(
    ("platform", "environ"),
    [("linux", {}), ("linux", {"SHELL": "/bin/tcsh"}), ("win32", {})],
)
def test_detect_shell_failures(platform: str, environ: dict[str, str]) -> None:
    with pytest.raises(ShellDetectionError):
        detect_shell(platform=platform, environ=environ)


def test_usage_hints_per_shell() -> None:
    assert generate_usage_hint("bash", "crc oc-env") == "eval $(crc oc-env)"
    assert generate_usage_hint("fish", "crc oc-env") == "eval (crc oc-env)"
    assert generate_usage_hint("powershell", "crc oc-env") == "& crc oc-env | Invoke-Expression"
    assert generate_usage_hint("", "crc oc-env") == "eval $(crc oc-env)"


def test_execution_context_reports_cancellation() -> None:
    ctx = ExecutionContext()
    ctx.raise_if_cancelled("start")
    assert ctx.remaining(5) == 5

    ctx.cancel()

    assert ctx.cancelled is True
    with pytest.raises(StartCancelledError, match="start was cancelled"):
        ctx.raise_if_cancelled("start")


def test_execution_context_deadline() -> None:
    assert ExecutionContext.with_timeout(None).deadline is None
    assert ExecutionContext.with_timeout(0).deadline is None

    expired = ExecutionContext.with_timeout(0.01)
    time.sleep(0.05)
    assert expired.cancelled is True
    assert expired.remaining(5) == 0.0
    with pytest.raises(StartCancelledError, match="start timeout"):
        expired.raise_if_cancelled("start")
