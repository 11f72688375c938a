from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from rich.console import Console

from crc_cli.models.start_contracts import ClusterConfig, StartResult
from crc_cli.services.shell import ShellDetectionError, detect_shell, generate_usage_hint
from crc_cli.version import BUILD_VARIANT_OPENSHIFT, is_okd_build

LOGGER = logging.getLogger("crc.render")

OUTPUT_FORMAT_HUMAN = ""
OUTPUT_FORMAT_JSON = "json"
OC_ENV_COMMAND = "crc oc-env"
PREFLIGHT_HINT = (
    "Preflight checks failed during `crc start`, please try to run `crc setup` first "
    "in case you haven't done so yet"
)
OKD_NOTICE: tuple[str, ...] = (
    "",
    "NOTE:",
    "This cluster was built from OKD - The Community Distribution of Kubernetes "
    "that powers Red Hat OpenShift.",
    "If you find an issue, please report it at https://github.com/openshift/okd",
)


class RenderError(RuntimeError):
    pass


@dataclass(frozen=True)
class RenderEnvironment:
    platform: str
    shell: str = ""
    build_variant: str = BUILD_VARIANT_OPENSHIFT


def detect_render_environment(
    *,
    platform: str,
    build_variant: str,
    environ: Mapping[str, str] | None = None,
) -> RenderEnvironment:
    try:
        shell = detect_shell(platform=platform, environ=os.environ if environ is None else environ)
    except ShellDetectionError as exc:
        LOGGER.debug("cannot detect the user's shell, using the default hint: %s", exc)
        shell = ""
    return RenderEnvironment(platform=platform, shell=shell, build_variant=build_variant)


def command_line_prefix(platform: str, shell: str) -> str:
    if platform.startswith("win"):
        if shell == "powershell":
            return "PS>"
        return ">"
    return "$"


def _block(title: str, *items: str) -> list[str]:
    return [title, *(f"  {item}" for item in items)]


def format_cluster_report(cluster_config: ClusterConfig, environment: RenderEnvironment) -> str:
    prefix = command_line_prefix(environment.platform, environment.shell)
    admin = cluster_config.admin_credentials
    developer = cluster_config.developer_credentials

    lines = [
        "Started the OpenShift cluster.",
        "",
        *_block("The server is accessible via web console at:", cluster_config.web_console_url),
        "",
        *_block(
            "Log in as administrator:",
            f"Username: {admin.username}",
            f"Password: {admin.password}",
        ),
        "",
        *_block(
            "Log in as user:",
            f"Username: {developer.username}",
            f"Password: {developer.password}",
        ),
        "",
        *_block(
            "Use the 'oc' command line interface:",
            f"{prefix} {generate_usage_hint(environment.shell, OC_ENV_COMMAND)}",
            f"{prefix} oc login -u {developer.username} {cluster_config.url}",
        ),
    ]
    if is_okd_build(environment.build_variant):
        lines.extend(OKD_NOTICE)
    return "\n".join(lines)


def format_structured(result: StartResult) -> str:
    return result.model_dump_json(by_alias=True, indent=2)


class ResultRenderer:
    """Writes a start result as JSON or as the human-readable report."""

    def __init__(
        self,
        *,
        output_format: str,
        environment: RenderEnvironment,
        stdout: Console | None = None,
        stderr: Console | None = None,
    ) -> None:
        self._output_format = output_format
        self._environment = environment
        self._stdout = stdout or Console(highlight=False, emoji=False, soft_wrap=True)
        self._stderr = stderr or Console(stderr=True, highlight=False, emoji=False, soft_wrap=True)

    def render(self, result: StartResult) -> None:
        if self._output_format == OUTPUT_FORMAT_JSON:
            self._stdout.print(format_structured(result), markup=False)
            return
        self._render_human(result)

    def _render_human(self, result: StartResult) -> None:
        if result.error is not None:
            if result.error.is_preflight:
                self._stderr.print(PREFLIGHT_HINT, style="yellow", markup=False)
            self._stderr.print(result.error.message, style="red", markup=False)
            return
        if result.cluster_config is None:
            raise RenderError("either Error or ClusterConfig is needed")
        self._stdout.print(
            format_cluster_report(result.cluster_config, self._environment),
            markup=False,
        )
