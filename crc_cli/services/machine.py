"""Adapter around the provisioning executable that owns the cluster VM."""

from __future__ import annotations

import json
import logging
import shlex
import subprocess
from typing import Any, Protocol, cast

from crc_cli.errors import BackendStartError
from crc_cli.execution import ExecutionContext
from crc_cli.models.start_contracts import MachineClusterConfig, MachineStartResult, StartConfig

LOGGER = logging.getLogger("crc.machine")

STATUS_RUNNING = "Running"


class MachineBackend(Protocol):
    def is_running(self) -> bool:
        ...

    def start(self, start_config: StartConfig, ctx: ExecutionContext) -> MachineStartResult:
        ...


class MachineClient:
    """
    Drives ``crc-machine`` (or whatever ``command`` names) over JSON stdio.

    ``status --output json`` must print ``{"crcStatus": ...}``. ``start``
    reads the start request as JSON on stdin and prints the cluster config
    as JSON on stdout.
    """

    def __init__(self, *, command: str, poll_interval_seconds: float = 0.2) -> None:
        self._command = shlex.split(command)
        self._poll_interval_seconds = max(0.05, poll_interval_seconds)

    def is_running(self) -> bool:
        result = subprocess.run(
            [*self._command, "status", "--output", "json"],
            text=True,
            capture_output=True,
            check=False,
        )
        if result.returncode != 0:
            raise RuntimeError(result.stderr.strip() or "status command failed")
        payload = _decode_object(result.stdout)
        return payload.get("crcStatus") == STATUS_RUNNING

    def start(self, start_config: StartConfig, ctx: ExecutionContext) -> MachineStartResult:
        ctx.raise_if_cancelled("start")
        request = json.dumps(
            {
                "bundlePath": start_config.bundle_path,
                "memory": start_config.memory,
                "cpus": start_config.cpus,
                "diskSize": start_config.disk_size,
                "nameServer": start_config.name_server,
                "pullSecret": start_config.pull_secret.value(),
            }
        )
        stdout, stderr, returncode = self._run_cancellable(
            [*self._command, "start", "--config", "-"],
            input_data=request,
            ctx=ctx,
        )
        if returncode != 0:
            raise BackendStartError(stderr.strip() or f"start command exited with {returncode}")
        return _parse_start_result(_decode_object(stdout))

    def _run_cancellable(
        self,
        args: list[str],
        *,
        input_data: str,
        ctx: ExecutionContext,
    ) -> tuple[str, str, int]:
        LOGGER.debug("running %s", " ".join(args))
        with subprocess.Popen(
            args,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        ) as process:
            pending_input: str | None = input_data
            while True:
                try:
                    stdout, stderr = process.communicate(
                        input=pending_input,
                        timeout=self._poll_interval_seconds,
                    )
                    return stdout, stderr, process.returncode
                except subprocess.TimeoutExpired:
                    pending_input = None
                    if ctx.cancelled:
                        process.kill()
                        process.communicate()
                        ctx.raise_if_cancelled("start")


def _decode_object(raw: str) -> dict[str, Any]:
    if not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise BackendStartError(f"provisioning backend returned invalid JSON: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise BackendStartError("provisioning backend returned a non-object JSON payload")
    return cast(dict[str, Any], parsed)


def _parse_start_result(payload: dict[str, Any]) -> MachineStartResult:
    cluster_config = payload.get("clusterConfig")
    if not isinstance(cluster_config, dict):
        raise BackendStartError("provisioning backend did not report a cluster config")
    fields = cast(dict[str, Any], cluster_config)

    def _text(key: str) -> str:
        value = fields.get(key)
        if not isinstance(value, str):
            raise BackendStartError(f"cluster config is missing '{key}'")
        return value

    return MachineStartResult(
        status=str(payload.get("status") or STATUS_RUNNING),
        cluster_config=MachineClusterConfig(
            cluster_ca_cert=_text("clusterCACert"),
            kubeadmin_password=_text("kubeadminPassword"),
            cluster_api=_text("clusterAPI"),
            web_console_url=_text("webConsoleURL"),
        ),
    )
