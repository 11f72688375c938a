from __future__ import annotations

import json
import shlex
import sys
import threading
from pathlib import Path

import pytest

from crc_cli.errors import BackendStartError, StartCancelledError
from crc_cli.execution import ExecutionContext
from crc_cli.models.start_contracts import StartConfig
from crc_cli.services.machine import MachineClient

# Invoked as: fake_machine.py <scenario> <request-file> <subcommand> [flags...]
_FAKE_MACHINE = """\
import json
import sys
import time

scenario, request_file, mode = sys.argv[1], sys.argv[2], sys.argv[3]

if mode == "status":
    if scenario == "broken":
        sys.stderr.write("libvirt connection failed\\n")
        sys.exit(3)
    print(json.dumps({"crcStatus": scenario}))
    sys.exit(0)

request = json.loads(sys.stdin.read())
if scenario == "slow":
    time.sleep(30)
if scenario == "fail":
    sys.stderr.write("not enough disk space\\n")
    sys.exit(1)
if scenario == "garbage":
    print("this is not json")
    sys.exit(0)
with open(request_file, "w", encoding="utf-8") as handle:
    json.dump(request, handle)
print(json.dumps({
    "status": "Running",
    "clusterConfig": {
        "clusterCACert": "-----BEGIN CERTIFICATE-----",
        "kubeadminPassword": "s3cr3t",
        "clusterAPI": "https://api.crc.testing:6443",
        "webConsoleURL": "https://console-openshift-console.apps-crc.testing",
    },
}))
"""


class _StaticSecret:
    def value(self) -> str:
        return '{"auths": {"example.com": {}}}'


def _client(tmp_path: Path, scenario: str) -> tuple[MachineClient, Path]:
    script = tmp_path / "fake_machine.py"
    script.write_text(_FAKE_MACHINE, encoding="utf-8")
    request_file = tmp_path / "request.json"
    command = " ".join(
        shlex.quote(part) for part in (sys.executable, str(script), scenario, str(request_file))
    )
    return MachineClient(command=command, poll_interval_seconds=0.05), request_file


def _start_config() -> StartConfig:
    return StartConfig(
        bundle_path="/tmp/crc_libvirt_4.7.0.crcbundle",
        memory=9216,
        disk_size=31,
        cpus=4,
        name_server="10.0.0.53",
        pull_secret=_StaticSecret(),
    )


@pytest.mark.parametrize(("status", "expected"), [("Running", True), ("Stopped", False)])
def test_is_running_reads_status(tmp_path: Path, status: str, expected: bool) -> None:
    client, _ = _client(tmp_path, status)
    assert client.is_running() is expected


def test_is_running_raises_on_status_failure(tmp_path: Path) -> None:
    client, _ = _client(tmp_path, "broken")
    with pytest.raises(RuntimeError, match="libvirt connection failed"):
        client.is_running()


def test_start_sends_request_and_parses_cluster_config(tmp_path: Path) -> None:
    client, request_file = _client(tmp_path, "ok")

    result = client.start(_start_config(), ExecutionContext())

    assert result.status == "Running"
    assert result.cluster_config.cluster_api == "https://api.crc.testing:6443"
    assert result.cluster_config.kubeadmin_password == "s3cr3t"
    assert json.loads(request_file.read_text(encoding="utf-8")) == {
        "bundlePath": "/tmp/crc_libvirt_4.7.0.crcbundle",
        "memory": 9216,
        "cpus": 4,
        "diskSize": 31,
        "nameServer": "10.0.0.53",
        "pullSecret": '{"auths": {"example.com": {}}}',
    }


def test_start_failure_surfaces_backend_stderr(tmp_path: Path) -> None:
    client, _ = _client(tmp_path, "fail")
    with pytest.raises(BackendStartError, match="not enough disk space"):
        client.start(_start_config(), ExecutionContext())


def test_start_rejects_invalid_json(tmp_path: Path) -> None:
    client, _ = _client(tmp_path, "garbage")
    with pytest.raises(BackendStartError, match="invalid JSON"):
        client.start(_start_config(), ExecutionContext())


def test_start_is_cancelled_by_context(tmp_path: Path) -> None:
    client, _ = _client(tmp_path, "slow")
    ctx = ExecutionContext()
    timer = threading.Timer(0.5, ctx.cancel)
    timer.start()
    try:
        with pytest.raises(StartCancelledError, match="start was cancelled"):
            client.start(_start_config(), ctx)
    finally:
        timer.cancel()


def test_start_honours_deadline(tmp_path: Path) -> None:
    client, _ = _client(tmp_path, "slow")
    with pytest.raises(StartCancelledError, match="did not finish before the start timeout"):
        client.start(_start_config(), ExecutionContext.with_timeout(0.5))


def test_start_does_not_spawn_when_already_cancelled(tmp_path: Path) -> None:
    client, request_file = _client(tmp_path, "ok")
    ctx = ExecutionContext()
    ctx.cancel()

    with pytest.raises(StartCancelledError):
        client.start(_start_config(), ctx)
    assert not request_file.exists()
