from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, model_validator

from crc_cli.errors import BackendStartError, SerializableError, to_serializable_error

ADMIN_USERNAME = "kubeadmin"
DEVELOPER_USERNAME = "developer"
DEVELOPER_PASSWORD = "developer"


class PullSecretProvider(Protocol):
    def value(self) -> str:
        ...


@dataclass(frozen=True)
class StartConfig:
    bundle_path: str
    memory: int
    disk_size: int
    cpus: int
    name_server: str
    pull_secret: PullSecretProvider


@dataclass(frozen=True)
class MachineClusterConfig:
    cluster_ca_cert: str
    kubeadmin_password: str
    cluster_api: str
    web_console_url: str


@dataclass(frozen=True)
class MachineStartResult:
    """What the provisioning backend reports after a successful start."""

    status: str
    cluster_config: MachineClusterConfig


class Credentials(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    username: str
    password: str


class ClusterConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    cluster_ca_cert: str = Field(alias="cacert")
    web_console_url: str = Field(alias="webConsoleUrl")
    url: str
    admin_credentials: Credentials = Field(alias="adminCredentials")
    developer_credentials: Credentials = Field(alias="developerCredentials")

    @classmethod
    def from_machine_result(cls, result: MachineStartResult) -> ClusterConfig:
        machine_config = result.cluster_config
        return cls(
            cluster_ca_cert=machine_config.cluster_ca_cert,
            web_console_url=machine_config.web_console_url,
            url=machine_config.cluster_api,
            admin_credentials=Credentials(
                username=ADMIN_USERNAME,
                password=machine_config.kubeadmin_password,
            ),
            developer_credentials=Credentials(
                username=DEVELOPER_USERNAME,
                password=DEVELOPER_PASSWORD,
            ),
        )


class StartResult(BaseModel):
    """
    Rendered outcome of ``crc start``.

    A successful result carries a cluster config and no error; a failed
    result carries an error and no cluster config.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    success: bool
    error: SerializableError | None = None
    cluster_config: ClusterConfig | None = Field(default=None, alias="clusterConfig")

    @model_validator(mode="after")
    def _check_outcome_is_consistent(self) -> StartResult:
        if self.success:
            if self.error is not None or self.cluster_config is None:
                raise ValueError("a successful start result needs a cluster config and no error")
        elif self.cluster_config is not None:
            raise ValueError("a failed start result cannot carry a cluster config")
        return self

    @classmethod
    def from_outcome(
        cls,
        machine_result: MachineStartResult | None,
        error: SerializableError | None,
    ) -> StartResult:
        if error is not None:
            return cls(success=False, error=error)
        if machine_result is None:
            return cls(
                success=False,
                error=to_serializable_error(
                    BackendStartError("provisioning backend returned no result")
                ),
            )
        return cls(
            success=True,
            cluster_config=ClusterConfig.from_machine_result(machine_result),
        )
