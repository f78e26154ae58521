"""
Provisioning configuration — what the UI asks us to build.

Constructed once per run by a transport (HTTP body, control-channel
payload, or YAML setup file) and handed to the orchestrator.  The
model is frozen: nothing mutates it while a run is in flight.

Wire names are camelCase (``workDir``, ``sshOption`` ...) because both
front-ends send them that way; snake_case is accepted as well.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator

# One lowercase letter per instance.
MAX_INSTANCES = 26

LOOPBACK = "127.0.0.1"


class SshOption(str, Enum):
    SKIP = "skip"
    COPY = "copy"
    GENERATE = "generate"


def instance_letter(index: int) -> str:
    """Letter suffix for 1-indexed instance *index* (1 → ``a``)."""
    if not 1 <= index <= MAX_INSTANCES:
        raise ValueError(f"Instance index out of range: {index}")
    return chr(96 + index)


def instance_name(index: int) -> str:
    """Hostname / container name for instance *index* (``instance-a``)."""
    return f"instance-{instance_letter(index)}"


class ProvisioningConfig(BaseModel):
    """Validated input for one provisioning run."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    work_dir: Path = Field(alias="workDir")
    instances: int = Field(default=5, ge=1, le=MAX_INSTANCES)
    base_port: int = Field(default=8787, alias="basePort", ge=1, le=65535)
    ssh_option: SshOption = Field(default=SshOption.SKIP, alias="sshOption")
    ssh_email: str = Field(default="", alias="sshEmail")
    github_username: str = Field(default="", alias="githubUsername")
    github_token: str = Field(default="", alias="githubToken", repr=False)
    setup_hosts: bool = Field(default=False, alias="setupHosts")

    # Pass-through fields, consumed only by the manifest generator
    container_port: int = Field(default=8787, alias="containerPort", ge=1, le=65535)
    share_host_config: bool = Field(default=False, alias="shareHostConfig")
    include_runner: bool = Field(default=False, alias="includeRunner")

    @model_validator(mode="after")
    def _check_consistency(self) -> ProvisioningConfig:
        last_port = self.base_port + self.instances - 1
        if last_port > 65535:
            raise ValueError(
                f"Port range {self.base_port}-{last_port} exceeds 65535"
            )
        if self.ssh_option is SshOption.GENERATE and not self.ssh_email.strip():
            raise ValueError("sshEmail is required when sshOption is 'generate'")
        return self

    # ── Derived values ──────────────────────────────────────────

    @property
    def has_github_auth(self) -> bool:
        return bool(self.github_username and self.github_token)

    @property
    def ssh_dir(self) -> Path:
        return self.work_dir / "ssh"

    def instance_names(self) -> list[str]:
        return [instance_name(i) for i in range(1, self.instances + 1)]

    def instance_port(self, index: int) -> int:
        return self.base_port + index - 1

    def instance_urls(self) -> list[str]:
        """Access URLs shown to the user once setup completes."""
        return [
            f"http://{instance_name(i)}:{self.instance_port(i)}"
            for i in range(1, self.instances + 1)
        ]
