"""
Compose generation — render docker-compose.yml from a ProvisioningConfig.

One service per instance, all built from the Dockerfile in the work
directory.  The manifest is not validated here: ``docker compose
build`` is the judge of that.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from devenv_installer.core.models.config import ProvisioningConfig, SshOption, instance_letter
from devenv_installer.core.models.result import ErrorKind, StepResult
from devenv_installer.core.services.workspace_ops import HOMES_DIR

logger = logging.getLogger(__name__)

COMPOSE_FILE = "docker-compose.yml"
IMAGE_NAME = "devenv-instance:latest"


def render_compose(config: ProvisioningConfig) -> dict:
    """Build the compose document as a plain dict."""
    services: dict[str, dict] = {}

    for i in range(1, config.instances + 1):
        letter = instance_letter(i)
        name = f"instance-{letter}"
        user = f"user_{letter}"

        service: dict = {
            "build": {"context": "."},
            "image": IMAGE_NAME,
            "container_name": name,
            "hostname": name,
            "ports": [f"{config.instance_port(i)}:{config.container_port}"],
            "environment": {
                "INSTANCE_NAME": name,
                "USER": user,
                "PASSWORD": user,
            },
            "volumes": [f"./{HOMES_DIR}/{name}:/home/{user}"],
            "restart": "unless-stopped",
        }
        if config.ssh_option is not SshOption.SKIP:
            service["volumes"].append(f"./ssh:/home/{user}/.ssh:ro")
        if config.share_host_config:
            service["volumes"].append(f"./shared:/home/{user}/shared")
        services[name] = service

    if config.include_runner:
        services["runner"] = {
            "build": {"context": ".", "dockerfile": "Dockerfile.runner"},
            "container_name": "runner",
            "volumes": [f"./{HOMES_DIR}:/workspaces"],
            "restart": "unless-stopped",
        }

    return {"name": "devenv", "services": services}


def generate_compose_file(config: ProvisioningConfig) -> StepResult:
    """Write ``docker-compose.yml`` into the work directory."""
    compose = render_compose(config)
    content = "# Generated by devenv-installer\n"
    content += yaml.dump(
        compose,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )

    path: Path = config.work_dir / COMPOSE_FILE
    try:
        if config.share_host_config:
            (config.work_dir / "shared").mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        return StepResult.failure(ErrorKind.IO, f"Could not write {COMPOSE_FILE}: {e}")

    logger.info("Wrote %s (%d service(s))", path, len(compose["services"]))
    return StepResult.success(path=str(path), services=list(compose["services"]))
