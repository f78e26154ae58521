"""Adapters — bindings for the container runtime and privilege elevation.

Public re-exports for convenient access.
"""

from devenv_installer.adapters.base import ContainerRuntime, ElevatedExecutor
from devenv_installer.adapters.mock import MockExecutor, MockRuntime


def get_runtime(mock_mode: bool = False) -> ContainerRuntime:
    """Runtime used by the transports: docker, or the mock in mock mode."""
    if mock_mode:
        return MockRuntime()
    from devenv_installer.adapters.containers.docker import DockerComposeRuntime

    return DockerComposeRuntime()


__all__ = [
    "ContainerRuntime",
    "ElevatedExecutor",
    "MockExecutor",
    "MockRuntime",
    "get_runtime",
]
