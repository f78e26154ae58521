from devenv_installer.adapters.containers.docker import DockerComposeRuntime, parse_compose_ps

__all__ = ["DockerComposeRuntime", "parse_compose_ps"]
