"""Local control-channel transport for an embedded UI."""

from devenv_installer.ui.channel.control import ControlChannel

__all__ = ["ControlChannel"]
