"""devenv-installer — provision multi-instance containerized dev environments."""

__version__ = "0.1.0"
