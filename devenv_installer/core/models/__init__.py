"""
Domain models — Pydantic types for the installer.

All models are re-exported here for convenient access:

    from devenv_installer.core.models import ProvisioningConfig, StepResult, ProgressEvent
"""

from devenv_installer.core.models.config import (
    LOOPBACK,
    MAX_INSTANCES,
    ProvisioningConfig,
    SshOption,
    instance_letter,
    instance_name,
)
from devenv_installer.core.models.progress import (
    ERROR_PERCENT,
    OutputChunk,
    ProgressEvent,
    Step,
)
from devenv_installer.core.models.result import (
    Availability,
    ContainerState,
    ErrorKind,
    StepResult,
)

__all__ = [
    # config.py
    "LOOPBACK",
    "MAX_INSTANCES",
    "ProvisioningConfig",
    "SshOption",
    "instance_letter",
    "instance_name",
    # progress.py
    "ERROR_PERCENT",
    "OutputChunk",
    "ProgressEvent",
    "Step",
    # result.py
    "Availability",
    "ContainerState",
    "ErrorKind",
    "StepResult",
]
