"""
StepResult and Availability models — the execution contract.

Every provisioning step, container-runtime call and privileged
mutation reports its outcome through a ``StepResult``.  Adapters and
services NEVER raise for expected failures: the failure kind and
message are captured here and the orchestrator decides what to do.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    """Classification of a failed step."""

    PRECONDITION = "PreconditionFailure"   # runtime not installed / not running
    PROCESS = "ProcessFailure"             # subprocess exited nonzero
    LAUNCH = "LaunchFailure"               # subprocess could not start at all
    PRIVILEGE = "PrivilegeFailure"         # elevation denied / elevated cmd failed
    IO = "IOFailure"                       # filesystem errors unrelated to privilege
    VALIDATION = "ValidationFailure"       # malformed configuration
    CONFLICT = "ConflictFailure"           # another run is already active
    UNEXPECTED = "Unexpected"


class StepResult(BaseModel):
    """Outcome of one step.

    ``manual`` is only set by the hosts-file step: copy-pasteable
    instructions the user can follow when the automated edit fails.
    """

    ok: bool = True
    kind: ErrorKind | None = None
    error: str = ""
    manual: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return not self.ok

    @classmethod
    def success(cls, **data: Any) -> StepResult:
        """Create a success result, optionally carrying a payload."""
        return cls(ok=True, data=data)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        error: str,
        *,
        manual: str | None = None,
        **data: Any,
    ) -> StepResult:
        """Create a failure result."""
        return cls(ok=False, kind=kind, error=error, manual=manual, data=data)

    def to_dict(self) -> dict[str, Any]:
        """Wire shape shared by both transports: ``{success, error?, manual?}``."""
        out: dict[str, Any] = {"success": self.ok}
        if not self.ok:
            out["error"] = self.error
            if self.kind is not None:
                out["kind"] = self.kind.value
        if self.manual:
            out["manual"] = self.manual
        return out


class Availability(BaseModel):
    """Result of a read-only precondition check (installed / running)."""

    available: bool
    error: str = ""
    detail: str = ""


class ContainerState(BaseModel):
    """One row of ``docker compose ps``."""

    name: str = ""
    service: str = ""
    state: str = ""
    status: str = ""
    image: str = ""
    ports: str = ""
