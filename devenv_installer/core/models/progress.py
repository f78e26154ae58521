"""
Progress events — what a run reports while it executes.

Two shapes flow through a ``ProgressSink``:

    ProgressEvent  — a step boundary: {step, message, percent}
    OutputChunk    — raw text produced by a running subprocess

``percent`` is 0..100, or -1 for the single ``error`` event.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

ERROR_PERCENT = -1


class Step(str, Enum):
    INIT = "init"
    DIRECTORIES = "directories"
    SSH = "ssh"
    GITHUB = "github"
    COMPOSE = "compose"
    HOSTS = "hosts"
    BUILD = "build"
    START = "start"
    COMPLETE = "complete"
    ERROR = "error"


class ProgressEvent(BaseModel):
    """A step-boundary update."""

    step: Step
    message: str
    percent: int = Field(ge=ERROR_PERCENT, le=100)

    @model_validator(mode="after")
    def _check_percent(self) -> ProgressEvent:
        if (self.percent == ERROR_PERCENT) != (self.step is Step.ERROR):
            raise ValueError("percent -1 is reserved for the error step")
        return self

    @classmethod
    def error(cls, message: str) -> ProgressEvent:
        return cls(step=Step.ERROR, message=message, percent=ERROR_PERCENT)

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step.value, "message": self.message, "percent": self.percent}


class OutputChunk(BaseModel):
    """A chunk of subprocess output, forwarded as it arrives."""

    chunk: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "docker", "output": self.chunk}
