"""
Run sessions — at most one provisioning run at a time.

A ``Session`` is created when a run starts and finished when it
terminates.  Sessions are kept in a registry keyed by a generated run
id so a client can look up the outcome afterwards.  Starting a second
run while one is active raises ``ConflictError``; the caller reports
it instead of interleaving two pipelines on one sink.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field

from devenv_installer.core.models.result import StepResult
from devenv_installer.core.services.progress import ProgressSink

logger = logging.getLogger(__name__)

# Finished sessions kept for lookup
_HISTORY_LIMIT = 20


class ConflictError(Exception):
    """Raised when a run is requested while another is still active."""

    def __init__(self, active_run_id: str):
        self.active_run_id = active_run_id
        super().__init__(f"A setup run is already in progress ({active_run_id})")


@dataclass
class Session:
    run_id: str
    sink: ProgressSink
    started_at: float = field(default_factory=time.time)
    ended_at: float | None = None
    done: bool = False
    result: StepResult | None = None

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "done": self.done,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "result": self.result.to_dict() if self.result else None,
        }


class SessionRegistry:
    """Thread-safe registry of run sessions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: dict[str, Session] = {}
        self._active: str | None = None

    def start(self, sink: ProgressSink) -> Session:
        """Open a session for a new run.

        Raises:
            ConflictError: If another session is still active.
        """
        with self._lock:
            if self._active is not None:
                raise ConflictError(self._active)
            session = Session(run_id=uuid.uuid4().hex, sink=sink)
            self._sessions[session.run_id] = session
            self._active = session.run_id
            self._prune()
        logger.info("Setup session %s started", session.run_id)
        return session

    def finish(self, run_id: str, result: StepResult) -> None:
        with self._lock:
            session = self._sessions.get(run_id)
            if session is None:
                return
            session.done = True
            session.ended_at = time.time()
            session.result = result
            if self._active == run_id:
                self._active = None
        logger.info("Setup session %s finished (ok=%s)", run_id, result.ok)

    def get(self, run_id: str) -> Session | None:
        with self._lock:
            return self._sessions.get(run_id)

    def active(self) -> Session | None:
        with self._lock:
            return self._sessions.get(self._active) if self._active else None

    def _prune(self) -> None:
        done = [s for s in self._sessions.values() if s.done]
        for s in done[: max(0, len(done) - _HISTORY_LIMIT)]:
            del self._sessions[s.run_id]
