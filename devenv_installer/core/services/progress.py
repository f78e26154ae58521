"""
Progress sinks — deliver run events to whoever is observing.

The orchestrator only knows ``ProgressSink.emit``.  Each transport
supplies an adapter with no business logic of its own:

    PushChannelSink      in-process push (control channel / embedded UI)
    BroadcastStreamSink  single-subscriber SSE stream (HTTP client)
    NullSink             nobody is watching

Thread safety model (BroadcastStreamSink)
─────────────────────────────────────────
Flask serves ``/api/setup/stream`` and ``/api/setup/run`` on different
threads.  ``_lock`` protects the subscriber slot; each subscriber owns
a ``queue.Queue`` that ``emit`` pushes into and the SSE generator
drains.  A new subscriber replaces the previous one, and a
disconnecting subscriber only clears the slot if it still owns it.
"""

from __future__ import annotations

import logging
import queue
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Generator
from typing import Any

from devenv_installer.core.models.progress import OutputChunk, ProgressEvent

logger = logging.getLogger(__name__)

Event = ProgressEvent | OutputChunk

# Push-channel names shared with the embedded UI
PROGRESS_CHANNEL = "setup-progress"
OUTPUT_CHANNEL = "docker-output"


class ProgressSink(ABC):
    """Receives step and output events, regardless of transport."""

    @abstractmethod
    def emit(self, event: Event) -> None:
        """Deliver *event*.  Must not raise for a missing observer."""


class NullSink(ProgressSink):
    def emit(self, event: Event) -> None:
        pass


class PushChannelSink(ProgressSink):
    """Forward events as out-of-band pushes: ``send(channel, payload)``.

    Progress events go to ``setup-progress`` as ``{step, message,
    percent}``; output chunks go to ``docker-output`` as the bare text.
    """

    def __init__(self, send: Callable[[str, Any], None]):
        self._send = send

    def emit(self, event: Event) -> None:
        if isinstance(event, OutputChunk):
            self._send(OUTPUT_CHANNEL, event.chunk)
        else:
            self._send(PROGRESS_CHANNEL, event.to_dict())


class BroadcastStreamSink(ProgressSink):
    """Hold at most one live subscriber and push wire dicts into its queue.

    Parameters
    ----------
    queue_size : int
        Backlog allowed for the subscriber.  When a client stops
        reading and the queue fills, further events for it are dropped.
    """

    def __init__(self, *, queue_size: int = 1000) -> None:
        self._lock = threading.Lock()
        self._subscriber: queue.Queue[dict] | None = None
        self._queue_size = queue_size

    @property
    def has_subscriber(self) -> bool:
        with self._lock:
            return self._subscriber is not None

    def emit(self, event: Event) -> None:
        payload = event.to_dict()
        with self._lock:
            q = self._subscriber
            if q is None:
                logger.debug("No stream subscriber, dropping %s", payload.get("step", "output"))
                return
            try:
                q.put_nowait(payload)
            except queue.Full:
                logger.info("Stream subscriber backlog full, dropping event")

    def subscribe(
        self,
        *,
        heartbeat_interval: float = 15.0,
    ) -> Generator[dict | None, None, None]:
        """Attach a stream client and return its event generator.

        The client is registered immediately, so events emitted between
        this call and the first ``next()`` are not lost.  The generator
        blocks between events and yields ``None`` after
        *heartbeat_interval* idle seconds so the transport can write a
        keep-alive.  Closing it (client disconnect) releases the slot.
        """
        q: queue.Queue[dict] = queue.Queue(maxsize=self._queue_size)
        with self._lock:
            replaced = self._subscriber is not None
            self._subscriber = q
        logger.info("Setup stream connected (replaced=%s)", replaced)
        return self._drain(q, heartbeat_interval)

    def _drain(
        self,
        q: queue.Queue[dict],
        heartbeat_interval: float,
    ) -> Generator[dict | None, None, None]:
        try:
            while True:
                try:
                    yield q.get(timeout=heartbeat_interval)
                except queue.Empty:
                    yield None
        finally:
            with self._lock:
                if self._subscriber is q:
                    self._subscriber = None
            logger.info("Setup stream disconnected")
