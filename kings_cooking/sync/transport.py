"""Transports for encoded payloads and the debounced writer.

A transport holds a single opaque string: the URL fragment of the current
share link. The sync protocol never reaches for a global location; a
transport is always injected.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Protocol, runtime_checkable

from ..errors import SyncError
from ..metrics import TRANSPORT_WRITES

logger = logging.getLogger(__name__)

__all__ = [
    "DebouncedWriter",
    "InMemoryTransport",
    "Transport",
    "UrlFragmentTransport",
]


@runtime_checkable
class Transport(Protocol):
    def read(self) -> Optional[str]:
        """Current fragment, or None when nothing has been written."""
        ...

    def write(self, fragment: str) -> None:
        ...


class InMemoryTransport:
    """Transport backed by a string; keeps every write for inspection."""

    def __init__(self, initial: Optional[str] = None):
        self._value = initial
        self.writes: List[str] = []

    def read(self) -> Optional[str]:
        return self._value

    def write(self, fragment: str) -> None:
        self._value = fragment
        self.writes.append(fragment)


class UrlFragmentTransport:
    """Transport that stores the fragment as the hash part of a URL."""

    def __init__(self, url: str):
        self._url = url

    @property
    def url(self) -> str:
        return self._url

    def read(self) -> Optional[str]:
        _, sep, fragment = self._url.partition("#")
        if not sep or not fragment:
            return None
        return fragment

    def write(self, fragment: str) -> None:
        base = self._url.partition("#")[0]
        self._url = f"{base}#{fragment.lstrip('#')}"


TimerFactory = Callable[[float, Callable[[], None]], threading.Timer]


class DebouncedWriter:
    """Coalesces rapid writes to a transport into the most recent one.

    ``schedule`` replaces any pending write and restarts the delay.
    ``write_immediate`` cancels the pending write and writes now.
    ``flush`` writes the pending value now, and ``close`` drops it.
    """

    def __init__(
        self,
        transport: Transport,
        delay: float,
        timer_factory: Optional[TimerFactory] = None,
    ):
        if delay < 0:
            raise ValueError(f"delay must be non-negative, got {delay}")
        self._transport = transport
        self._delay = delay
        self._timer_factory = timer_factory or threading.Timer
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[str] = None
        self._generation = 0
        self._closed = False

    @property
    def pending(self) -> Optional[str]:
        with self._lock:
            return self._pending

    @property
    def closed(self) -> bool:
        return self._closed

    def schedule(self, fragment: str) -> None:
        with self._lock:
            self._ensure_open()
            self._cancel_locked()
            self._pending = fragment
            self._generation += 1
            generation = self._generation
            timer = self._timer_factory(self._delay, lambda: self._fire(generation))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def write_immediate(self, fragment: str) -> None:
        with self._lock:
            self._ensure_open()
            self._cancel_locked()
            self._write_locked(fragment, mode="immediate")

    def flush(self) -> bool:
        """Write the pending value now. Returns False if nothing was pending."""
        with self._lock:
            fragment = self._pending
            self._cancel_locked()
            if fragment is None:
                return False
            self._write_locked(fragment, mode="debounced")
            return True

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def close(self) -> None:
        with self._lock:
            if self._pending is not None:
                logger.debug("Dropping pending transport write on close")
            self._cancel_locked()
            self._closed = True

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A newer schedule/flush/cancel superseded this timer.
            if generation != self._generation or self._pending is None:
                return
            fragment = self._pending
            self._pending = None
            self._timer = None
            self._write_locked(fragment, mode="debounced")

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending = None
        self._generation += 1

    def _write_locked(self, fragment: str, mode: str) -> None:
        self._transport.write(fragment)
        TRANSPORT_WRITES.labels(mode=mode).inc()

    def _ensure_open(self) -> None:
        if self._closed:
            raise SyncError("Debounced writer is closed")
