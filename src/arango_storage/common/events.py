"""Listener registration for connector lifecycle signals.

The connector reports two signals to its host:
- ready: bootstrap finished, fires once
- error: bootstrap or collection provisioning failed, carries the error

Usage:
    connector.on("ready", lambda: print("connected"))
    connector.on("error", lambda err: print("storage failure", err))
"""

import threading
from collections import defaultdict
from typing import Any, Callable

from arango_storage.common.logging import get_logger

logger = get_logger(__name__, component="events")

Listener = Callable[..., Any]


class EventEmitter:
    """Minimal named-signal listener registry.

    Listeners run on the thread that emits, in registration order. A listener
    that raises is logged and does not stop the remaining listeners.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._listeners_lock = threading.Lock()

    def on(self, event: str, listener: Listener) -> Listener:
        """Register a listener for an event and return it."""
        with self._listeners_lock:
            self._listeners[event].append(listener)
        return listener

    def off(self, event: str, listener: Listener) -> None:
        """Remove a previously registered listener (no-op if absent)."""
        with self._listeners_lock:
            if listener in self._listeners.get(event, []):
                self._listeners[event].remove(listener)

    def listeners(self, event: str) -> list[Listener]:
        with self._listeners_lock:
            return list(self._listeners.get(event, []))

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener for the event.

        Returns:
            True if at least one listener was registered
        """
        return self._notify(event, self.listeners(event), *args)

    def _notify(self, event: str, listeners: list[Listener], *args: Any) -> bool:
        if not listeners and event == "error":
            logger.error("Unhandled error event", error=str(args[0]) if args else None)

        for listener in listeners:
            try:
                listener(*args)
            except Exception:
                logger.exception("Event listener failed", signal=event)

        return bool(listeners)
