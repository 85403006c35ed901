"""Observer registry for client lifecycle notifications."""

from __future__ import annotations

from typing import Any, Callable, Literal

from .logger import BoundLogger, create_logger

EventName = Literal["connected", "closed"]
Listener = Callable[[Any], None]

EVENT_NAMES: tuple[EventName, ...] = ("connected", "closed")


class ClientEvents:
    """Holds "connected" and "closed" listeners for one client."""

    def __init__(self, *, logger: BoundLogger | None = None) -> None:
        self._listeners: dict[str, list[Listener]] = {name: [] for name in EVENT_NAMES}
        self._stopped = False
        self._logger = (logger or create_logger()).child("events")

    @property
    def stopped(self) -> bool:
        return self._stopped

    def on(self, event: EventName, listener: Listener) -> Callable[[], None]:
        """Register a listener and return a callable that removes it."""
        self._listeners_for(event).append(listener)
        return lambda: self.off(event, listener)

    def off(self, event: EventName, listener: Listener) -> None:
        listeners = self._listeners_for(event)
        if listener in listeners:
            listeners.remove(listener)

    def emit(self, event: EventName, payload: Any) -> None:
        if self._stopped:
            return
        for listener in list(self._listeners_for(event)):
            # A listener may have closed the client
            if self._stopped:
                break
            try:
                listener(payload)
            except Exception:
                self._logger.error("Listener for %r raised", event, exc_info=True)

    def stop(self) -> None:
        self._stopped = True
        for listeners in self._listeners.values():
            listeners.clear()

    def _listeners_for(self, event: str) -> list[Listener]:
        try:
            return self._listeners[event]
        except KeyError:
            raise ValueError(f"Unknown event: {event!r}") from None


__all__ = ["ClientEvents", "EVENT_NAMES", "EventName", "Listener"]
