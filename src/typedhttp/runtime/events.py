"""Minimal event emitter with scoped listener registration.

Transport objects announce lifecycle changes (`"socket"`, `"connect"`,
`"response"`, `"error"`) through an `EventEmitter`; the lifecycle resolver
listens for the first of two events and must leave no listener behind
whichever one fires. `listening()` returns a `Registration` that removes
everything it added, once, either explicitly or on leaving its context.

    >>> emitter = EventEmitter()
    >>> seen = []
    >>> with emitter.listening({"ping": seen.append}) as reg:
    ...     emitter.emit("ping", 1)
    True
    >>> emitter.listener_count("ping"), reg.released
    (0, True)
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import TracebackType

Listener = Callable[..., object]


class Registration:
    """Listeners added together and removed together."""

    __slots__ = ("_emitter", "_pairs", "_released")

    def __init__(self, emitter: EventEmitter, pairs: tuple[tuple[str, Listener], ...]) -> None:
        self._emitter = emitter
        self._pairs = pairs
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Remove every listener of this registration. Idempotent."""
        if self._released:
            return
        self._released = True
        for event, listener in self._pairs:
            self._emitter.remove_listener(event, listener)

    def __enter__(self) -> Registration:
        return self

    def __exit__(
        self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: TracebackType | None,
    ) -> None:
        self.release()


class EventEmitter:
    """Named events with synchronous listeners, called in registration order."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def on(self, event: str, listener: Listener) -> Listener:
        self._listeners.setdefault(event, []).append(listener)
        return listener

    def remove_listener(self, event: str, listener: Listener) -> bool:
        """Remove one registration of `listener`. Returns whether one was found."""
        listeners = self._listeners.get(event)
        if not listeners or listener not in listeners:
            return False
        listeners.remove(listener)
        if not listeners:
            del self._listeners[event]
        return True

    def emit(self, event: str, *args: object) -> bool:
        """Call every listener of `event`. Returns whether any listener ran."""
        # Snapshot: listeners may remove themselves while running
        listeners = tuple(self._listeners.get(event, ()))
        for listener in listeners:
            listener(*args)
        return bool(listeners)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def listening(self, listeners: Mapping[str, Listener]) -> Registration:
        """Register several listeners at once; usable as a context manager."""
        pairs = tuple(listeners.items())
        for event, listener in pairs:
            self.on(event, listener)
        return Registration(self, pairs)
