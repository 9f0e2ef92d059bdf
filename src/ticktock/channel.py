"""
Ordered callback registry used for tick and error notifications.

Handlers are kept in registration order and may be registered more than
once; each registration is invoked independently. Delivery always iterates
a snapshot, so a handler can subscribe or unsubscribe others (or itself)
while a notification is in progress without affecting the current pass.

Example::

    channel: CallbackChannel[Callable[[], None]] = CallbackChannel("tick")
    channel.subscribe(lambda: print("tick"))
    for handler in channel.snapshot():
        handler()
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

H = TypeVar("H", bound=Callable[..., Any])

__all__ = ["CallbackChannel"]


class CallbackChannel(Generic[H]):
    """Thread-safe, ordered list of handlers for one notification kind."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: list[H] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: H) -> H:
        """Append a handler and return it, so this works as a decorator."""
        if not callable(handler):
            raise TypeError(f"{self.name} handler must be callable, got {handler!r}")
        with self._lock:
            self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: H) -> bool:
        """Remove the most recent registration of ``handler``.

        Returns:
            True if a registration was removed, False if none was found.
        """
        with self._lock:
            for index in range(len(self._handlers) - 1, -1, -1):
                if self._handlers[index] == handler:
                    del self._handlers[index]
                    return True
        return False

    def snapshot(self) -> tuple[H, ...]:
        """Copy of the current handlers in registration order."""
        with self._lock:
            return tuple(self._handlers)

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)

    def __iter__(self) -> Iterator[H]:
        return iter(self.snapshot())

    def __contains__(self, handler: object) -> bool:
        with self._lock:
            return handler in self._handlers

    def __repr__(self) -> str:
        return f"CallbackChannel({self.name!r}, handlers={len(self)})"
