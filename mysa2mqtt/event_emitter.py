"""Minimal async event emitter.

Handlers are stored by identity: the exact callable passed to :meth:`on` must
be passed to :meth:`off` to remove it. Callers that register bound methods
should bind them once and keep the reference.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any

_LOGGER = logging.getLogger(__name__)


class EventEmitter:
    """Dispatch named events to registered handlers, one at a time."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Callable[..., Any]]] = {}

    def on(  # pylint: disable=invalid-name
        self, event_name: str, callback: Callable[..., Any]
    ) -> Callable[[], None]:
        """Register an event callback and return a function that removes it."""
        listeners = self._listeners.setdefault(event_name, [])
        listeners.append(callback)

        def unsubscribe() -> None:
            """Unsubscribe listener."""
            self.off(event_name, callback)

        return unsubscribe

    def off(self, event_name: str, callback: Callable[..., Any]) -> bool:
        """Remove a callback. Return ``False`` if it was not registered."""
        listeners = self._listeners.get(event_name, [])
        for index, listener in enumerate(listeners):
            if listener is callback:
                del listeners[index]
                return True
        _LOGGER.debug("Handler %r was not registered for '%s'", callback, event_name)
        return False

    def listener_count(self, event_name: str) -> int:
        return len(self._listeners.get(event_name, []))

    async def emit(self, event_name: str, *args: Any) -> None:
        """Run all callbacks for an event, awaiting coroutine callbacks in order."""
        for listener in list(self._listeners.get(event_name, [])):
            try:
                result = listener(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception:  # pylint: disable=broad-except
                _LOGGER.exception("Error in '%s' handler %r", event_name, listener)
