"""Observable state base shared by all stores.

Listeners are plain callables invoked synchronously with the store after
every state change. A failing listener is logged and does not stop the
others.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

StateListener = Callable[[Any], None]


class Observable:
    """Minimal subscribe/notify mixin."""

    def __init__(self) -> None:
        self._listeners: list[StateListener] = []

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        if listener not in self._listeners:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                name = getattr(listener, "__name__", repr(listener))
                logger.exception("State listener '%s' failed", name)
