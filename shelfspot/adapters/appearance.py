"""In-process appearance notifier — implements AppearancePort.

The host shell pushes system light/dark changes with set_color_scheme();
registered listeners are called synchronously with the new scheme.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shelfspot.ports.appearance_port import ColorSchemeListener

logger = logging.getLogger(__name__)


class ListenerHandle:
    """Subscription handle. remove() is safe to call more than once."""

    def __init__(self, owner: ManualAppearance, listener: ColorSchemeListener) -> None:
        self._owner = owner
        self._listener = listener
        self.active = True

    def remove(self) -> None:
        if not self.active:
            return
        self._owner._remove(self._listener)
        self.active = False


class ManualAppearance:
    """AppearancePort whose scheme is driven by the host."""

    def __init__(self, color_scheme: str | None = "light") -> None:
        self._color_scheme = color_scheme
        self._listeners: list[ColorSchemeListener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def get_color_scheme(self) -> str | None:
        return self._color_scheme

    def add_change_listener(self, listener: ColorSchemeListener) -> ListenerHandle:
        self._listeners.append(listener)
        return ListenerHandle(self, listener)

    def _remove(self, listener: ColorSchemeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_color_scheme(self, color_scheme: str | None) -> None:
        """Record a system scheme change and notify listeners."""
        self._color_scheme = color_scheme
        logger.debug("System color scheme changed to %s", color_scheme)
        for listener in list(self._listeners):
            listener(color_scheme)
