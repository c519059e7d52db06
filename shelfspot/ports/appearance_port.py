"""Appearance port — system light/dark notifications from the host platform."""

from __future__ import annotations

from typing import Callable, Protocol

ColorSchemeListener = Callable[[str | None], None]


class Subscription(Protocol):
    """Handle returned by add_change_listener; remove() unregisters it."""

    def remove(self) -> None: ...


class AppearancePort(Protocol):
    """Reports the current system color scheme and its changes."""

    def get_color_scheme(self) -> str | None: ...

    def add_change_listener(self, listener: ColorSchemeListener) -> Subscription: ...
