"""
ShelfSpot Client — Theme Store.

The resolved theme is a pure function of (mode, system scheme) and is
recomputed whenever either changes. Exactly one system-appearance listener
is registered at a time; teardown() must run when the owning UI goes away.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from shelfspot.core.errors import PersistenceError, ValidationError
from shelfspot.core.observable import Observable

if TYPE_CHECKING:
    from shelfspot.data.bridge import PersistentBridge
    from shelfspot.ports.appearance_port import AppearancePort, Subscription

logger = logging.getLogger(__name__)

THEME_KEY = "theme.preferences"


class ThemeMode(Enum):
    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


def resolve_theme(mode: ThemeMode, system_scheme: str | None) -> str:
    """Concrete "light"/"dark" for a mode, given the system scheme."""
    if mode is ThemeMode.AUTO:
        return "dark" if system_scheme == "dark" else "light"
    return mode.value


def _coerce_mode(mode: ThemeMode | str) -> ThemeMode:
    if isinstance(mode, ThemeMode):
        return mode
    try:
        return ThemeMode(str(mode).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown theme mode: {mode!r}") from None


class ThemeStore(Observable):
    """Theme preference and its resolved value."""

    def __init__(self, bridge: PersistentBridge, appearance: AppearancePort) -> None:
        super().__init__()
        self._storage = bridge.scoped("theme", {THEME_KEY})
        self._appearance = appearance
        self.mode = ThemeMode.AUTO
        self.error: str | None = None
        self._resolved = resolve_theme(self.mode, appearance.get_color_scheme())
        self._subscription: Subscription | None = None

    @property
    def resolved_theme(self) -> str:
        return self._resolved

    @property
    def is_listening(self) -> bool:
        return self._subscription is not None

    def _recompute(self, system_scheme: str | None = None) -> None:
        if system_scheme is None:
            system_scheme = self._appearance.get_color_scheme()
        self._resolved = resolve_theme(self.mode, system_scheme)

    async def load(self) -> None:
        """Rehydrate the stored mode, then recompute the resolved theme."""
        try:
            stored = await self._storage.get_json(THEME_KEY)
        except PersistenceError as exc:
            logger.error("Could not load theme preference: %s", exc)
            stored = None

        if isinstance(stored, dict) and stored.get("mode"):
            try:
                self.mode = _coerce_mode(stored["mode"])
            except ValidationError:
                logger.warning("Ignoring stored theme mode %r", stored["mode"])
        self._recompute()
        logger.info("Theme mode %s, resolved to %s", self.mode.value, self._resolved)
        self._notify()

    async def set_mode(self, mode: ThemeMode | str) -> None:
        """Apply a mode immediately, then persist it."""
        self.mode = _coerce_mode(mode)
        self._recompute()
        self.error = None
        self._notify()
        logger.info("Theme mode set to %s, resolved to %s", self.mode.value, self._resolved)

        try:
            await self._storage.set_json(THEME_KEY, {"mode": self.mode.value})
        except PersistenceError:
            self.error = "Could not save the theme preference"
            self._notify()
            raise

    def on_system_theme_change(self, color_scheme: str | None) -> None:
        """System scheme changed. Only matters in auto mode."""
        if self.mode is not ThemeMode.AUTO:
            return
        logger.debug("System theme changed to %s", color_scheme)
        self._recompute(color_scheme)
        self._notify()

    def initialize(self) -> Subscription:
        """Install the system listener, replacing any previous one."""
        if self._subscription is not None:
            self.teardown()
        self._subscription = self._appearance.add_change_listener(self.on_system_theme_change)
        self._recompute()
        self._notify()
        return self._subscription

    def teardown(self, subscription: Subscription | None = None) -> None:
        """Remove the system listener. Safe to call repeatedly."""
        if subscription is not None and subscription is not self._subscription:
            subscription.remove()
            return
        if self._subscription is None:
            return
        self._subscription.remove()
        self._subscription = None

    def clear_error(self) -> None:
        self.error = None
        self._notify()
