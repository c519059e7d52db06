"""
ShelfSpot Client — App Bootstrap Coordinator.

Sequences store initialization at process start:

    theme listener + theme load -> config load -> UI settings load
    -> stored token? refresh profile -> ready

An invalid stored token never blocks readiness: the refresh result is
inspected and the session simply stays anonymous. The readiness flag is
monotonic for the lifetime of the process.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from shelfspot.core.observable import Observable

if TYPE_CHECKING:
    from shelfspot.core.auth_store import AuthStore
    from shelfspot.core.config_store import ConfigStore
    from shelfspot.core.theme_store import ThemeStore
    from shelfspot.core.ui_settings_store import UISettingsStore

logger = logging.getLogger(__name__)


class AppBootstrap(Observable):
    """Runs initialization once and exposes a single readiness flag."""

    def __init__(
        self,
        config: ConfigStore,
        auth: AuthStore,
        theme: ThemeStore,
        ui_settings: UISettingsStore | None = None,
    ) -> None:
        super().__init__()
        self._config = config
        self._auth = auth
        self._theme = theme
        self._ui_settings = ui_settings
        self._is_ready = False
        self._task: asyncio.Task | None = None

    @property
    def is_ready(self) -> bool:
        return self._is_ready

    async def initialize(self) -> None:
        """Idempotent. Concurrent callers share a single run."""
        if self._is_ready:
            return
        if self._task is None:
            self._task = asyncio.ensure_future(self._run())
        await asyncio.shield(self._task)

    async def _run(self) -> None:
        logger.info("Initializing application")
        try:
            self._theme.initialize()
            await self._theme.load()
            await self._config.load()
            if self._ui_settings is not None:
                await self._ui_settings.load()
            await self._restore_session()
            logger.info("Application initialized successfully")
        except Exception:
            logger.exception("Error initializing application, continuing anyway")
        finally:
            self._is_ready = True
            self._notify()

    async def _restore_session(self) -> None:
        if not await self._auth.has_stored_token():
            logger.info("No stored token, starting anonymous")
            return

        result = await self._auth.try_refresh_user()
        if result.ok:
            logger.info("Session restored")
        else:
            logger.info("Stored token rejected, user will remain logged out: %s", result.error)

    def shutdown(self) -> None:
        """Release process-wide listeners."""
        self._theme.teardown()
