"""UI settings store — dashboard display preferences."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from shelfspot.core.errors import PersistenceError
from shelfspot.core.observable import Observable

if TYPE_CHECKING:
    from shelfspot.data.bridge import PersistentBridge

logger = logging.getLogger(__name__)

UI_SETTINGS_KEY = "ui.settings"


class UISettingsStore(Observable):
    def __init__(self, bridge: PersistentBridge) -> None:
        super().__init__()
        self._storage = bridge.scoped("ui-settings", {UI_SETTINGS_KEY})
        self.show_charts = True
        self.error: str | None = None

    async def load(self) -> None:
        try:
            stored = await self._storage.get_json(UI_SETTINGS_KEY)
        except PersistenceError as exc:
            logger.error("Could not load UI settings: %s", exc)
            return
        if isinstance(stored, dict) and isinstance(stored.get("showCharts"), bool):
            self.show_charts = stored["showCharts"]
            self._notify()

    async def set_show_charts(self, show: bool) -> None:
        logger.info("Setting show charts to %s", show)
        self.show_charts = show
        self._notify()
        try:
            await self._storage.set_json(UI_SETTINGS_KEY, {"showCharts": show})
        except PersistenceError:
            self.error = "Could not save the display settings"
            self._notify()
            raise

    async def toggle_show_charts(self) -> None:
        await self.set_show_charts(not self.show_charts)

    def clear_error(self) -> None:
        self.error = None
        self._notify()
