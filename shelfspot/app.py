"""Composition root — wires storage, HTTP client and stores together.

Nothing here is a module-level singleton: callers build one ClientApp per
process (or per test) and pass it around.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from shelfspot.adapters.appearance import ManualAppearance
from shelfspot.core.auth_store import AuthStore
from shelfspot.core.bootstrap import AppBootstrap
from shelfspot.core.config_store import ConfigStore
from shelfspot.core.theme_store import ThemeStore
from shelfspot.core.ui_settings_store import UISettingsStore
from shelfspot.data.bridge import PersistentBridge
from shelfspot.data.kv_db import KeyValueDB
from shelfspot.integrations.backend_api import BackendApiClient

if TYPE_CHECKING:
    import httpx

    from shelfspot.ports.appearance_port import AppearancePort
    from shelfspot.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)


@dataclass
class ClientApp:
    bridge: PersistentBridge
    backend: BackendApiClient
    config: ConfigStore
    auth: AuthStore
    theme: ThemeStore
    ui_settings: UISettingsStore
    bootstrap: AppBootstrap


def create_app(
    storage: StoragePort | None = None,
    appearance: AppearancePort | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ClientApp:
    """Build every store with its dependencies injected."""
    if storage is None:
        storage = KeyValueDB()
    if appearance is None:
        appearance = ManualAppearance()

    bridge = PersistentBridge(storage)
    config = ConfigStore(bridge)

    # The client resolves the token lazily, so it can be built before the
    # auth store that owns the token.
    auth: AuthStore | None = None
    backend = BackendApiClient(
        base_url=lambda: config.base_url,
        token=lambda: auth.bearer_token if auth is not None else None,
        transport=transport,
    )
    auth = AuthStore(bridge, backend)
    theme = ThemeStore(bridge, appearance)
    ui_settings = UISettingsStore(bridge)
    bootstrap = AppBootstrap(config, auth, theme, ui_settings)

    logger.debug("Client app assembled")
    return ClientApp(
        bridge=bridge,
        backend=backend,
        config=config,
        auth=auth,
        theme=theme,
        ui_settings=ui_settings,
        bootstrap=bootstrap,
    )
