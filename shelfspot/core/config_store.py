"""
ShelfSpot Client — Config/Connection Store.

Owns the backend server address and the connection-test state machine:

    idle -> testing -> success | error
    success | error -> testing        (retry)
    any -> idle                       (address changed or cleared)

A connection test started while another is in flight supersedes it: each
test takes a generation number and only the latest generation may write
its result into the store.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable

from shelfspot.core.errors import ConfigurationError, PersistenceError, ValidationError
from shelfspot.core.observable import Observable
from shelfspot.data.models import ServerInfo
from shelfspot.integrations.connectivity import ProbeResult, build_base_url, probe

if TYPE_CHECKING:
    from shelfspot.data.bridge import PersistentBridge

logger = logging.getLogger(__name__)

CONFIG_KEY = "config.server"

Prober = Callable[[str], Awaitable[ProbeResult]]


class ConnectionStatus(Enum):
    IDLE = "idle"
    TESTING = "testing"
    SUCCESS = "success"
    ERROR = "error"


_TRANSITIONS: dict[ConnectionStatus, set[ConnectionStatus]] = {
    ConnectionStatus.IDLE: {ConnectionStatus.IDLE, ConnectionStatus.TESTING},
    ConnectionStatus.TESTING: {
        ConnectionStatus.TESTING,
        ConnectionStatus.SUCCESS,
        ConnectionStatus.ERROR,
        ConnectionStatus.IDLE,
    },
    ConnectionStatus.SUCCESS: {ConnectionStatus.TESTING, ConnectionStatus.IDLE},
    ConnectionStatus.ERROR: {ConnectionStatus.TESTING, ConnectionStatus.IDLE},
}


class ConfigStore(Observable):
    """Server address, connection status and last server info."""

    def __init__(
        self,
        bridge: PersistentBridge,
        default_address: str | None = None,
        default_port: int | None = None,
        prober: Prober | None = None,
    ) -> None:
        super().__init__()
        from shelfspot.config import settings

        self._storage = bridge.scoped("config", {CONFIG_KEY})
        self.default_address = default_address or settings.DEFAULT_SERVER
        self._default_port = default_port or settings.DEFAULT_PORT
        if prober is None:
            timeout = settings.HEALTH_TIMEOUT

            async def prober(base_url: str) -> ProbeResult:
                return await probe(base_url, timeout)

        self._prober = prober

        self.server_address: str = self.default_address
        self.status = ConnectionStatus.IDLE
        self.server_info: ServerInfo | None = None
        self.last_server_info: ServerInfo | None = None
        self.error: str | None = None
        self.is_loading = False
        self._generation = 0
        # Serializes writes of CONFIG_KEY with the in-memory update that follows
        self._write_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def is_configured(self) -> bool:
        return self.server_address != self.default_address

    @property
    def base_url(self) -> str:
        """Backend base URL for the current address. Raises ConfigurationError."""
        return build_base_url(self.server_address, self._default_port)

    def _set_status(self, status: ConnectionStatus) -> None:
        if status not in _TRANSITIONS[self.status]:
            raise RuntimeError(
                f"Illegal connection status transition {self.status.value} -> {status.value}"
            )
        self.status = status

    def _reset_connection(self) -> None:
        """Back to idle and invalidate any in-flight test."""
        self._generation += 1
        self._set_status(ConnectionStatus.IDLE)
        self.server_info = None
        self.error = None
        self.is_loading = False

    def _payload(self, address: str, info: ServerInfo | None) -> dict:
        return {
            "serverAddress": address,
            "lastServerInfo": info.model_dump() if info else None,
        }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Rehydrate address and last server info from storage."""
        try:
            stored = await self._storage.get_json(CONFIG_KEY)
        except PersistenceError as exc:
            logger.error("Could not load server configuration: %s", exc)
            return

        if not isinstance(stored, dict):
            logger.info("No stored server configuration, using %s", self.server_address)
            return

        address = stored.get("serverAddress")
        if address:
            self.server_address = address
        info = stored.get("lastServerInfo")
        if isinstance(info, dict):
            try:
                self.last_server_info = ServerInfo.model_validate(info)
            except ValueError:
                logger.warning("Ignoring malformed stored server info")
        logger.info("Loaded server address %s", self.server_address)
        self._notify()

    async def get_server_address(self) -> str:
        """Return the persisted address if any, reconciling memory with it."""
        try:
            stored = await self._storage.get_json(CONFIG_KEY)
        except PersistenceError as exc:
            logger.error("Error reading server address, using in-memory value: %s", exc)
            return self.server_address

        address = stored.get("serverAddress") if isinstance(stored, dict) else None
        if address and address != self.server_address:
            logger.info("Reconciling server address %s -> %s", self.server_address, address)
            self.server_address = address
            self._reset_connection()
            self._notify()
        return self.server_address

    async def set_server_address(self, address: str) -> None:
        """Persist a new address, then reset the connection state.

        Raises ValidationError for a malformed address (no I/O happens) and
        PersistenceError if the write fails (memory is left untouched).
        """
        address = (address or "").strip()
        try:
            build_base_url(address, self._default_port)
        except ConfigurationError as exc:
            self.error = str(exc)
            self._notify()
            raise ValidationError(str(exc)) from exc

        logger.info("Setting server address to %s", address)
        async with self._write_lock:
            try:
                await self._storage.set_json(CONFIG_KEY, self._payload(address, None))
            except PersistenceError:
                self.error = "Could not save the server address"
                self._notify()
                raise

            self.server_address = address
            self.last_server_info = None
            self._reset_connection()
        self._notify()

    async def clear_configuration(self) -> None:
        """Back to the placeholder address, persisted."""
        logger.info("Clearing server configuration")
        async with self._write_lock:
            try:
                await self._storage.remove(CONFIG_KEY)
            except PersistenceError:
                self.error = "Could not clear the server configuration"
                self._notify()
                raise

            self.server_address = self.default_address
            self.last_server_info = None
            self._reset_connection()
        self._notify()

    # ------------------------------------------------------------------
    # Connection test
    # ------------------------------------------------------------------

    async def test_connection_detailed(self) -> ProbeResult:
        """Probe the current address and record the outcome.

        Never raises for connectivity or configuration problems; they land
        in the error status. A superseded call returns its own result but
        leaves the store alone.
        """
        self._generation += 1
        generation = self._generation
        self._set_status(ConnectionStatus.TESTING)
        self.server_info = None
        self.error = None
        self.is_loading = True
        self._notify()

        try:
            result = await self._prober(self.base_url)
        except ConfigurationError as exc:
            result = ProbeResult(success=False, error=str(exc))
        except Exception as exc:
            logger.exception("Connection test #%d failed unexpectedly", generation)
            result = ProbeResult(success=False, error=f"Connection test failed: {exc}")

        if generation != self._generation:
            logger.debug("Discarding superseded connection test #%d", generation)
            return result

        self.is_loading = False
        if result.success and result.info is not None:
            self._set_status(ConnectionStatus.SUCCESS)
            self.server_info = result.info
            self.last_server_info = result.info
            self.error = None
        else:
            self._set_status(ConnectionStatus.ERROR)
            self.server_info = None
            self.error = result.error or "Could not connect to the server"
        self._notify()

        if result.success:
            await self._remember_server_info(generation)
        return result

    async def test_connection(self) -> bool:
        result = await self.test_connection_detailed()
        return result.success

    async def _remember_server_info(self, generation: int) -> None:
        async with self._write_lock:
            if generation != self._generation:
                return
            try:
                await self._storage.set_json(
                    CONFIG_KEY, self._payload(self.server_address, self.last_server_info),
                )
            except PersistenceError as exc:
                logger.warning("Could not persist server info (test #%d): %s", generation, exc)

    def clear_error(self) -> None:
        self.error = None
        self._notify()
