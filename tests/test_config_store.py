"""Tests for shelfspot.core.config_store — server address and connection state machine."""

import asyncio
import sqlite3

import pytest
from unittest.mock import AsyncMock, MagicMock

from shelfspot.core.config_store import CONFIG_KEY, ConfigStore, ConnectionStatus
from shelfspot.core.errors import PersistenceError, ValidationError
from shelfspot.data.bridge import PersistentBridge
from shelfspot.data.models import ServerInfo
from shelfspot.integrations.connectivity import ProbeResult


def _info(version="2.0.0"):
    return ServerInfo(version=version, timestamp="2025-03-01T10:00:00Z", message="ShelfSpot API")


def _ok(version="2.0.0"):
    return ProbeResult(success=True, info=_info(version))


def _make_store(bridge, prober=None):
    prober = prober or AsyncMock(return_value=_ok())
    return ConfigStore(bridge, default_address="192.168.1.100", default_port=3001, prober=prober), prober


class TestServerAddress:
    @pytest.mark.asyncio
    async def test_defaults_to_placeholder(self, bridge):
        store, _ = _make_store(bridge)
        assert store.server_address == "192.168.1.100"
        assert store.is_configured is False
        assert store.status is ConnectionStatus.IDLE
        assert store.base_url == "http://192.168.1.100:3001"

    @pytest.mark.asyncio
    async def test_address_survives_restart(self, kv_db):
        store, _ = _make_store(PersistentBridge(kv_db))
        await store.set_server_address("10.0.0.5")

        restarted, _ = _make_store(PersistentBridge(kv_db))
        await restarted.load()
        assert await restarted.get_server_address() == "10.0.0.5"
        assert restarted.is_configured is True

    @pytest.mark.asyncio
    async def test_set_address_resets_status_and_info(self, bridge):
        store, _ = _make_store(bridge)
        await store.test_connection()
        assert store.status is ConnectionStatus.SUCCESS

        await store.set_server_address("10.0.0.7")
        assert store.status is ConnectionStatus.IDLE
        assert store.server_info is None
        assert store.error is None

    @pytest.mark.asyncio
    async def test_malformed_address_rejected_without_io(self):
        storage = MagicMock()
        storage.set_item = AsyncMock()
        store, _ = _make_store(PersistentBridge(storage))

        with pytest.raises(ValidationError):
            await store.set_server_address("   ")

        storage.set_item.assert_not_called()
        assert store.server_address == "192.168.1.100"
        assert store.error is not None

    @pytest.mark.asyncio
    async def test_unparseable_ipv6_address_rejected(self, bridge):
        store, _ = _make_store(bridge)

        with pytest.raises(ValidationError):
            await store.set_server_address("http://[bad")

        assert store.server_address == "192.168.1.100"
        assert "Malformed server address" in store.error

    @pytest.mark.asyncio
    async def test_failed_write_leaves_memory_untouched(self):
        storage = MagicMock()
        storage.get_item = AsyncMock(return_value=None)
        storage.set_item = AsyncMock(side_effect=sqlite3.OperationalError("read-only"))
        store, _ = _make_store(PersistentBridge(storage))

        with pytest.raises(PersistenceError):
            await store.set_server_address("10.0.0.5")

        assert store.server_address == "192.168.1.100"
        assert store.error == "Could not save the server address"

    @pytest.mark.asyncio
    async def test_get_address_reconciles_memory(self, bridge):
        await bridge.set_json(CONFIG_KEY, {"serverAddress": "10.1.1.1", "lastServerInfo": None})
        store, _ = _make_store(bridge)
        assert store.server_address == "192.168.1.100"

        assert await store.get_server_address() == "10.1.1.1"
        assert store.server_address == "10.1.1.1"

    @pytest.mark.asyncio
    async def test_get_address_falls_back_to_memory_on_read_failure(self):
        storage = MagicMock()
        storage.get_item = AsyncMock(side_effect=sqlite3.OperationalError("locked"))
        store, _ = _make_store(PersistentBridge(storage))
        assert await store.get_server_address() == "192.168.1.100"

    @pytest.mark.asyncio
    async def test_clear_configuration(self, bridge):
        store, _ = _make_store(bridge)
        await store.set_server_address("10.0.0.5")
        await store.test_connection()

        await store.clear_configuration()

        assert store.server_address == "192.168.1.100"
        assert store.status is ConnectionStatus.IDLE
        assert store.server_info is None
        assert store.last_server_info is None
        assert await bridge.get(CONFIG_KEY) is None


class TestConnectionTest:
    @pytest.mark.asyncio
    async def test_success_stores_info(self, bridge):
        store, prober = _make_store(bridge)
        assert await store.test_connection() is True
        prober.assert_awaited_once_with("http://192.168.1.100:3001")
        assert store.status is ConnectionStatus.SUCCESS
        assert store.server_info.version == "2.0.0"
        assert store.error is None
        assert store.is_loading is False

    @pytest.mark.asyncio
    async def test_failure_stores_error(self, bridge):
        prober = AsyncMock(return_value=ProbeResult(success=False, error="Connection timeout"))
        store, _ = _make_store(bridge, prober)
        assert await store.test_connection() is False
        assert store.status is ConnectionStatus.ERROR
        assert store.error == "Connection timeout"
        assert store.server_info is None

    @pytest.mark.asyncio
    async def test_retry_from_error_to_success(self, bridge):
        prober = AsyncMock(side_effect=[
            ProbeResult(success=False, error="HTTP 502"),
            _ok(),
        ])
        store, _ = _make_store(bridge, prober)
        await store.test_connection()
        assert store.status is ConnectionStatus.ERROR
        await store.test_connection()
        assert store.status is ConnectionStatus.SUCCESS
        assert store.error is None

    @pytest.mark.asyncio
    async def test_status_is_testing_while_in_flight(self, bridge):
        gate = asyncio.Event()

        async def prober(base_url):
            await gate.wait()
            return _ok()

        store, _ = _make_store(bridge, prober)
        task = asyncio.create_task(store.test_connection())
        await asyncio.sleep(0)
        assert store.status is ConnectionStatus.TESTING
        assert store.is_loading is True
        gate.set()
        await task
        assert store.status is ConnectionStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_later_call_supersedes_earlier(self, bridge):
        first_gate = asyncio.Event()
        second_gate = asyncio.Event()
        calls = []

        async def prober(base_url):
            calls.append(base_url)
            if len(calls) == 1:
                await first_gate.wait()
                return ProbeResult(success=False, error="stale failure")
            await second_gate.wait()
            return _ok("9.9.9")

        store, _ = _make_store(bridge, prober)
        first = asyncio.create_task(store.test_connection())
        await asyncio.sleep(0)
        second = asyncio.create_task(store.test_connection())
        await asyncio.sleep(0)

        # second resolves before first
        second_gate.set()
        await second
        first_gate.set()
        stale = await first

        assert stale is False
        assert store.status is ConnectionStatus.SUCCESS
        assert store.server_info.version == "9.9.9"
        assert store.error is None

    @pytest.mark.asyncio
    async def test_address_change_discards_in_flight_result(self, bridge):
        gate = asyncio.Event()

        async def prober(base_url):
            await gate.wait()
            return _ok()

        store, _ = _make_store(bridge, prober)
        task = asyncio.create_task(store.test_connection())
        await asyncio.sleep(0)
        await store.set_server_address("10.0.0.9")
        gate.set()
        await task

        assert store.status is ConnectionStatus.IDLE
        assert store.server_info is None
        stored = await bridge.get_json(CONFIG_KEY)
        assert stored["serverAddress"] == "10.0.0.9"

    @pytest.mark.asyncio
    async def test_unusable_address_lands_in_error_status(self, bridge):
        await bridge.set_json(CONFIG_KEY, {"serverAddress": "ftp://old-box", "lastServerInfo": None})
        store, prober = _make_store(bridge)
        await store.load()

        assert await store.test_connection() is False
        prober.assert_not_awaited()
        assert store.status is ConnectionStatus.ERROR
        assert "scheme" in store.error

    @pytest.mark.asyncio
    async def test_unexpected_prober_failure_lands_in_error_status(self, bridge):
        prober = AsyncMock(side_effect=RuntimeError("resolver crashed"))
        store, _ = _make_store(bridge, prober)

        assert await store.test_connection() is False

        assert store.status is ConnectionStatus.ERROR
        assert store.is_loading is False
        assert store.server_info is None
        assert "resolver crashed" in store.error

    @pytest.mark.asyncio
    async def test_successful_info_is_persisted(self, kv_db):
        store, _ = _make_store(PersistentBridge(kv_db))
        await store.set_server_address("10.0.0.5")
        await store.test_connection()

        restarted, _ = _make_store(PersistentBridge(kv_db))
        await restarted.load()
        assert restarted.last_server_info.version == "2.0.0"
        # only the live status carries server_info
        assert restarted.server_info is None
        assert restarted.status is ConnectionStatus.IDLE


class TestErrorField:
    @pytest.mark.asyncio
    async def test_clear_error(self, bridge):
        prober = AsyncMock(return_value=ProbeResult(success=False, error="HTTP 500"))
        store, _ = _make_store(bridge, prober)
        await store.test_connection()
        store.clear_error()
        assert store.error is None

    @pytest.mark.asyncio
    async def test_listeners_notified(self, bridge):
        store, _ = _make_store(bridge)
        seen = []
        store.subscribe(lambda s: seen.append(s.status))
        await store.test_connection()
        assert seen == [ConnectionStatus.TESTING, ConnectionStatus.SUCCESS]
