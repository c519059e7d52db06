"""Shared test fixtures and configuration.

Sets up environment variables before any shelfspot imports and provides
common fixtures: a temp key-value DB, a bridge over it, a mocked backend
and an in-process appearance notifier.
"""

import os

# Patch env vars BEFORE any shelfspot imports
os.environ.setdefault("SHELFSPOT_STORAGE_PATH", "data/test-shelfspot.db")
os.environ.setdefault("SHELFSPOT_DEFAULT_SERVER", "192.168.1.100")
os.environ.setdefault("SHELFSPOT_DEFAULT_PORT", "3001")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_kv.db")


@pytest.fixture
def kv_db(tmp_db_path):
    """Return a KeyValueDB backed by a temp file."""
    from shelfspot.data.kv_db import KeyValueDB
    return KeyValueDB(db_path=tmp_db_path)


@pytest.fixture
def bridge(kv_db):
    """Return a PersistentBridge over the temp DB."""
    from shelfspot.data.bridge import PersistentBridge
    return PersistentBridge(kv_db)


@pytest.fixture
def appearance():
    """Return an appearance notifier that starts in light mode."""
    from shelfspot.adapters.appearance import ManualAppearance
    return ManualAppearance("light")


def make_user(**overrides):
    from shelfspot.data.models import User
    data = {"id": "u-1", "email": "a@b.com", "name": "Alice", "admin": False}
    data.update(overrides)
    return User(**data)


def make_auth_response(token="tok-123", **user_overrides):
    from shelfspot.data.models import AuthResponse
    return AuthResponse(access_token=token, user=make_user(**user_overrides))


@pytest.fixture
def backend():
    """Return a mocked BackendPort with happy-path defaults."""
    mock = MagicMock()
    mock.login = AsyncMock(return_value=make_auth_response())
    mock.register = AsyncMock(return_value=make_auth_response())
    mock.get_profile = AsyncMock(return_value=make_user())
    mock.update_profile = AsyncMock(return_value=make_user(name="Alicia"))
    mock.update_email = AsyncMock(return_value=make_user(email="new@b.com"))
    mock.update_notification_token = AsyncMock(
        return_value=make_user(notificationToken="ExponentPushToken[x]"),
    )
    mock.reset_password = AsyncMock(return_value={"message": "ok"})
    return mock
