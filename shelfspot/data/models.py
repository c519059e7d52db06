"""
ShelfSpot Client — Data Models.

Wire shapes returned by the backend. The backend speaks camelCase, so
fields carry aliases and accept either spelling.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class User(_WireModel):
    """An authenticated ShelfSpot account."""

    id: str
    email: str
    name: str | None = None
    admin: bool = False
    notification_token: str | None = Field(default=None, alias="notificationToken")


class AuthResponse(_WireModel):
    """Body of a successful login or register call."""

    access_token: str
    user: User
    token_type: str = "Bearer"
    expires_in: int | None = None


class ServerInfo(_WireModel):
    """Snapshot of a successful health check."""

    version: str
    timestamp: str
    message: str


class Alert(_WireModel):
    """A stock threshold configured for one item.

    JSON example:
    {
        "id": 4,
        "itemId": 12,
        "threshold": 2,
        "name": "Low on AA batteries",
        "isActive": true,
        "lastSent": "2025-03-01T08:00:00.000Z"
    }
    """

    id: int
    item_id: int = Field(alias="itemId")
    threshold: int
    is_active: bool = Field(default=True, alias="isActive")
    name: str | None = None
    last_sent: str | None = Field(default=None, alias="lastSent")


class Item(_WireModel):
    """An inventory item as seen by alert evaluation."""

    id: int
    name: str
    quantity: int
    location: str = ""
    active_alerts: list[Alert] = Field(default_factory=list, alias="activeAlerts")
