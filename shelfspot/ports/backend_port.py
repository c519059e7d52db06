"""Backend port — abstract interface for the ShelfSpot REST API.

Stores depend on this protocol, never on the HTTP client directly.
"""

from __future__ import annotations

from typing import Protocol

from shelfspot.data.models import Alert, AuthResponse, User


class BackendPort(Protocol):
    """Typed request interface to the remote backend."""

    async def login(self, email: str, password: str) -> AuthResponse: ...

    async def register(
        self, email: str, password: str, name: str | None = None
    ) -> AuthResponse: ...

    async def get_profile(self) -> User: ...

    async def update_profile(self, name: str) -> User: ...

    async def update_email(self, email: str) -> User: ...

    async def update_notification_token(self, notification_token: str) -> User: ...

    async def reset_password(self, email: str, new_password: str) -> dict: ...

    async def get_alerts(self) -> list[Alert]: ...

    async def create_alert(
        self, item_id: int, threshold: int, name: str | None = None
    ) -> Alert: ...

    async def update_alert(
        self,
        alert_id: int,
        threshold: int | None = None,
        name: str | None = None,
        is_active: bool | None = None,
    ) -> Alert: ...

    async def delete_alert(self, alert_id: int) -> None: ...
