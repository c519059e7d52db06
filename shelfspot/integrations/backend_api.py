"""ShelfSpot REST client — implements BackendPort over httpx.

Every call resolves the base URL and bearer token at request time, so a
server address change or a fresh login takes effect on the next request.

Error mapping:
    transport failure / timeout  -> NetworkError
    401 / 403                    -> AuthError
    any other non-2xx            -> BackendApiError
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx
from pydantic import ValidationError as PydanticValidationError

from shelfspot.core.errors import AuthError, BackendApiError, NetworkError
from shelfspot.data.models import Alert, AuthResponse, User

logger = logging.getLogger(__name__)

_AUTH_STATUSES = (401, 403)


def _error_message(resp: httpx.Response) -> str:
    """Prefer the backend's own message/error field over the bare status."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        message = data.get("message") or data.get("error")
        if isinstance(message, list):
            message = "; ".join(str(m) for m in message)
        if message:
            return str(message)
    return f"HTTP {resp.status_code}"


class BackendApiClient:
    """httpx implementation of BackendPort."""

    def __init__(
        self,
        base_url: Callable[[], str],
        token: Callable[[], str | None],
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if timeout is None:
            from shelfspot.config import settings
            timeout = settings.HTTP_TIMEOUT

        self._base_url = base_url
        self._token = token
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self._token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(self, method: str, endpoint: str, json: dict | None = None) -> Any:
        url = f"{self._base_url()}{endpoint}"
        logger.debug("%s %s", method, url)

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                resp = await client.request(method, url, json=json, headers=self._headers())
        except httpx.TimeoutException as exc:
            raise NetworkError(f"Request to {endpoint} timed out") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"Could not reach the server: {exc}") from exc

        logger.debug("%s %s -> %d", method, endpoint, resp.status_code)

        if resp.status_code in _AUTH_STATUSES:
            raise AuthError(_error_message(resp), status=resp.status_code)
        if resp.is_error:
            raise BackendApiError(resp.status_code, _error_message(resp))

        if resp.status_code == 204 or not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError:
            logger.debug("Empty or invalid JSON body from %s, returning {}", endpoint)
            return {}

    @staticmethod
    def _parse(model: type, data: Any, endpoint: str) -> Any:
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            raise BackendApiError(200, f"Malformed response from {endpoint}") from exc

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> AuthResponse:
        logger.info("Login attempt for %s", email)
        data = await self._request("POST", "/auth/login", {"email": email, "password": password})
        return self._parse(AuthResponse, data, "/auth/login")

    async def register(
        self, email: str, password: str, name: str | None = None
    ) -> AuthResponse:
        logger.info("Register attempt for %s", email)
        data = await self._request(
            "POST", "/auth/register", {"email": email, "password": password, "name": name},
        )
        return self._parse(AuthResponse, data, "/auth/register")

    async def get_profile(self) -> User:
        data = await self._request("GET", "/auth/profile")
        return self._parse(User, data, "/auth/profile")

    async def update_profile(self, name: str) -> User:
        data = await self._request("PUT", "/auth/profile/name", {"name": name})
        return self._parse(User, data, "/auth/profile/name")

    async def update_email(self, email: str) -> User:
        data = await self._request("PUT", "/auth/profile/email", {"email": email})
        return self._parse(User, data, "/auth/profile/email")

    async def update_notification_token(self, notification_token: str) -> User:
        data = await self._request(
            "PUT",
            "/auth/profile/notification-token",
            {"notificationToken": notification_token},
        )
        return self._parse(User, data, "/auth/profile/notification-token")

    async def reset_password(self, email: str, new_password: str) -> dict:
        logger.info("Password reset for %s", email)
        return await self._request(
            "POST", "/auth/password/reset", {"email": email, "newPassword": new_password},
        )

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    async def get_alerts(self) -> list[Alert]:
        data = await self._request("GET", "/alerts")
        if not isinstance(data, list):
            raise BackendApiError(200, "Malformed response from /alerts")
        return [self._parse(Alert, a, "/alerts") for a in data]

    async def create_alert(
        self, item_id: int, threshold: int, name: str | None = None
    ) -> Alert:
        body: dict[str, Any] = {"itemId": item_id, "threshold": threshold}
        if name:
            body["name"] = name
        data = await self._request("POST", "/alerts", body)
        return self._parse(Alert, data, "/alerts")

    async def update_alert(
        self,
        alert_id: int,
        threshold: int | None = None,
        name: str | None = None,
        is_active: bool | None = None,
    ) -> Alert:
        body: dict[str, Any] = {}
        if threshold is not None:
            body["threshold"] = threshold
        if name is not None:
            body["name"] = name
        if is_active is not None:
            body["isActive"] = is_active
        data = await self._request("PATCH", f"/alerts/{alert_id}", body)
        return self._parse(Alert, data, f"/alerts/{alert_id}")

    async def delete_alert(self, alert_id: int) -> None:
        await self._request("DELETE", f"/alerts/{alert_id}")
