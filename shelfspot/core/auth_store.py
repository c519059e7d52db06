"""
ShelfSpot Client — Auth Store.

Owns the current session (user + bearer token) and mirrors the token into
storage. Every path that changes the session leaves memory and storage
consistent: a settled store never holds a user without a token, or a token
without a user.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from shelfspot.core.errors import (
    AuthError,
    BackendApiError,
    ConfigurationError,
    NetworkError,
    PersistenceError,
    ValidationError,
)
from shelfspot.core.observable import Observable

if TYPE_CHECKING:
    from shelfspot.data.bridge import PersistentBridge
    from shelfspot.data.models import User
    from shelfspot.ports.backend_port import BackendPort

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth.access_token"

MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2

_NETWORK_MESSAGE = "Cannot reach the server. Check the server address and your network."
_SESSION_EXPIRED = "Session expired"
_STALE_TOKEN_KEPT = "Session expired, but the old sign-in could not be removed from this device"


class AuthStatus(Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    AUTH_ERROR = "auth-error"


@dataclass
class RefreshResult:
    """Outcome of a profile refresh, for callers that branch instead of catching."""

    user: User | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _describe_failure(exc: Exception, default: str, conflict: str | None = None) -> str:
    """Translate a backend failure into a message for the UI."""
    if isinstance(exc, AuthError):
        return "Invalid email or password"
    if isinstance(exc, (NetworkError, ConfigurationError)):
        return _NETWORK_MESSAGE
    if isinstance(exc, BackendApiError):
        if exc.status == 409 and conflict:
            return conflict
        return str(exc) or default
    return default


def _require_email(email: str) -> str:
    email = (email or "").strip()
    if not email:
        raise ValidationError("Email is required")
    return email


def _require_password(password: str) -> str:
    if len((password or "").strip()) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    return password


def _require_name(name: str) -> str:
    name = (name or "").strip()
    if len(name) < MIN_NAME_LENGTH:
        raise ValidationError(f"Name must be at least {MIN_NAME_LENGTH} characters")
    return name


class AuthStore(Observable):
    """Session state and the auth operations that change it."""

    def __init__(self, bridge: PersistentBridge, backend: BackendPort) -> None:
        super().__init__()
        self._storage = bridge.scoped("auth", {TOKEN_KEY})
        self._backend = backend

        self.user: User | None = None
        self.token: str | None = None
        self.status = AuthStatus.ANONYMOUS
        self.error: str | None = None
        self.loading = False
        # Token read from storage while its profile is being resolved
        self._pending_token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.token is not None

    @property
    def bearer_token(self) -> str | None:
        """Token the HTTP client should send right now."""
        return self._pending_token or self.token

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _begin(self) -> None:
        self.loading = True
        self.error = None
        self._notify()

    def _fail(self, message: str, status: AuthStatus | None = None) -> None:
        self.loading = False
        self.error = message
        if status is not None:
            self.status = status
        self._notify()

    def _failure_status(self) -> AuthStatus:
        """A failed attempt leaves an existing session signed in."""
        return AuthStatus.AUTHENTICATED if self.is_authenticated else AuthStatus.AUTH_ERROR

    def _reject(self, exc: ValidationError) -> None:
        self.error = str(exc)
        self._notify()
        raise exc

    def _clear_session(self) -> None:
        self.user = None
        self.token = None
        self._pending_token = None
        self.status = AuthStatus.ANONYMOUS

    async def _start_session(self, token: str, user: User) -> None:
        """Persist the token first; only then expose the session in memory."""
        try:
            await self._storage.set(TOKEN_KEY, token)
        except PersistenceError:
            self._fail("Could not save the session on this device", self._failure_status())
            raise
        self.user = user
        self.token = token
        self.status = AuthStatus.AUTHENTICATED
        self.loading = False
        self._notify()

    # ------------------------------------------------------------------
    # Login / register / logout
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> None:
        """Sign in. Raises ValidationError before any I/O on blank fields."""
        email = (email or "").strip()
        if not email or not (password or "").strip():
            self._reject(ValidationError("Email and password are required"))

        logger.info("Login attempt for %s", email)
        self.status = AuthStatus.AUTHENTICATING
        self._begin()
        try:
            response = await self._backend.login(email, password)
        except Exception as exc:
            logger.warning("Login failed for %s: %s", email, exc)
            self._fail(_describe_failure(exc, "Login failed"), self._failure_status())
            raise

        await self._start_session(response.access_token, response.user)
        logger.info("Login successful for %s", email)

    async def register(self, email: str, password: str, name: str | None = None) -> None:
        """Create an account and sign in.

        Client-side minimums (email present, password and name lengths) are
        checked first; the backend never sees input known to be invalid.
        """
        try:
            email = _require_email(email)
            _require_password(password)
            if name is not None:
                name = _require_name(name)
        except ValidationError as exc:
            self._reject(exc)

        logger.info("Register attempt for %s", email)
        self.status = AuthStatus.AUTHENTICATING
        self._begin()
        try:
            response = await self._backend.register(email, password, name)
        except Exception as exc:
            logger.warning("Registration failed for %s: %s", email, exc)
            message = _describe_failure(
                exc, "Registration failed", conflict="An account with this email already exists",
            )
            if isinstance(exc, AuthError):
                message = "Registration was refused by the server"
            self._fail(message, self._failure_status())
            raise

        await self._start_session(response.access_token, response.user)
        logger.info("Registration successful for %s", email)

    async def logout(self) -> None:
        """Always ends with a cleared in-memory session."""
        logger.info("Logging out")
        try:
            await self._storage.remove(TOKEN_KEY)
        except PersistenceError as exc:
            logger.error("Could not remove stored token during logout: %s", exc)
        self._clear_session()
        self.error = None
        self.loading = False
        self._notify()

    # ------------------------------------------------------------------
    # Session refresh
    # ------------------------------------------------------------------

    async def has_stored_token(self) -> bool:
        try:
            return bool(await self._storage.get(TOKEN_KEY))
        except PersistenceError as exc:
            logger.error("Could not read stored token: %s", exc)
            return False

    async def refresh_user(self) -> User | None:
        """Resolve the stored token into a user.

        No stored token leaves the store anonymous and returns None. A
        rejected token is removed from storage, the session is cleared and
        the error is re-raised. If the token cannot be removed, memory is
        still cleared and the error field says so; the next refresh will
        try the same token again.
        """
        try:
            token = await self._storage.get(TOKEN_KEY)
        except PersistenceError:
            self._clear_session()
            self._fail(_SESSION_EXPIRED)
            raise

        if not token:
            logger.info("No stored token")
            self._clear_session()
            self._notify()
            return None

        logger.info("Token found, refreshing user profile")
        self._pending_token = token
        self.status = AuthStatus.AUTHENTICATING
        self._begin()
        try:
            user = await self._backend.get_profile()
        except Exception as exc:
            logger.warning("Profile refresh failed, clearing session: %s", exc)
            message = _SESSION_EXPIRED
            try:
                await self._storage.remove(TOKEN_KEY)
            except PersistenceError as remove_exc:
                logger.error("Could not remove rejected token: %s", remove_exc)
                message = _STALE_TOKEN_KEPT
            self._clear_session()
            self._fail(message)
            raise

        self._pending_token = None
        self.user = user
        self.token = token
        self.status = AuthStatus.AUTHENTICATED
        self.loading = False
        self._notify()
        logger.info("User profile refreshed")
        return user

    async def try_refresh_user(self) -> RefreshResult:
        try:
            user = await self.refresh_user()
        except Exception as exc:
            return RefreshResult(error=exc)
        return RefreshResult(user=user)

    # ------------------------------------------------------------------
    # Account maintenance
    # ------------------------------------------------------------------

    async def reset_password(self, email: str, new_password: str) -> None:
        """Ask the backend to reset a password. Never touches the session."""
        try:
            email = _require_email(email)
            _require_password(new_password)
        except ValidationError as exc:
            self._reject(exc)

        logger.info("Resetting password for %s", email)
        self._begin()
        try:
            await self._backend.reset_password(email, new_password)
        except Exception as exc:
            logger.warning("Password reset failed for %s: %s", email, exc)
            message = "Password reset failed"
            if isinstance(exc, (NetworkError, ConfigurationError)):
                message = _NETWORK_MESSAGE
            self._fail(message)
            raise
        self.loading = False
        self._notify()

    def _require_session(self) -> None:
        if not self.is_authenticated:
            raise AuthError("Not signed in")

    async def update_profile(self, name: str) -> None:
        self._require_session()
        try:
            name = _require_name(name)
        except ValidationError as exc:
            self._reject(exc)

        self._begin()
        try:
            self.user = await self._backend.update_profile(name)
        except Exception as exc:
            logger.warning("Profile update failed: %s", exc)
            self._fail("Could not update the profile")
            raise
        self.loading = False
        self._notify()

    async def update_email(self, email: str) -> None:
        self._require_session()
        try:
            email = _require_email(email)
        except ValidationError as exc:
            self._reject(exc)

        self._begin()
        try:
            self.user = await self._backend.update_email(email)
        except Exception as exc:
            logger.warning("Email update failed: %s", exc)
            message = "Could not update the email address"
            if isinstance(exc, BackendApiError):
                if exc.status == 409:
                    message = "This email is already used by another account"
                elif exc.status == 400:
                    message = "Invalid email format"
            self._fail(message)
            raise
        self.loading = False
        self._notify()

    async def update_notification_token(self, notification_token: str) -> None:
        self._require_session()
        if not (notification_token or "").strip():
            self._reject(ValidationError("Notification token is required"))

        self._begin()
        try:
            self.user = await self._backend.update_notification_token(notification_token)
        except Exception as exc:
            logger.warning("Notification token update failed: %s", exc)
            self._fail("Could not register for notifications")
            raise
        self.loading = False
        self._notify()

    def clear_error(self) -> None:
        self.error = None
        self._notify()
