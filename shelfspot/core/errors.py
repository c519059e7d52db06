"""Error taxonomy shared by the stores, the bridge and the HTTP adapters."""

from __future__ import annotations


class ShelfSpotError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(ShelfSpotError):
    """Client-side input failed a precondition. Never reaches the network."""


class NetworkError(ShelfSpotError):
    """Transport failure, timeout or unreachable host."""


class AuthError(ShelfSpotError):
    """Backend rejected the credentials, or the token is expired/invalid."""

    def __init__(self, message: str, status: int = 401) -> None:
        super().__init__(message)
        self.status = status


class BackendApiError(ShelfSpotError):
    """Backend answered with a non-2xx status other than an auth rejection."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status


class PersistenceError(ShelfSpotError):
    """Local key-value read or write failed."""


class ConfigurationError(ShelfSpotError):
    """Server address is malformed or unusable."""
