"""Connectivity prober — health check against the configured backend.

Normalizes a user-entered server address into a base URL and calls the
backend's /health endpoint. Never raises for connectivity problems: every
failure is reported as a ProbeResult with a human-readable error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

import httpx

from shelfspot.core.errors import ConfigurationError
from shelfspot.data.models import ServerInfo

logger = logging.getLogger(__name__)

_HEALTH_PATH = "/health"
_DEFAULT_VERSION = "1.0.0"
_DEFAULT_SERVICE = "ShelfSpot API"


@dataclass
class ProbeResult:
    """Outcome of one health check."""

    success: bool
    info: ServerInfo | None = None
    error: str | None = None


def build_base_url(address: str, default_port: int) -> str:
    """Turn "10.0.0.5", "nas.local:8080" or a full URL into a base URL.

    Adds an http:// scheme and the default port when missing.
    Raises ConfigurationError for blank or malformed addresses.
    """
    candidate = (address or "").strip()
    if not candidate:
        raise ConfigurationError("Server address is empty")
    if any(ch.isspace() for ch in candidate):
        raise ConfigurationError(f"Server address contains whitespace: {address!r}")
    if not candidate.isprintable():
        raise ConfigurationError(f"Server address contains control characters: {address!r}")
    if "://" not in candidate:
        candidate = f"http://{candidate}"

    try:
        parts = urlsplit(candidate)
    except ValueError as exc:
        raise ConfigurationError(f"Malformed server address {address!r}: {exc}") from exc
    try:
        port = parts.port
    except ValueError as exc:
        raise ConfigurationError(f"Invalid port in server address {address!r}") from exc

    if parts.scheme not in ("http", "https"):
        raise ConfigurationError(f"Unsupported scheme {parts.scheme!r} in {address!r}")
    if not parts.hostname:
        raise ConfigurationError(f"No host in server address {address!r}")

    host = f"[{parts.hostname}]" if ":" in parts.hostname else parts.hostname
    if port is None:
        port = default_port
    path = parts.path.rstrip("/")
    return f"{parts.scheme}://{host}:{port}{path}"


def _parse_health(data: object) -> ServerInfo | None:
    if not isinstance(data, dict):
        return None
    return ServerInfo(
        version=str(data.get("version") or _DEFAULT_VERSION),
        timestamp=str(data.get("timestamp") or ""),
        message=str(data.get("service") or data.get("message") or _DEFAULT_SERVICE),
    )


async def probe(
    base_url: str,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ProbeResult:
    """GET {base_url}/health and report server info or a structured error."""
    url = f"{base_url}{_HEALTH_PATH}"
    logger.info("Testing connection to %s", url)

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            resp = await client.get(url, headers={"Content-Type": "application/json"})
    except httpx.TimeoutException:
        logger.info("Connection test timed out for %s", url)
        return ProbeResult(success=False, error="Connection timeout")
    except httpx.InvalidURL as exc:
        logger.info("Connection test rejected URL %s: %s", url, exc)
        return ProbeResult(success=False, error=f"Invalid server address: {exc}")
    except httpx.HTTPError as exc:
        logger.info("Connection test failed for %s: %s", url, exc)
        return ProbeResult(success=False, error=f"Network error: {exc}")

    if resp.status_code < 200 or resp.status_code >= 300:
        logger.info("Connection test got HTTP %d from %s", resp.status_code, url)
        return ProbeResult(success=False, error=f"HTTP {resp.status_code}")

    try:
        info = _parse_health(resp.json())
    except ValueError:
        info = None
    if info is None:
        logger.warning("Malformed health response from %s", url)
        return ProbeResult(success=False, error="Malformed health response")

    logger.info("Connection test succeeded: version %s", info.version)
    return ProbeResult(success=True, info=info)
