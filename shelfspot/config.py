"""
ShelfSpot Client — Centralized configuration.

Loads all settings from .env. Nothing here is required: every key has a
default suited to a device on the local network.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from shelfspot/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Local key-value storage (SQLite file)
    STORAGE_PATH: str = "data/shelfspot.db"

    # Backend server: the placeholder address means "not configured yet"
    DEFAULT_SERVER: str = "192.168.1.100"
    DEFAULT_PORT: int = 3001

    # HTTP timeouts in seconds
    HTTP_TIMEOUT: float = 10.0
    HEALTH_TIMEOUT: float = 5.0

    LOG_LEVEL: str = "INFO"

    @field_validator("DEFAULT_PORT", mode="before")
    @classmethod
    def parse_port(cls, v: str | int) -> int:
        port = int(v)
        if not 0 < port < 65536:
            raise ValueError(f"Port out of range: {port}")
        return port

    @field_validator("HTTP_TIMEOUT", "HEALTH_TIMEOUT", mode="before")
    @classmethod
    def parse_timeout(cls, v: str | float) -> float:
        return float(v)

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def parse_log_level(cls, v: str) -> str:
        level = str(v).strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown LOG_LEVEL: {v!r}")
        return level

    @property
    def log_level(self) -> int:
        return getattr(logging, self.LOG_LEVEL)


def _load_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        STORAGE_PATH=os.getenv("SHELFSPOT_STORAGE_PATH", "data/shelfspot.db"),
        DEFAULT_SERVER=os.getenv("SHELFSPOT_DEFAULT_SERVER", "192.168.1.100"),
        DEFAULT_PORT=os.getenv("SHELFSPOT_DEFAULT_PORT", "3001"),
        HTTP_TIMEOUT=os.getenv("SHELFSPOT_HTTP_TIMEOUT", "10"),
        HEALTH_TIMEOUT=os.getenv("SHELFSPOT_HEALTH_TIMEOUT", "5"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton, imported by all other modules as:
#   from shelfspot.config import settings
settings = _load_settings()
