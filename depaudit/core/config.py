"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"
DEFAULT_DOWNLOADS_URL = "https://api.npmjs.org/downloads/point/last-week"


@dataclass(frozen=True)
class Settings:
    """Knobs shared by the CLI and the external-service clients."""

    registry_url: str = DEFAULT_REGISTRY_URL
    downloads_url: str = DEFAULT_DOWNLOADS_URL
    concurrency: int = 8  # max in-flight per-package lookups
    timeout: float = 30.0  # seconds, per HTTP request / subprocess
    log_level: str = "WARNING"
    log_format: str = "console"  # console | json


def _env_str(key: str, default: str) -> str:
    value = os.environ.get(key, "").strip()
    return value or default


def _env_int(key: str, default: int) -> int:
    return int(os.environ.get(key, default))


def _env_float(key: str, default: float) -> float:
    return float(os.environ.get(key, default))


def load_settings() -> Settings:
    """Build :class:`Settings` from ``DEPAUDIT_*`` environment variables."""
    return Settings(
        registry_url=_env_str("DEPAUDIT_REGISTRY_URL", DEFAULT_REGISTRY_URL).rstrip("/"),
        downloads_url=_env_str("DEPAUDIT_DOWNLOADS_URL", DEFAULT_DOWNLOADS_URL).rstrip("/"),
        concurrency=max(1, _env_int("DEPAUDIT_CONCURRENCY", 8)),
        timeout=_env_float("DEPAUDIT_TIMEOUT", 30.0),
        log_level=_env_str("DEPAUDIT_LOG_LEVEL", "WARNING").upper(),
        log_format=_env_str("DEPAUDIT_LOG_FORMAT", "console").lower(),
    )
