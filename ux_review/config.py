"""Environment-driven runtime settings."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT = 3
DEFAULT_NAVIGATION_TIMEOUT_MS = 30_000
DEFAULT_SCREENSHOT_DIR = "screenshots"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True, slots=True)
class Settings:
    environment: str
    max_concurrent_browser_ops: int
    navigation_timeout_ms: int
    headless: bool
    screenshot_dir: Path

    @property
    def production(self) -> bool:
        return self.environment == "production"


def _int_env(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s value %s; falling back to %s", name, raw, default)
        return default
    return max(minimum, value)


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    logger.warning("Invalid %s value %s; falling back to %s", name, raw, default)
    return default


def _environment() -> str:
    return (os.getenv("APP_ENV") or "development").strip().lower()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings from the environment once per process."""

    return Settings(
        environment=_environment(),
        max_concurrent_browser_ops=_int_env("BROWSER_MAX_CONCURRENT", DEFAULT_MAX_CONCURRENT, 1),
        navigation_timeout_ms=_int_env(
            "BROWSER_NAVIGATION_TIMEOUT_MS", DEFAULT_NAVIGATION_TIMEOUT_MS, 1000
        ),
        headless=_bool_env("BROWSER_HEADLESS", True),
        screenshot_dir=Path(os.getenv("SCREENSHOT_DIR") or DEFAULT_SCREENSHOT_DIR),
    )
