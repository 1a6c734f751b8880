"""Logging for UX review runs: console plus a per-run log file."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_FILE = "ux-review.log"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"

# Client libraries that log every HTTP request or driver message at INFO.
_NOISY_LOGGERS = ("httpx", "openai", "playwright", "asyncio")


def _normalise_level(level: Optional[str | int]) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        value = level.strip().upper()
        if value.isdigit():
            return int(value)
        mapped = logging.getLevelName(value)
        if isinstance(mapped, int):
            return mapped
    return logging.INFO


def _log_path(log_dir: Optional[Path], log_file: Optional[str]) -> Path:
    directory = Path(log_dir) if log_dir is not None else Path(os.getenv("APP_LOG_DIR") or DEFAULT_LOG_DIR)
    name = log_file or os.getenv("APP_LOG_FILENAME") or DEFAULT_LOG_FILE
    directory.mkdir(parents=True, exist_ok=True)
    return directory / name


def configure_logging(
    level: Optional[str | int] = None,
    log_dir: Optional[Path] = None,
    log_file: Optional[str] = None,
) -> Path:
    """Route pipeline logs to stderr and to a log file truncated on each run.

    Concurrent analyses interleave in the same file, so every stage message
    carries the canonical URL. HTTP and browser-driver chatter is held at
    WARNING unless ``level`` is DEBUG. Returns the log file path.
    """

    log_level = _normalise_level(level)
    log_path = _log_path(log_dir, log_file)

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_path, mode="w", encoding="utf-8"),
        ],
    )
    noisy_level = logging.NOTSET if log_level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
    logging.getLogger(__name__).info("UX review logs initialised at %s", log_path)
    return log_path
