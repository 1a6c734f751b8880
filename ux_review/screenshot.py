"""Full-page screenshot capture."""
from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from uuid import uuid4

from playwright.async_api import Error as PlaywrightError

from .browser import BrowserSession
from .config import DEFAULT_NAVIGATION_TIMEOUT_MS
from .errors import ScreenshotFailed
from .scrape import WAIT_UNTIL

logger = logging.getLogger(__name__)


def screenshot_filename() -> str:
    """Timestamped PNG name; the random suffix keeps same-millisecond captures apart."""

    return f"screenshot_{int(time.time() * 1000)}_{uuid4().hex[:8]}.png"


class ScreenshotCapturer:
    def __init__(
        self,
        session: BrowserSession,
        output_dir: Path | str,
        timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS,
    ) -> None:
        self._session = session
        self._output_dir = Path(output_dir)
        self._timeout_ms = timeout_ms

    async def capture(self, url: str) -> str:
        """Save a full-page PNG of ``url`` and return the file path."""

        start = time.perf_counter()
        logger.info("Capturing screenshot for URL: %s", url)
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
            path = self._output_dir / screenshot_filename()
            async with self._session.page() as page:
                await page.goto(url, wait_until=WAIT_UNTIL, timeout=self._timeout_ms)
                await page.screenshot(path=str(path), full_page=True)
        except (PlaywrightError, asyncio.TimeoutError, OSError) as exc:
            logger.error("Error capturing screenshot of %s: %s", url, exc)
            raise ScreenshotFailed(f"Failed to capture screenshot of {url}: {exc}") from exc

        logger.info("Screenshot of %s saved to %s in %.2fs", url, path, time.perf_counter() - start)
        return str(path)
