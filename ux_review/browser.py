"""Shared headless browser lifecycle and the capacity gate in front of it."""
from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Awaitable, Callable, Iterator, Optional

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from .errors import Busy

logger = logging.getLogger(__name__)

BrowserLauncher = Callable[[], Awaitable[Browser]]


class ConcurrencyGate:
    """Counter of in-flight browser operations with a hard upper bound.

    ``acquire`` never waits: once ``limit`` slots are taken the next caller is
    rejected with :class:`Busy`. Prefer :meth:`slot`, which releases on every
    exit path.
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self._limit = limit
        self._in_flight = 0
        self._lock = threading.Lock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def acquire(self) -> None:
        with self._lock:
            if self._in_flight >= self._limit:
                logger.warning(
                    "Browser capacity exhausted [active: %d/%d]", self._in_flight, self._limit
                )
                raise Busy("Scraper is busy, please try again shortly")
            self._in_flight += 1

    def release(self) -> None:
        with self._lock:
            if self._in_flight <= 0:
                raise RuntimeError("release() called without a matching acquire()")
            self._in_flight -= 1

    @contextmanager
    def slot(self) -> Iterator[None]:
        self.acquire()
        try:
            yield
        finally:
            self.release()


class BrowserSession:
    """Owns the single browser process shared by every analysis request.

    The browser is launched lazily by :meth:`get` and relaunched when the
    previous handle reports it is no longer connected. Each operation works on
    its own page obtained through :meth:`page`. ``launcher`` replaces the
    default Playwright Chromium launch, which tests use to inject fakes.
    """

    def __init__(self, headless: bool = True, launcher: Optional[BrowserLauncher] = None) -> None:
        self._headless = headless
        self._launcher = launcher
        self._browser: Optional[Browser] = None
        self._playwright: Optional[Playwright] = None
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def _launch(self) -> Browser:
        if self._launcher is not None:
            return await self._launcher()
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return await self._playwright.chromium.launch(headless=self._headless)

    async def get(self) -> Browser:
        """Return the live browser, launching a new one if needed."""

        browser = self._browser
        if browser is not None and browser.is_connected():
            return browser
        async with self._lock:
            # Another task may have relaunched while we waited for the lock.
            if self._browser is not None and self._browser.is_connected():
                return self._browser
            if self._browser is not None:
                logger.warning("Browser disconnected; launching a replacement")
            else:
                logger.info("Launching new Chromium browser instance")
            self._browser = await self._launch()
            return self._browser

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Open a fresh page and close it on exit, including on errors."""

        browser = await self.get()
        page = await browser.new_page()
        try:
            yield page
        finally:
            try:
                await page.close()
            except PlaywrightError as exc:
                logger.warning("Failed to close browser page: %s", exc)

    async def shutdown(self) -> None:
        """Close the browser and stop the driver. Safe to call repeatedly."""

        async with self._lock:
            browser, self._browser = self._browser, None
            playwright, self._playwright = self._playwright, None
            if browser is not None and browser.is_connected():
                await browser.close()
                logger.info("Browser instance closed")
            if playwright is not None:
                await playwright.stop()
