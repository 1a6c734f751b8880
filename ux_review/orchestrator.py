"""End-to-end UX analysis of a single URL."""
from __future__ import annotations

import datetime as dt
import logging
import time
from typing import Dict, Optional

from playwright.async_api import Error as PlaywrightError

from .browser import BrowserSession, ConcurrencyGate
from .budget import budget_content
from .config import Settings, get_settings
from .llm import AiGateway
from .schemas import AnalysisResult
from .scrape import ContentExtractor
from .screenshot import ScreenshotCapturer
from .url_guard import validate_url

logger = logging.getLogger(__name__)


class AnalysisOrchestrator:
    """Runs validation, scraping, screenshot capture and review in order.

    Each browser stage holds its own slot of the shared
    :class:`ConcurrencyGate`, so a request occupies at most one slot at a
    time. Stage errors reach the caller unchanged.
    """

    def __init__(
        self,
        session: BrowserSession,
        gate: ConcurrencyGate,
        extractor: ContentExtractor,
        capturer: ScreenshotCapturer,
        gateway: AiGateway,
        production: bool = False,
    ) -> None:
        self._session = session
        self._gate = gate
        self._extractor = extractor
        self._capturer = capturer
        self._gateway = gateway
        self._production = production

    async def analyze(self, url: str) -> AnalysisResult:
        start = time.perf_counter()
        canonical = validate_url(url, production=self._production)
        logger.info("Creating review for URL: %s", canonical)

        with self._gate.slot():
            logger.debug("Scrape slot acquired [active: %d/%d]", self._gate.in_flight, self._gate.limit)
            content = await self._extractor.extract(canonical)

        with self._gate.slot():
            logger.debug("Screenshot slot acquired [active: %d/%d]", self._gate.in_flight, self._gate.limit)
            screenshot_path = await self._capturer.capture(canonical)

        review = await self._gateway.generate_review(budget_content(content))

        result = AnalysisResult(
            url=canonical,
            extracted_content=content,
            screenshot_path=screenshot_path,
            issues=review.issues,
            top_issues=review.top_issues,
            score=review.score,
        )
        logger.info(
            "Review for %s completed in %.2fs with score %d",
            canonical,
            time.perf_counter() - start,
            result.score,
        )
        return result

    async def check_health(self, include_llm: bool = False) -> Dict[str, str]:
        """Report component status as ``ok``/``error``.

        The screenshot probe launches the shared browser if it is not already
        running. The model probe is opt-in because every call consumes quota.
        """

        try:
            browser = await self._session.get()
            screenshot_ok = browser.is_connected()
        except PlaywrightError as exc:
            logger.error("Screenshot service check failed: %s", exc)
            screenshot_ok = False
        status: Dict[str, str] = {
            "backend": "ok",
            "screenshot": "ok" if screenshot_ok else "error",
        }
        healthy = screenshot_ok
        if include_llm:
            llm_ok = await self._gateway.check_health()
            status["llm"] = "ok" if llm_ok else "error"
            healthy = healthy and llm_ok
        status["overall"] = "healthy" if healthy else "unhealthy"
        status["timestamp"] = dt.datetime.now(dt.timezone.utc).isoformat()
        logger.info("Health check completed: %s", status)
        return status

    async def shutdown(self) -> None:
        await self._session.shutdown()


def build_orchestrator(
    settings: Optional[Settings] = None,
    gateway: Optional[AiGateway] = None,
) -> AnalysisOrchestrator:
    """Wire the pipeline from environment settings."""

    settings = settings or get_settings()
    session = BrowserSession(headless=settings.headless)
    return AnalysisOrchestrator(
        session=session,
        gate=ConcurrencyGate(settings.max_concurrent_browser_ops),
        extractor=ContentExtractor(session, timeout_ms=settings.navigation_timeout_ms),
        capturer=ScreenshotCapturer(
            session, settings.screenshot_dir, timeout_ms=settings.navigation_timeout_ms
        ),
        gateway=gateway or AiGateway(),
        production=settings.production,
    )
