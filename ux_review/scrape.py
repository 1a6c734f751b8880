"""Rendered-page fetching and content extraction for UX review."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError

from .browser import BrowserSession
from .config import DEFAULT_NAVIGATION_TIMEOUT_MS
from .errors import ScrapeFailed
from .sanitizer import sanitize_list, sanitize_text
from .schemas import ExtractedContent

logger = logging.getLogger(__name__)

# Pages full of ads, trackers or websockets rarely reach network idle, so
# navigation only waits for the DOM.
WAIT_UNTIL = "domcontentloaded"
MAX_RAW_TEXT_LENGTH = 5000

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
BUTTON_SELECTOR = 'button, input[type="button"], input[type="submit"]'
BOILERPLATE_TAGS = ["script", "style", "nav", "footer", "header"]


def _form_descriptor(index: int, form) -> str:
    classes = form.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    name = form.get("id") or " ".join(classes) or "unnamed"
    return f"Form {index}: {name}"


def _button_label(button) -> str:
    text = button.get_text(strip=True)
    if text:
        return text
    return (button.get("value") or "").strip() or "Unnamed Button"


def extract_page_content(html: str, title: Optional[str] = None) -> ExtractedContent:
    """Parse rendered HTML into sanitised, structured page content.

    ``title`` is the document title reported by the browser; the ``<title>``
    element is used when it is not supplied.
    """
    soup = BeautifulSoup(html, "html.parser")

    if title is None:
        title_tag = soup.find("title")
        title = title_tag.get_text(strip=True) if title_tag else ""

    headings = [tag.get_text(" ", strip=True) for tag in soup.find_all(HEADING_TAGS)]
    forms = [_form_descriptor(idx, form) for idx, form in enumerate(soup.find_all("form"), start=1)]
    buttons = [_button_label(tag) for tag in soup.select(BUTTON_SELECTOR)]

    body = soup.body or soup
    for tag in body.find_all(BOILERPLATE_TAGS):
        tag.decompose()
    main_text = " ".join(body.stripped_strings)[:MAX_RAW_TEXT_LENGTH]

    return ExtractedContent(
        title=sanitize_text(title),
        headings=sanitize_list(headings),
        forms=sanitize_list(forms),
        buttons=sanitize_list(buttons),
        main_text=sanitize_text(main_text),
    )


class ContentExtractor:
    """Loads a page in the shared browser and extracts its content."""

    def __init__(
        self,
        session: BrowserSession,
        timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS,
    ) -> None:
        self._session = session
        self._timeout_ms = timeout_ms

    async def extract(self, url: str) -> ExtractedContent:
        """Navigate to a canonical ``url`` and return its sanitised content."""

        start = time.perf_counter()
        logger.info("Starting scraping for URL: %s", url)
        try:
            async with self._session.page() as page:
                await page.goto(url, wait_until=WAIT_UNTIL, timeout=self._timeout_ms)
                title = await page.title()
                html = await page.content()
        except (PlaywrightError, asyncio.TimeoutError) as exc:
            logger.error("Error scraping %s: %s", url, exc)
            raise ScrapeFailed(f"Failed to scrape {url}: {exc}") from exc

        content = extract_page_content(html, title=title)
        logger.info(
            "Scraped %s in %.2fs (%d headings, %d forms, %d buttons)",
            url,
            time.perf_counter() - start,
            len(content.headings),
            len(content.forms),
            len(content.buttons),
        )
        return content
