"""Fake browser and model collaborators shared by the test suite."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from ux_review import config
from ux_review.browser import BrowserSession

SAMPLE_HTML = """
<html>
  <head><title>Ignored Title</title></head>
  <body>
    <header><h1>Acme Widgets</h1><nav><a href="/">Home</a></nav></header>
    <h2>Why <em>choose</em> us</h2>
    <form id="signup"><input type="submit" value="Join now" /></form>
    <form class="search box"></form>
    <button>Get started</button>
    <button onclick="track()"></button>
    <p>Widgets for every workshop.</p>
    <script>alert("x")</script>
    <footer>Copyright Acme</footer>
  </body>
</html>
"""


class FakePage:
    def __init__(self, html=SAMPLE_HTML, title="Acme Widgets", goto_error=None, screenshot_error=None):
        self.html = html
        self._title = title
        self.goto_error = goto_error
        self.screenshot_error = screenshot_error
        self.goto_calls = []
        self.screenshot_calls = []
        self.closed = False

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append({"url": url, "wait_until": wait_until, "timeout": timeout})
        if self.goto_error is not None:
            raise self.goto_error

    async def title(self):
        return self._title

    async def content(self):
        return self.html

    async def screenshot(self, path=None, full_page=False):
        self.screenshot_calls.append({"path": path, "full_page": full_page})
        if self.screenshot_error is not None:
            raise self.screenshot_error
        Path(path).write_bytes(b"\x89PNG\r\n\x1a\nfake")

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, page_factory=FakePage):
        self._page_factory = page_factory
        self.connected = True
        self.pages = []
        self.close_calls = 0

    def is_connected(self):
        return self.connected

    async def new_page(self):
        page = self._page_factory()
        self.pages.append(page)
        return page

    async def close(self):
        self.close_calls += 1
        self.connected = False


@pytest.fixture
def launched_browsers():
    return []


@pytest.fixture
def make_session(launched_browsers):
    """Return a factory for sessions whose launches produce :class:`FakeBrowser`."""

    def _factory(page_factory=FakePage):
        async def launcher():
            browser = FakeBrowser(page_factory)
            launched_browsers.append(browser)
            return browser

        return BrowserSession(launcher=launcher)

    return _factory


def _issue(category: str, title: str) -> dict:
    return {
        "category": category,
        "title": title,
        "description": f"{title} description",
        "whyIssue": f"{title} hurts users",
        "proof": {"type": "text", "content": "Get started"},
    }


@pytest.fixture
def review_payload() -> dict:
    issues = [
        _issue("clarity", "Vague CTA"),
        _issue("clarity", "Jargon in hero"),
        _issue("layout", "Dense layout"),
        _issue("navigation", "No breadcrumb"),
        _issue("navigation", "Hidden menu"),
        _issue("accessibility", "Low contrast"),
        _issue("accessibility", "Unlabelled button"),
        _issue("trust", "No testimonials"),
    ]
    top = []
    for source in (issues[0], issues[5], issues[7]):
        entry = dict(source)
        entry["beforeSuggestion"] = "Before"
        entry["afterSuggestion"] = "After"
        top.append(entry)
    return {"issues": issues, "topThreeIssues": top, "score": 72}


@pytest.fixture
def review_json(review_payload) -> str:
    return json.dumps(review_payload)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    monkeypatch.delenv("APP_ENV", raising=False)
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()
