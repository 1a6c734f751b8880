import re
from pathlib import Path

import pytest
from playwright.async_api import Error as PlaywrightError

from conftest import FakePage
from ux_review.errors import ScreenshotFailed
from ux_review.screenshot import ScreenshotCapturer, screenshot_filename


def test_screenshot_filenames_are_timestamped_and_unique():
    names = {screenshot_filename() for _ in range(50)}
    assert len(names) == 50
    assert all(re.fullmatch(r"screenshot_\d{13}_[0-9a-f]{8}\.png", name) for name in names)


@pytest.mark.asyncio
async def test_capture_writes_full_page_png_into_new_directory(tmp_path, make_session, launched_browsers):
    output_dir = tmp_path / "nested" / "shots"
    capturer = ScreenshotCapturer(make_session(), output_dir)

    location = await capturer.capture("https://example.com/")

    path = Path(location)
    assert path.parent == output_dir
    assert path.read_bytes().startswith(b"\x89PNG")
    page = launched_browsers[0].pages[0]
    assert page.screenshot_calls == [{"path": location, "full_page": True}]
    assert page.goto_calls[0]["wait_until"] == "domcontentloaded"
    assert page.closed


@pytest.mark.asyncio
async def test_capture_failure_is_wrapped_and_page_closed(tmp_path, make_session, launched_browsers):
    def page_factory():
        return FakePage(screenshot_error=PlaywrightError("Page crashed"))

    capturer = ScreenshotCapturer(make_session(page_factory), tmp_path)

    with pytest.raises(ScreenshotFailed) as excinfo:
        await capturer.capture("https://example.com/")

    assert "Page crashed" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, PlaywrightError)
    assert launched_browsers[0].pages[0].closed
