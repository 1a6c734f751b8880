"""Deterministic truncation of scraped content before it reaches a prompt.

Each field is cut to a leading slice so the prompt size, and therefore the
token cost of a review, has a fixed upper bound. Lengths are counted in
characters rather than model tokens.
"""
from __future__ import annotations

import logging

from .schemas import ExtractedContent

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_HEADINGS = 10
MAX_HEADING_LENGTH = 100
MAX_FORMS = 5
MAX_BUTTONS = 10
MAX_BUTTON_LENGTH = 50
MAX_MAIN_TEXT_LENGTH = 1500


def budget_content(content: ExtractedContent) -> ExtractedContent:
    """Return a truncated copy of ``content``; the input is left untouched."""

    budgeted = ExtractedContent(
        title=(content.title or "")[:MAX_TITLE_LENGTH],
        headings=[heading[:MAX_HEADING_LENGTH] for heading in content.headings[:MAX_HEADINGS]],
        forms=list(content.forms[:MAX_FORMS]),
        buttons=[button[:MAX_BUTTON_LENGTH] for button in content.buttons[:MAX_BUTTONS]],
        main_text=(content.main_text or "")[:MAX_MAIN_TEXT_LENGTH],
    )
    logger.info(
        "Prompt budget: text %d->%d chars, headings %d->%d, forms %d->%d, buttons %d->%d",
        len(content.main_text or ""),
        len(budgeted.main_text),
        len(content.headings),
        len(budgeted.headings),
        len(content.forms),
        len(budgeted.forms),
        len(content.buttons),
        len(budgeted.buttons),
    )
    return budgeted
