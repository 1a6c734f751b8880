"""Strip script vectors from scraped text before it is stored or prompted."""
from __future__ import annotations

import re
from typing import Iterable, List

_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+=\"[^\"]*\"", re.IGNORECASE)
_UNSAFE_SCHEMES = re.compile(r"javascript:|data:", re.IGNORECASE)

_PATTERNS = (_SCRIPT_BLOCK, _EVENT_HANDLER, _UNSAFE_SCHEMES)


def sanitize_text(text: str | None) -> str:
    """Remove script blocks, inline handlers and unsafe URI schemes.

    The patterns are reapplied until the text stops changing so that
    fragments like ``javajavascript:script:`` cannot reassemble a payload.
    """

    if not text:
        return ""
    cleaned = text
    while True:
        previous = cleaned
        for pattern in _PATTERNS:
            cleaned = pattern.sub("", cleaned)
        if cleaned == previous:
            break
    return cleaned.strip()


def sanitize_list(items: Iterable[str]) -> List[str]:
    """Sanitise each entry and drop the ones left empty."""

    cleaned = (sanitize_text(item) for item in items)
    return [item for item in cleaned if item]
