"""Shared data structures used across modules."""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .llm import TopIssue, UxIssue


@dataclass(slots=True)
class ExtractedContent:
    title: str
    headings: List[str] = field(default_factory=list)
    forms: List[str] = field(default_factory=list)
    buttons: List[str] = field(default_factory=list)
    main_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "headings": list(self.headings),
            "forms": list(self.forms),
            "buttons": list(self.buttons),
            "mainText": self.main_text,
        }


@dataclass(slots=True)
class AnalysisResult:
    """Outcome of one analysis request, handed to the caller in memory.

    ``top_issues`` always refer to entries of ``issues``; the persistence or
    HTTP layer decides how to store and serialise the result.
    """

    url: str
    extracted_content: ExtractedContent
    screenshot_path: str
    issues: List["UxIssue"]
    top_issues: List["TopIssue"]
    score: int
    created_at: dt.datetime = field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase JSON shape used by the review API."""

        return {
            "url": self.url,
            "title": self.extracted_content.title,
            "score": self.score,
            "issues": [issue.model_dump(by_alias=True) for issue in self.issues],
            "topThreeIssues": [issue.model_dump(by_alias=True) for issue in self.top_issues],
            "extractedContent": self.extracted_content.to_dict(),
            "screenshotPath": self.screenshot_path,
            "createdAt": self.created_at.isoformat(),
        }
