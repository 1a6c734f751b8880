"""Model-backed UX critique: prompt construction, retries and response parsing."""
from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import threading
import time
from typing import Awaitable, Callable, List, Literal

from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from tenacity import AsyncRetrying, before_sleep_log, stop_after_attempt, wait_incrementing

from .errors import GenerationFailed
from .schemas import ExtractedContent

logger = logging.getLogger(__name__)

Completion = Callable[[str], Awaitable[str]]

MAX_RETRIES = 2
RETRY_DELAY_SECONDS = 1.0
MIN_ISSUES = 8
MAX_ISSUES = 12
TOP_ISSUE_COUNT = 3
HEALTH_PROMPT = "Hi"

CATEGORIES = ("clarity", "layout", "navigation", "accessibility", "trust")
IssueCategory = Literal["clarity", "layout", "navigation", "accessibility", "trust"]

DEFAULT_REVIEW_SYSTEM_PROMPT = (
    "You are a UX expert reviewing websites. Ground every finding in the supplied page "
    "content and output only JSON matching the requested structure."
)

_FENCE_OPEN = re.compile(r"```json\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"```\n?")


def _review_system_prompt() -> str:
    return os.getenv("OPENAI_REVIEW_SYSTEM_PROMPT", DEFAULT_REVIEW_SYSTEM_PROMPT)


class Proof(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["screenshot", "text"] = Field(default="text", alias="type")
    content: str = ""

    @field_validator("kind", mode="before")
    @classmethod
    def normalise_kind(cls, value: str | None) -> str:
        """Coerce unexpected proof kinds into ``text``."""

        normalised = str(value or "").strip().lower()
        if normalised in {"screenshot", "text"}:
            return normalised
        logger.debug("Unexpected proof type '%s' from LLM; coercing to text", normalised)
        return "text"


class UxIssue(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    category: IssueCategory
    title: str
    description: str = ""
    why_issue: str = Field(default="", alias="whyIssue")
    proof: Proof = Field(default_factory=Proof)

    @field_validator("category", mode="before")
    @classmethod
    def normalise_category(cls, value: str) -> str:
        return str(value).strip().lower() if value is not None else value

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title cannot be empty")
        return value

    def identity(self) -> tuple[str, str]:
        return self.category, self.title.casefold()


class TopIssue(UxIssue):
    before_suggestion: str = Field(alias="beforeSuggestion")
    after_suggestion: str = Field(alias="afterSuggestion")


class UxReview(BaseModel):
    """Validated review returned by the model.

    Enforces the shape promised to callers: 8-12 issues touching every
    category, exactly three top issues drawn from those issues, and an
    integer score between 0 and 100.
    """

    model_config = ConfigDict(populate_by_name=True)

    issues: List[UxIssue] = Field(min_length=MIN_ISSUES, max_length=MAX_ISSUES)
    top_issues: List[TopIssue] = Field(
        alias="topThreeIssues", min_length=TOP_ISSUE_COUNT, max_length=TOP_ISSUE_COUNT
    )
    score: int = Field(ge=0, le=100)

    @field_validator("score", mode="before")
    @classmethod
    def round_score(cls, value):
        if isinstance(value, float):
            return round(value)
        return value

    @model_validator(mode="after")
    def check_coverage(self) -> "UxReview":
        missing = set(CATEGORIES) - {issue.category for issue in self.issues}
        if missing:
            raise ValueError(f"issues do not cover categories: {', '.join(sorted(missing))}")
        known = {issue.identity() for issue in self.issues}
        for top in self.top_issues:
            if top.identity() not in known:
                raise ValueError(f"top issue '{top.title}' is not one of the listed issues")
        return self


def build_review_prompt(content: ExtractedContent) -> str:
    """Build the review instructions around already budgeted page content."""

    page = {
        "title": content.title,
        "headings": content.headings,
        "forms": content.forms,
        "buttons": content.buttons,
        "main_text_preview": content.main_text,
    }
    example = {
        "issues": [
            {
                "category": "|".join(CATEGORIES),
                "title": "Brief issue title",
                "description": "Detailed description",
                "whyIssue": "Why this is a UX problem",
                "proof": {"type": "text", "content": "Exact text or element that demonstrates this issue"},
            }
        ],
        "topThreeIssues": [
            {
                "category": "|".join(CATEGORIES),
                "title": "Title of one of the issues above",
                "description": "Detailed description",
                "whyIssue": "Why this is a UX problem",
                "proof": {"type": "text", "content": "Exact text or element"},
                "beforeSuggestion": "Current problematic state",
                "afterSuggestion": "Improved suggestion",
            }
        ],
        "score": 75,
    }
    return (
        "You are a UX expert. Analyze this website content and provide a detailed UX review.\n\n"
        f"Website content:\n{json.dumps(page, ensure_ascii=False, indent=2)}\n\n"
        "Generate a JSON response with the following structure:\n"
        f"{json.dumps(example, ensure_ascii=False, indent=2)}\n\n"
        "Requirements:\n"
        f"- Generate {MIN_ISSUES}-{MAX_ISSUES} issues total across these categories: {', '.join(CATEGORIES)}\n"
        "- Each category must have at least 1 issue\n"
        f"- topThreeIssues must contain exactly {TOP_ISSUE_COUNT} of the issues above, the most "
        "critical first, each with before/after suggestions\n"
        "- score must be an integer from 0 to 100 (higher is better UX)\n"
        "- proof must reference actual content from the website\n\n"
        "Return ONLY valid JSON, no markdown formatting."
    )


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences that models often wrap JSON in."""

    cleaned = _FENCE_OPEN.sub("", text)
    cleaned = _FENCE_CLOSE.sub("", cleaned)
    return cleaned.strip()


def parse_review_response(content: str) -> UxReview:
    if not isinstance(content, str):
        raise ValueError(f"Expected text from LLM, got {type(content).__name__}")
    try:
        data = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON from LLM: {exc}") from exc
    try:
        return UxReview.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"LLM response did not match schema: {exc}") from exc


def _get_openai_client() -> AsyncOpenAI:
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY is not configured.")
    return AsyncOpenAI(api_key=api_key)


def _model_name() -> str:
    """Return the configured OpenAI model name."""

    value = os.getenv("OPENAI_MODEL", "gpt-5-mini")
    return value.strip()


# GPT-5 family models reject custom temperature values with a 400 error, so
# overrides are only sent to other models.
_temperature_warnings_issued: set[str] = set()
_temperature_warning_lock = threading.Lock()


def _temperature_kwargs(model: str, desired: float | None) -> dict[str, float]:
    """Return kwargs for temperature respecting model limitations."""

    if desired is None:
        return {}

    compact = model.strip().lower().replace("_", "-").replace(" ", "")
    if compact.startswith("gpt-5") or compact.startswith("gpt5"):
        if desired != 1:
            with _temperature_warning_lock:
                if compact not in _temperature_warnings_issued:
                    logger.info(
                        "Model %s ignores custom temperature; skipping override %.2f",
                        model,
                        desired,
                    )
                    _temperature_warnings_issued.add(compact)
        return {}

    return {"temperature": desired}


async def openai_completion(prompt: str) -> str:
    """Default completion capability backed by the OpenAI chat API."""

    client = _get_openai_client()
    model = _model_name()
    response = await client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": _review_system_prompt()},
            {"role": "user", "content": prompt},
        ],
        **_temperature_kwargs(model, 0.2),
    )
    content = response.choices[0].message.content or ""
    logger.debug("LLM response: %s", content)
    return content


class AiGateway:
    """Calls the completion capability with bounded retries.

    A failed call is retried ``max_retries`` times, waiting ``retry_delay``
    multiplied by the attempt number in between (1s then 2s by default).
    Unparseable output is not retried.
    """

    def __init__(
        self,
        complete: Completion | None = None,
        *,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._complete = complete or openai_completion
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._sleep = sleep

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self._max_retries + 1),
            wait=wait_incrementing(start=self._retry_delay, increment=self._retry_delay),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
        )

    async def generate_review(self, content: ExtractedContent) -> UxReview:
        prompt = build_review_prompt(content)
        logger.info("Generating UX review (prompt length: %d characters)", len(prompt))
        start = time.perf_counter()
        try:
            response_text = await self._retrying()(self._complete, prompt)
        except Exception as exc:
            logger.error("LLM call failed after %d attempts: %s", self._max_retries + 1, exc)
            raise GenerationFailed(f"Failed to generate UX review: {exc}") from exc

        try:
            review = parse_review_response(response_text)
        except ValueError as exc:
            logger.error("Unusable LLM review response: %s", exc)
            raise GenerationFailed(f"Failed to generate UX review: {exc}") from exc

        logger.info(
            "UX review generated in %.2fs (%d issues, score %d)",
            time.perf_counter() - start,
            len(review.issues),
            review.score,
        )
        return review

    async def check_health(self) -> bool:
        """Liveness probe. Every call consumes model quota."""

        try:
            response = await self._complete(HEALTH_PROMPT)
        except Exception as exc:
            logger.error("LLM health check failed: %s", exc)
            return False
        return response is not None
