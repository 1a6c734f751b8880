"""Failure kinds raised by the analysis pipeline."""
from __future__ import annotations


class AnalysisError(RuntimeError):
    """Base class for every failure surfaced by :func:`analyze`.

    ``stage`` names the pipeline step that failed so callers can log and map
    the error without inspecting the concrete type.
    """

    stage = "analysis"
    retryable = False


class InvalidUrl(AnalysisError):
    """Raised when the candidate URL cannot be parsed."""

    stage = "validation"


class DisallowedScheme(AnalysisError):
    """Raised when the URL scheme is not http or https."""

    stage = "validation"


class BlockedTarget(AnalysisError):
    """Raised in production mode for loopback or private network hosts."""

    stage = "validation"


class Busy(AnalysisError):
    """Raised when every browser slot is in use. Callers may retry later."""

    stage = "capacity"
    retryable = True


class ScrapeFailed(AnalysisError):
    """Raised when navigation or DOM extraction fails."""

    stage = "scrape"


class ScreenshotFailed(AnalysisError):
    """Raised when navigation or image capture fails."""

    stage = "screenshot"


class GenerationFailed(AnalysisError):
    """Raised when the model call exhausts its retries or returns bad JSON."""

    stage = "generation"
