"""Command-line entry point: ``ux-review https://example.com``."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Optional, Sequence

from .errors import AnalysisError
from .logging_setup import configure_logging
from .orchestrator import AnalysisOrchestrator, build_orchestrator

logger = logging.getLogger(__name__)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ux-review", description="Run a UX review of a web page.")
    parser.add_argument("url", nargs="?", help="http(s) URL of the page to review")
    parser.add_argument("--health", action="store_true", help="print component health and exit")
    parser.add_argument(
        "--check-llm",
        action="store_true",
        help="include the model probe in --health (consumes quota)",
    )
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL"))
    return parser


async def _run(orchestrator: AnalysisOrchestrator, args: argparse.Namespace) -> int:
    try:
        if args.health:
            status = await orchestrator.check_health(include_llm=args.check_llm)
            print(json.dumps(status, indent=2))
            return 0 if status["overall"] == "healthy" else 1
        try:
            result = await orchestrator.analyze(args.url)
        except AnalysisError as exc:
            logger.error("Analysis failed during %s: %s", exc.stage, exc)
            print(json.dumps({"error": str(exc), "stage": exc.stage}), file=sys.stderr)
            return 3 if exc.retryable else 2
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0
    finally:
        await orchestrator.shutdown()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parser().parse_args(argv)
    if not args.url and not args.health:
        _parser().error("a URL is required unless --health is given")
    configure_logging(args.log_level)
    return asyncio.run(_run(build_orchestrator(), args))


if __name__ == "__main__":  # pragma: no cover - manual script usage
    sys.exit(main())
