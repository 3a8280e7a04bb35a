"""Command-line entrypoint.

Responsibilities (and nothing more):
- Parse the command line
- Build Settings once and configure structlog
- Run the pipeline and map its outcome to an exit status
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import structlog

from threedocs import __version__
from threedocs.config import Settings
from threedocs.errors import ScraperError
from threedocs.observers import LoggingObserver
from threedocs.pipeline import Pipeline

log = structlog.get_logger()


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="threedocs",
        description="Scrape the three.js manual into a single offline HTML file.",
    )
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Delete the page cache and exit without scraping",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


async def _run(settings: Settings, *, clear_cache: bool) -> int:
    pipeline = Pipeline(settings, clear_cache=clear_cache, observer=LoggingObserver())
    try:
        summary = await pipeline.run()
    except ScraperError as exc:
        log.error(
            "run_failed",
            stage=pipeline.summary.stage,
            code=exc.code,
            message=exc.message,
            suggestion=exc.suggestion,
        )
        return 1
    except Exception:
        log.error("run_failed", stage=pipeline.summary.stage, exc_info=True)
        return 1

    if summary.cleared_only:
        log.info("cache_cleared_exiting")
        return 0

    for title in summary.malformed_pages:
        log.warning("page_has_malformed_html", title=title)

    log.info(
        "run_complete",
        pages_discovered=summary.pages_discovered,
        pages_processed=summary.pages_processed,
        cache_hits=summary.cache_hits,
        failed_pages=len(summary.failed_pages),
        output=str(summary.output_path),
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    _setup_logging(settings)

    log.info(
        "scraper_starting",
        version=__version__,
        mode="development" if settings.dev_mode else "production",
        cache_enabled=settings.cache_enabled,
        clear_cache=args.clear_cache,
    )
    return asyncio.run(_run(settings, clear_cache=args.clear_cache))
