"""Persistence of the assembled document."""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from threedocs.errors import ErrorCode, ScraperError

log = structlog.get_logger()


def _write(path: Path, html: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(html, encoding="utf-8")


async def write_document(html: str, output_dir: Path, filename: str) -> Path:
    """Write *html* to ``output_dir/filename`` and return the written path.

    Raises ScraperError(PERSISTENCE_FAILED) if the file cannot be written.
    """
    path = output_dir / filename
    try:
        await asyncio.to_thread(_write, path, html)
    except OSError as exc:
        raise ScraperError(
            code=ErrorCode.PERSISTENCE_FAILED,
            message=f"Failed to write {path}: {exc}",
            suggestion="Check that the output directory is writable.",
            recoverable=False,
        ) from exc

    log.info("document_written", path=str(path), size=len(html))
    return path
