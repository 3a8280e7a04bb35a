"""Pipeline observers."""

from __future__ import annotations

from typing import Any

import structlog

from threedocs.errors import ScraperError


class LoggingObserver:
    """Renders pipeline stage events through structlog."""

    def __init__(self) -> None:
        self._log = structlog.get_logger().bind(component="pipeline")

    def stage_started(self, stage: str, **context: Any) -> None:
        self._log.info("stage_started", stage=stage, **context)

    def stage_finished(self, stage: str, **context: Any) -> None:
        self._log.info("stage_finished", stage=stage, **context)

    def stage_failed(self, stage: str, error: Exception) -> None:
        if isinstance(error, ScraperError):
            self._log.warning(
                "stage_failed",
                stage=stage,
                code=error.code,
                message=error.message,
                recoverable=error.recoverable,
            )
            return
        self._log.warning("stage_failed", stage=stage, error=repr(error))
