from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    RATE_LIMITED = "RATE_LIMITED"
    NAVIGATION_FAILED = "NAVIGATION_FAILED"
    IFRAME_TIMEOUT = "IFRAME_TIMEOUT"
    NO_CONTENT = "NO_CONTENT"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"


class ScraperError(Exception):
    """Raised for every expected failure of a scraping run.

    Components translate foreign exceptions (browser, filesystem) into a
    ScraperError at their boundary so the pipeline only ever sees coded
    errors. Cache failures are the exception: they are logged inside the
    cache and never raised.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str = "",
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class ExtractionError(ScraperError):
    """Terminal failure while extracting a single documentation page."""


def is_rate_limit(exc: BaseException) -> bool:
    """Return True if *exc* signals an HTTP 429 response from the docs site."""
    if isinstance(exc, ScraperError):
        return exc.code == ErrorCode.RATE_LIMITED
    return "429" in str(exc)


def rate_limited(url: str) -> ScraperError:
    return ScraperError(
        code=ErrorCode.RATE_LIMITED,
        message=f"Rate limit exceeded while loading {url}",
        suggestion="The documentation site is throttling requests. Wait before re-running.",
        recoverable=False,
    )
