"""Per-page content extraction.

The docs site renders each manual page inside an iframe. The extractor
loads the page, reaches into that frame, pulls the manual content region
(or, on pages without one, a copy of the frame's top-level body elements)
and normalizes it. Results are cached by URL; a cache hit returns before
any browser call is made.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from threedocs.errors import ErrorCode, ExtractionError, is_rate_limit
from threedocs.models.cache import CachedPage
from threedocs.normalize import detect_malformed_html, normalize_fragment

if TYPE_CHECKING:
    from threedocs.config import Settings
    from threedocs.protocols import BrowserSession, CacheProtocol

# Runs inside the iframe. Returns the region's inner HTML, or null.
# Fallback children are deep-cloned so the live document is never mutated.
_LOCATE_CONTENT_JS = """
({ manual, excludedId }) => {
  const region = document.querySelector(manual);
  if (region) return region.innerHTML;
  const skipped = new Set(['SCRIPT', 'LINK', 'STYLE']);
  const children = Array.from(document.body ? document.body.children : []).filter(
    (el) => !skipped.has(el.tagName) && el.id !== excludedId
  );
  if (children.length === 0) return null;
  const container = document.createElement('div');
  children.forEach((el) => container.appendChild(el.cloneNode(true)));
  return container.innerHTML;
}
"""


class ContentExtractor:
    """Extracts and normalizes the manual content of documentation pages."""

    def __init__(self, settings: Settings, cache: CacheProtocol) -> None:
        self._cache = cache
        self._base_url = settings.site.base_url
        self._iframe_selector = settings.selectors.iframe
        self._manual_selector = settings.selectors.manual_content
        self._excluded_id = settings.selectors.excluded_button_id
        self._timeout_ms = settings.browser.timeout_ms
        self.cache_hits = 0

    async def extract(self, session: BrowserSession, url: str, title: str) -> CachedPage:
        """Return the page content for *url*, from cache when available.

        Raises ExtractionError when the page cannot be loaded, its iframe
        never appears, or no content region can be found.
        """
        log = structlog.get_logger().bind(url=url, title=title)

        cached = await self._cache.get(url)
        if cached is not None:
            self.cache_hits += 1
            log.info("cache_hit")
            return cached

        log.info("cache_miss_extracting")
        html = await self._load_region(session, url)

        page = CachedPage(
            title=title,
            content=normalize_fragment(html, self._base_url),
            has_malformed_html=detect_malformed_html(html),
        )
        if page.has_malformed_html:
            log.warning("malformed_html_detected")

        # Non-fatal on failure, handled inside the cache
        await self._cache.put(url, page)
        log.info("page_extracted", content_length=len(page.content))
        return page

    async def _load_region(self, session: BrowserSession, url: str) -> str:
        try:
            await session.navigate(url)
        except Exception as exc:
            raise _page_failure(
                exc,
                url,
                ErrorCode.NAVIGATION_FAILED,
                f"Failed to load {url}: {exc}",
                suggestion="The documentation site may be temporarily unavailable.",
                recoverable=True,
            ) from exc

        try:
            await session.wait_for_selector(self._iframe_selector, self._timeout_ms)
        except TimeoutError as exc:
            raise ExtractionError(
                code=ErrorCode.IFRAME_TIMEOUT,
                message=f"Timeout waiting for iframe on {url}: {exc}",
                suggestion="Increase browser.timeout_ms or check that the page still embeds its content in an iframe.",
                recoverable=False,
            ) from exc
        except Exception as exc:
            raise _page_failure(
                exc, url, ErrorCode.NO_CONTENT, f"Failed waiting for iframe on {url}: {exc}"
            ) from exc

        try:
            frame = await session.sub_document(self._iframe_selector)
        except Exception as exc:
            raise _page_failure(
                exc, url, ErrorCode.NO_CONTENT, f"Failed to get iframe content for {url}: {exc}"
            ) from exc
        if frame is None:
            raise ExtractionError(
                code=ErrorCode.NO_CONTENT,
                message=f"Failed to get iframe content for {url}",
                recoverable=False,
            )

        try:
            await frame.wait_for_selector("body", self._timeout_ms)
        except Exception as exc:
            raise _page_failure(
                exc, url, ErrorCode.NO_CONTENT, f"Iframe body never became ready on {url}: {exc}"
            ) from exc

        try:
            html = await frame.evaluate(
                _LOCATE_CONTENT_JS,
                {"manual": self._manual_selector, "excludedId": self._excluded_id},
            )
        except Exception as exc:
            # The frame can detach or navigate while the script runs
            raise _page_failure(
                exc, url, ErrorCode.NO_CONTENT, f"Failed to read content of {url}: {exc}"
            ) from exc
        if not html:
            raise ExtractionError(
                code=ErrorCode.NO_CONTENT,
                message=f"No content found on {url}",
                suggestion="The page layout may have changed; check selectors.manual_content.",
                recoverable=False,
            )
        return html


def _page_failure(
    exc: Exception,
    url: str,
    code: ErrorCode,
    message: str,
    *,
    suggestion: str = "",
    recoverable: bool = False,
) -> ExtractionError:
    """Translate a browser exception into a coded per-page error.

    A rate-limit signal wins over *code*, whichever browser call raised it.
    """
    if is_rate_limit(exc):
        return ExtractionError(
            code=ErrorCode.RATE_LIMITED,
            message=f"Rate limit exceeded while loading {url}",
            suggestion="The documentation site is throttling requests. Wait before re-running.",
            recoverable=False,
        )
    return ExtractionError(
        code=code, message=message, suggestion=suggestion, recoverable=recoverable
    )
