"""Documentation link discovery.

Loads the manual's entry page, waits for the navigation panel and reads
every link that points into the English docs namespace. Section labels are
resolved in Python from the headings the page reports around each link, so
adapting to another site's navigation markup only means swapping the
section resolver.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from threedocs.errors import ErrorCode, ScraperError, is_rate_limit, rate_limited
from threedocs.models.docs import DEFAULT_SECTION, LinkRecord, SectionHint

if TYPE_CHECKING:
    from threedocs.config import Settings
    from threedocs.protocols import BrowserSession

log = structlog.get_logger()

SectionResolver = Callable[[SectionHint], str]

# Runs inside the docs page. Reports raw data only; no section logic here.
_COLLECT_LINKS_JS = """
(selector) => Array.from(document.querySelectorAll(selector)).map((link) => {
  const group = link.closest('div');
  const preceding = group ? group.previousElementSibling : null;
  const subheading = group ? group.querySelector('h3') : null;
  return {
    url: link.href,
    text: (link.textContent || '').trim(),
    href: link.getAttribute('href') || '',
    precedingTag: preceding ? preceding.tagName : null,
    precedingText: preceding ? (preceding.textContent || '').trim() : null,
    groupSubheading: subheading ? (subheading.textContent || '').trim() : null,
  };
})
"""


def resolve_section(hint: SectionHint) -> str:
    """Resolve a link's section for the three.js navigation panel.

    A top-level ``<h2>`` right before the link's group wins, then the first
    ``<h3>`` inside the group, then the default section.
    """
    if (hint.preceding_tag or "").upper() == "H2":
        return hint.preceding_text or DEFAULT_SECTION
    if hint.group_subheading:
        return hint.group_subheading
    return DEFAULT_SECTION


def path_fragment(href: str) -> str:
    """Return the hash part of *href*, or *href* itself when it has none."""
    parts = href.split("#")
    if len(parts) > 1 and parts[1]:
        return parts[1]
    return href


class LinkDiscovery:
    """Finds every documentation page listed in the navigation panel."""

    def __init__(
        self,
        settings: Settings,
        *,
        section_resolver: SectionResolver = resolve_section,
    ) -> None:
        self._docs_url = settings.site.docs_url
        self._panel_selector = settings.selectors.panel
        self._links_selector = settings.selectors.doc_links
        self._timeout_ms = settings.browser.timeout_ms
        self._max_attempts = max(1, settings.discovery.max_attempts)
        self._retry_delay = settings.discovery.retry_delay_seconds
        self._resolve_section = section_resolver

    async def discover(self, session: BrowserSession) -> list[LinkRecord]:
        """Return the documentation links in navigation order.

        Retries transient failures up to the configured attempt count with a
        fixed delay. A rate-limit response aborts immediately.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                links = self._build_records(await self._collect(session))
            except Exception as exc:
                if is_rate_limit(exc):
                    log.error("discovery_rate_limited", url=self._docs_url, attempt=attempt)
                    if isinstance(exc, ScraperError):
                        raise
                    raise rate_limited(self._docs_url) from exc

                if attempt >= self._max_attempts:
                    log.error("discovery_failed", url=self._docs_url, attempts=attempt)
                    raise ScraperError(
                        code=ErrorCode.NAVIGATION_FAILED,
                        message=(
                            f"Failed to extract documentation links after {attempt} "
                            f"attempt(s): {exc}"
                        ),
                        suggestion="Check network access to the documentation site.",
                        recoverable=True,
                    ) from exc

                log.warning(
                    "discovery_retry",
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                    error=str(exc),
                )
                await asyncio.sleep(self._retry_delay)
                continue

            log.info("links_discovered", count=len(links))
            return links

    async def _collect(self, session: BrowserSession) -> list[dict[str, Any]]:
        await session.navigate(self._docs_url)
        await session.wait_for_selector(self._panel_selector, self._timeout_ms)
        return await session.evaluate(_COLLECT_LINKS_JS, self._links_selector) or []

    def _build_records(self, raw_links: list[dict[str, Any]]) -> list[LinkRecord]:
        # Keyed by URL: a repeated link keeps its first position, last values.
        by_url: dict[str, LinkRecord] = {}
        for raw in raw_links:
            url = raw.get("url") or ""
            if not url:
                log.debug("link_skipped", reason="empty_url", text=raw.get("text"))
                continue

            hint = SectionHint(
                preceding_tag=raw.get("precedingTag"),
                preceding_text=raw.get("precedingText"),
                group_subheading=raw.get("groupSubheading"),
            )
            by_url[url] = LinkRecord(
                url=url,
                display_text=raw.get("text") or "",
                path_fragment=path_fragment(raw.get("href") or url),
                section=self._resolve_section(hint) or DEFAULT_SECTION,
            )
        return list(by_url.values())
