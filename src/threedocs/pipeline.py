"""Crawl-and-assemble pipeline.

Stages run strictly in order, one page at a time:

    init -> cache_setup -> [done, when only clearing the cache]
         -> discover -> extract -> assemble -> persist -> done

Any unrecovered error moves the run to ``failed`` and propagates. The
output file is written once, after every page has been extracted, so a
failed run never leaves partial output behind. A browser session created
by the pipeline is always closed before ``run`` returns or raises; an
injected session is left to its owner.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager, AsyncExitStack, contextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from threedocs.assembler import assemble
from threedocs.browser import open_browser_session
from threedocs.cache import PageCache
from threedocs.discovery import LinkDiscovery
from threedocs.errors import ScraperError
from threedocs.extractor import ContentExtractor
from threedocs.models.docs import DocRecord
from threedocs.output import write_document

if TYPE_CHECKING:
    from collections.abc import Iterator

    from threedocs.config import Settings
    from threedocs.models.docs import LinkRecord
    from threedocs.protocols import BrowserSession, CacheProtocol, PipelineObserver

log = structlog.get_logger()

SessionFactory = Callable[[], AbstractAsyncContextManager["BrowserSession"]]
DocumentWriter = Callable[[str], Awaitable[Path]]


class PipelineStage(StrEnum):
    INIT = "init"
    CACHE_SETUP = "cache_setup"
    DISCOVER = "discover"
    EXTRACT = "extract"
    ASSEMBLE = "assemble"
    PERSIST = "persist"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PageFailure:
    """A page skipped because of an extraction error (isolation mode only)."""

    url: str
    title: str
    code: str
    message: str


@dataclass
class RunSummary:
    """Outcome of one pipeline run."""

    stage: PipelineStage = PipelineStage.INIT
    cleared_only: bool = False
    pages_discovered: int = 0
    pages_processed: int = 0
    cache_hits: int = 0
    failed_pages: list[PageFailure] = field(default_factory=list)
    malformed_pages: list[str] = field(default_factory=list)
    output_path: Path | None = None


class Pipeline:
    """Sequences discovery, extraction, assembly and persistence for one run."""

    def __init__(
        self,
        settings: Settings,
        *,
        clear_cache: bool = False,
        session: BrowserSession | None = None,
        session_factory: SessionFactory | None = None,
        cache: CacheProtocol | None = None,
        discovery: LinkDiscovery | None = None,
        extractor: ContentExtractor | None = None,
        writer: DocumentWriter | None = None,
        observer: PipelineObserver | None = None,
    ) -> None:
        self._settings = settings
        self._clear_cache = clear_cache
        self._session = session
        self._session_factory = session_factory or (
            lambda: open_browser_session(settings.browser)
        )
        self._cache = cache or PageCache(
            Path(settings.cache.dir).expanduser(),
            settings.cache.version,
            enabled=settings.cache_enabled,
        )
        self._discovery = discovery or LinkDiscovery(settings)
        self._extractor = extractor or ContentExtractor(settings, self._cache)
        self._writer = writer or self._write
        self._observer = observer
        self.summary = RunSummary()

    async def run(self) -> RunSummary:
        """Execute the pipeline and return its summary.

        Raises ScraperError on any fatal failure; ``self.summary`` then
        holds the state reached, with ``stage == PipelineStage.FAILED``.
        """
        summary = self.summary = RunSummary()

        with self._stage(PipelineStage.CACHE_SETUP, clear=self._clear_cache):
            await self._setup_cache()

        if self._clear_cache:
            summary.cleared_only = True
            summary.stage = PipelineStage.DONE
            return summary

        try:
            await self._crawl()
        except Exception:
            # Also covers browser teardown, which runs outside any stage
            summary.stage = PipelineStage.FAILED
            raise

        summary.stage = PipelineStage.DONE
        return summary

    async def _crawl(self) -> None:
        summary = self.summary
        async with AsyncExitStack() as stack:
            with self._stage(PipelineStage.DISCOVER) as info:
                # Launching an owned browser counts as part of discovery
                session = self._session
                if session is None:
                    session = await stack.enter_async_context(self._session_factory())
                links = await self._discovery.discover(session)
                summary.pages_discovered = info["links"] = len(links)

            limit = self._settings.page_limit
            selected = links if limit is None else links[:limit]
            with self._stage(PipelineStage.EXTRACT, pages=len(selected), limit=limit) as info:
                records = await self._extract_all(session, selected)
                info["extracted"] = len(records)

            with self._stage(PipelineStage.ASSEMBLE) as info:
                html = assemble(
                    records,
                    base_url=self._settings.site.base_url,
                    title=self._settings.site.title,
                )
                info["size"] = len(html)

            with self._stage(PipelineStage.PERSIST) as info:
                summary.output_path = await self._writer(html)
                info["path"] = str(summary.output_path)

    async def _setup_cache(self) -> None:
        if self._clear_cache:
            try:
                await self._cache.clear()
            except OSError:
                log.error("cache_clear_failed", exc_info=True)
        await self._cache.ensure_dir()

    async def _extract_all(
        self, session: BrowserSession, links: list[LinkRecord]
    ) -> list[DocRecord]:
        summary = self.summary
        hits_before = self._extractor.cache_hits
        records: list[DocRecord] = []
        try:
            for link in links:
                try:
                    page = await self._extractor.extract(session, link.url, link.display_text)
                except ScraperError as exc:
                    if not self._settings.run.isolate_page_failures:
                        raise
                    summary.failed_pages.append(
                        PageFailure(
                            url=link.url,
                            title=link.display_text,
                            code=exc.code,
                            message=exc.message,
                        )
                    )
                    log.warning("page_skipped", url=link.url, code=exc.code)
                    continue

                records.append(
                    DocRecord(title=link.display_text, content=page.content, section=link.section)
                )
                if page.has_malformed_html:
                    summary.malformed_pages.append(link.display_text)
        finally:
            summary.pages_processed = len(records)
            summary.cache_hits = self._extractor.cache_hits - hits_before
        return records

    async def _write(self, html: str) -> Path:
        output = self._settings.output
        return await write_document(html, Path(output.dir), output.filename)

    @contextmanager
    def _stage(self, stage: PipelineStage, **context: Any) -> Iterator[dict[str, Any]]:
        """Track *stage* on the summary and report it to the observer.

        Yields a dict the stage body fills with details for the finish event.
        """
        self.summary.stage = stage
        if self._observer is not None:
            self._observer.stage_started(stage, **context)
        info: dict[str, Any] = {}
        try:
            yield info
        except Exception as exc:
            self.summary.stage = PipelineStage.FAILED
            if self._observer is not None:
                self._observer.stage_failed(stage, exc)
            raise
        if self._observer is not None:
            self._observer.stage_finished(stage, **info)
