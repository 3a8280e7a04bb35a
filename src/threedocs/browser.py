"""Playwright implementation of the BrowserSession protocol.

This is the only module that imports the automation engine. Playwright's
timeout error is mapped onto the builtin ``TimeoutError`` and 429 responses
onto ``ScraperError(RATE_LIMITED)``, so the core stays engine-agnostic.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import structlog
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from threedocs.errors import rate_limited

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from playwright.async_api import Browser, Frame, Page, Playwright

    from threedocs.config import BrowserSettings

log = structlog.get_logger()


class PlaywrightFrame:
    """An iframe's execution context, exposed as a SubDocument."""

    def __init__(self, frame: Frame) -> None:
        self._frame = frame

    async def wait_for_selector(self, selector: str, timeout_ms: int | None = None) -> None:
        try:
            await self._frame.wait_for_selector(selector, state="attached", timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise TimeoutError(str(exc)) from exc

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self._frame.evaluate(script, arg)


class PlaywrightSession:
    """A single Playwright page. Owns its browser when one is passed in."""

    def __init__(
        self,
        page: Page,
        *,
        browser: Browser | None = None,
        playwright: Playwright | None = None,
    ) -> None:
        self._page = page
        self._browser = browser
        self._playwright = playwright
        self._closed = False

    async def navigate(self, url: str) -> None:
        response = await self._page.goto(url, wait_until="networkidle")
        if response is not None and response.status == 429:
            raise rate_limited(url)

    async def wait_for_selector(self, selector: str, timeout_ms: int | None = None) -> None:
        try:
            await self._page.wait_for_selector(selector, state="attached", timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise TimeoutError(str(exc)) from exc

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self._page.evaluate(script, arg)

    async def sub_document(self, selector: str) -> PlaywrightFrame | None:
        handle = await self._page.query_selector(selector)
        if handle is None:
            return None
        frame = await handle.content_frame()
        if frame is None:
            return None
        return PlaywrightFrame(frame)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()
        log.info("browser_closed")


@asynccontextmanager
async def open_browser_session(settings: BrowserSettings) -> AsyncIterator[PlaywrightSession]:
    """Launch Chromium, yield a session on a fresh page, and always shut it down."""
    playwright = await async_playwright().start()
    browser: Browser | None = None
    try:
        browser = await playwright.chromium.launch(headless=settings.headless, args=settings.args)
        page = await browser.new_page()
        page.set_default_timeout(settings.timeout_ms)
    except Exception:
        if browser is not None:
            await browser.close()
        await playwright.stop()
        raise

    session = PlaywrightSession(page, browser=browser, playwright=playwright)
    log.info("browser_started", headless=settings.headless)
    try:
        yield session
    finally:
        await session.close()
