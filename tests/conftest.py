"""Shared test fixtures for the threedocs test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from threedocs.config import Settings

if TYPE_CHECKING:
    from pathlib import Path

DEFAULT_PAGE_HTML = "<h1>Page</h1><p>Body text.</p>"


class FakeFrame:
    """In-memory SubDocument returning a fixed content region."""

    def __init__(
        self,
        html: str | None,
        *,
        body_ready: bool = True,
        evaluate_error: Exception | None = None,
    ) -> None:
        self.html = html
        self.body_ready = body_ready
        self.evaluate_error = evaluate_error
        self.calls: list[tuple[str, Any]] = []

    async def wait_for_selector(self, selector: str, timeout_ms: int | None = None) -> None:
        self.calls.append(("wait_for_selector", selector))
        if not self.body_ready:
            raise TimeoutError(f"Timeout {timeout_ms}ms exceeded waiting for {selector}")

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.calls.append(("evaluate", arg))
        if self.evaluate_error is not None:
            raise self.evaluate_error
        return self.html


class FakeSession:
    """In-memory BrowserSession that records every call.

    ``links`` is what the navigation-panel script returns; ``pages`` maps a
    page URL to the HTML its iframe reports. ``navigate_errors`` are raised
    by successive ``navigate`` calls until the list is exhausted;
    ``failing_urls`` always fail to load. ``frame_errors`` maps a page URL to
    the exception its iframe raises while the content script runs.
    """

    def __init__(
        self,
        *,
        links: list[dict[str, Any]] | None = None,
        pages: dict[str, str | None] | None = None,
        navigate_errors: list[Exception] | None = None,
        failing_urls: set[str] | None = None,
        iframe_timeout: bool = False,
        frame_missing: bool = False,
        body_ready: bool = True,
        frame_errors: dict[str, Exception] | None = None,
        sub_document_error: Exception | None = None,
    ) -> None:
        self.links = links or []
        self.pages = pages or {}
        self.navigate_errors = list(navigate_errors or [])
        self.failing_urls = failing_urls or set()
        self.iframe_timeout = iframe_timeout
        self.frame_missing = frame_missing
        self.body_ready = body_ready
        self.frame_errors = frame_errors or {}
        self.sub_document_error = sub_document_error
        self.calls: list[tuple[str, Any]] = []
        self.current_url: str | None = None
        self.closed = False

    @property
    def navigations(self) -> list[str]:
        return [arg for name, arg in self.calls if name == "navigate"]

    async def navigate(self, url: str) -> None:
        self.calls.append(("navigate", url))
        if self.navigate_errors:
            raise self.navigate_errors.pop(0)
        if url in self.failing_urls:
            raise RuntimeError(f"net::ERR_CONNECTION_RESET at {url}")
        self.current_url = url

    async def wait_for_selector(self, selector: str, timeout_ms: int | None = None) -> None:
        self.calls.append(("wait_for_selector", selector))
        if selector == "iframe" and self.iframe_timeout:
            raise TimeoutError(f"Timeout {timeout_ms}ms exceeded waiting for {selector}")

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.calls.append(("evaluate", arg))
        return self.links

    async def sub_document(self, selector: str) -> FakeFrame | None:
        self.calls.append(("sub_document", selector))
        if self.sub_document_error is not None:
            raise self.sub_document_error
        if self.frame_missing:
            return None
        url = self.current_url or ""
        return FakeFrame(
            self.pages.get(url, DEFAULT_PAGE_HTML),
            body_ready=self.body_ready,
            evaluate_error=self.frame_errors.get(url),
        )

    async def close(self) -> None:
        self.calls.append(("close", None))
        self.closed = True


def raw_link(
    url: str,
    text: str,
    *,
    href: str | None = None,
    preceding_tag: str | None = "H2",
    preceding_text: str | None = "Manual",
    group_subheading: str | None = None,
) -> dict[str, Any]:
    """Build one entry as reported by the navigation-panel script."""
    return {
        "url": url,
        "text": text,
        "href": href if href is not None else url.removeprefix("https://threejs.org"),
        "precedingTag": preceding_tag,
        "precedingText": preceding_text,
        "groupSubheading": group_subheading,
    }


@pytest.fixture()
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings isolated from the environment, with cache and output under tmp_path."""
    monkeypatch.delenv("DEV_MODE", raising=False)
    monkeypatch.delenv("NO_CACHE", raising=False)
    return Settings(
        cache={"dir": str(tmp_path / "cache")},
        output={"dir": str(tmp_path / "docs")},
        discovery={"retry_delay_seconds": 0},
    )


@pytest.fixture()
def make_session() -> type[FakeSession]:
    return FakeSession


@pytest.fixture()
def make_raw_link():
    return raw_link
