"""Protocol interfaces for swappable components.

The pipeline, discovery and extractor reference these protocols, not the
concrete implementations. This allows:
- Tests to drive the whole pipeline with in-memory browser fakes
- Another automation engine to replace Playwright without touching core code
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from threedocs.models.cache import CachedPage


class SubDocument(Protocol):
    """Execution context of an embedded document (an iframe's frame)."""

    async def wait_for_selector(self, selector: str, timeout_ms: int | None = None) -> None: ...

    async def evaluate(self, script: str, arg: Any = None) -> Any: ...


class BrowserSession(Protocol):
    """Capability interface over a single browser tab.

    ``wait_for_selector`` raises the builtin ``TimeoutError`` when the
    selector does not appear within ``timeout_ms``.
    """

    async def navigate(self, url: str) -> None: ...

    async def wait_for_selector(self, selector: str, timeout_ms: int | None = None) -> None: ...

    async def evaluate(self, script: str, arg: Any = None) -> Any: ...

    async def sub_document(self, selector: str) -> SubDocument | None: ...

    async def close(self) -> None: ...


class CacheProtocol(Protocol):
    """Interface for the extracted-page cache backend."""

    def key(self, url: str) -> str: ...

    async def get(self, url: str) -> CachedPage | None: ...

    async def put(self, url: str, page: CachedPage) -> None: ...

    async def clear(self) -> None: ...

    async def ensure_dir(self) -> None: ...


class PipelineObserver(Protocol):
    """Receives stage lifecycle events from the pipeline."""

    def stage_started(self, stage: str, **context: Any) -> None: ...

    def stage_finished(self, stage: str, **context: Any) -> None: ...

    def stage_failed(self, stage: str, error: Exception) -> None: ...
