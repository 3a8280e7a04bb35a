"""On-disk cache of extracted documentation pages.

One JSON file per page URL, named ``<sha256(url)>_v<version>.json``. Bumping
the cache version changes every file name, so entries written by an older
format are simply never read again.

All cache operations degrade gracefully: read failures (missing file,
unreadable file, malformed payload) return ``None`` and are treated as a
cache miss by callers; write failures are logged and ignored. Caching only
saves browser work, so its failures never stop a run. Errors are logged with
``exc_info=True`` so they stay observable.
"""

from __future__ import annotations

import asyncio
import hashlib
import shutil
from pathlib import Path

import structlog
from pydantic import ValidationError

from threedocs.models.cache import CachedPage

log = structlog.get_logger()


def cache_key(url: str, version: str) -> str:
    """Return the cache file name for *url* under cache format *version*."""
    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()
    return f"{digest}_v{version}.json"


class PageCache:
    """File-backed page cache implementing CacheProtocol."""

    def __init__(self, directory: Path, version: str, *, enabled: bool = True) -> None:
        self._dir = directory
        self._version = version
        self._enabled = enabled

    @property
    def directory(self) -> Path:
        return self._dir

    def key(self, url: str) -> str:
        return cache_key(url, self._version)

    def path_for(self, url: str) -> Path:
        return self._dir / self.key(url)

    async def get(self, url: str) -> CachedPage | None:
        """Read a cached page. Returns ``None`` on miss, read failure, or when disabled."""
        if not self._enabled:
            return None

        path = self.path_for(url)
        try:
            raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            log.debug("cache_miss", url=url)
            return None
        except (OSError, UnicodeDecodeError):
            log.warning("cache_read_error", url=url, path=str(path), exc_info=True)
            return None

        try:
            page = CachedPage.model_validate_json(raw)
        except ValidationError:
            log.warning("cache_payload_invalid", url=url, path=str(path), exc_info=True)
            return None

        log.debug("cache_hit", url=url)
        return page

    async def put(self, url: str, page: CachedPage) -> None:
        """Write a page, replacing any previous entry. Non-fatal on failure."""
        if not self._enabled:
            return

        path = self.path_for(url)
        try:
            await asyncio.to_thread(
                path.write_text, page.model_dump_json(indent=2), encoding="utf-8"
            )
            log.debug("cache_write", url=url, path=str(path))
        except OSError:
            log.warning("cache_write_error", url=url, path=str(path), exc_info=True)

    async def clear(self) -> None:
        """Remove the whole cache directory. A missing directory counts as cleared."""
        try:
            await asyncio.to_thread(shutil.rmtree, self._dir)
        except FileNotFoundError:
            pass
        log.info("cache_cleared", path=str(self._dir))

    async def ensure_dir(self) -> None:
        """Create the cache directory. Non-fatal on failure; later writes just miss."""
        try:
            await asyncio.to_thread(self._dir.mkdir, parents=True, exist_ok=True)
        except OSError:
            log.warning("cache_dir_error", path=str(self._dir), exc_info=True)
