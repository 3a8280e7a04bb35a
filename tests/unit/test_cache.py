"""Unit tests for threedocs.cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from threedocs.cache import PageCache, cache_key
from threedocs.models.cache import CachedPage

if TYPE_CHECKING:
    from pathlib import Path

URL = "https://threejs.org/docs/#api/en/cameras/PerspectiveCamera"


@pytest.fixture()
def cache_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "cache"
    directory.mkdir()
    return directory


@pytest.fixture()
def cache(cache_dir: Path) -> PageCache:
    return PageCache(cache_dir, "1")


def _page(content: str = "<p>Camera</p>") -> CachedPage:
    return CachedPage(title="PerspectiveCamera", content=content, has_malformed_html=False)


# ---------------------------------------------------------------------------
# cache_key
# ---------------------------------------------------------------------------


class TestCacheKey:
    def test_deterministic(self) -> None:
        assert cache_key(URL, "1") == cache_key(URL, "1")

    def test_hex_digest_with_version_suffix(self) -> None:
        key = cache_key(URL, "1")
        digest, suffix = key.split("_", 1)
        assert suffix == "v1.json"
        assert len(digest) == 64
        int(digest, 16)

    def test_different_urls_differ(self) -> None:
        assert cache_key(URL, "1") != cache_key(URL + "/", "1")

    def test_version_bump_changes_key(self) -> None:
        assert cache_key(URL, "1") != cache_key(URL, "2")

    def test_instance_key_uses_configured_version(self, cache_dir: Path) -> None:
        assert PageCache(cache_dir, "7").key(URL).endswith("_v7.json")


# ---------------------------------------------------------------------------
# get / put
# ---------------------------------------------------------------------------


class TestPageCache:
    async def test_put_then_get(self, cache: PageCache) -> None:
        page = CachedPage(title="Scene", content="<p>x</p>", has_malformed_html=True)
        await cache.put(URL, page)
        assert await cache.get(URL) == page

    async def test_put_writes_one_file_named_by_key(
        self, cache: PageCache, cache_dir: Path
    ) -> None:
        await cache.put(URL, _page())
        assert [p.name for p in cache_dir.iterdir()] == [cache.key(URL)]

    async def test_put_replaces_whole_record(self, cache: PageCache) -> None:
        await cache.put(URL, _page("<p>old</p>"))
        await cache.put(URL, CachedPage(title="New", content="<p>new</p>"))
        entry = await cache.get(URL)
        assert entry is not None
        assert entry.title == "New"
        assert entry.content == "<p>new</p>"
        assert entry.has_malformed_html is False

    async def test_missing_entry_returns_none(self, cache: PageCache) -> None:
        assert await cache.get(URL) is None

    async def test_corrupt_json_returns_none(self, cache: PageCache) -> None:
        cache.path_for(URL).write_text("{not json", encoding="utf-8")
        assert await cache.get(URL) is None

    async def test_wrong_shape_returns_none(self, cache: PageCache) -> None:
        cache.path_for(URL).write_text('{"data": "test"}', encoding="utf-8")
        assert await cache.get(URL) is None

    async def test_unreadable_entry_returns_none(self, cache: PageCache) -> None:
        # A directory where the file should be makes the read fail
        cache.path_for(URL).mkdir()
        assert await cache.get(URL) is None

    async def test_old_version_entries_are_ignored(self, cache_dir: Path) -> None:
        await PageCache(cache_dir, "1").put(URL, _page())
        assert await PageCache(cache_dir, "2").get(URL) is None

    async def test_write_failure_does_not_raise(self, tmp_path: Path) -> None:
        cache = PageCache(tmp_path / "does-not-exist", "1")
        await cache.put(URL, _page())
        assert await cache.get(URL) is None


class TestDisabledCache:
    async def test_get_returns_none_even_when_entry_exists(self, cache_dir: Path) -> None:
        await PageCache(cache_dir, "1").put(URL, _page())
        disabled = PageCache(cache_dir, "1", enabled=False)
        assert await disabled.get(URL) is None

    async def test_put_writes_nothing(self, cache_dir: Path) -> None:
        disabled = PageCache(cache_dir, "1", enabled=False)
        await disabled.put(URL, _page())
        assert list(cache_dir.iterdir()) == []


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------


class TestClearAndEnsure:
    async def test_clear_removes_directory(self, cache: PageCache, cache_dir: Path) -> None:
        await cache.put(URL, _page())
        await cache.clear()
        assert not cache_dir.exists()

    async def test_clear_missing_directory_is_success(self, tmp_path: Path) -> None:
        cache = PageCache(tmp_path / "never-created", "1")
        await cache.clear()

    async def test_ensure_dir_creates_nested_directory(self, tmp_path: Path) -> None:
        cache = PageCache(tmp_path / "a" / "b", "1")
        await cache.ensure_dir()
        assert cache.directory.is_dir()

    async def test_ensure_dir_failure_does_not_raise(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")
        cache = PageCache(blocker, "1")
        await cache.ensure_dir()
        assert blocker.is_file()
