"""Tests for the process-scoped cache manager."""

from unittest.mock import AsyncMock

import pytest

from app.managers.cache_manager import BLOGS_PREFIX, CacheManager


class TestStatistics:
    def test_hits_and_misses_are_counted(self, cache: CacheManager) -> None:
        cache.set("k", "v")
        assert cache.get("k") == "v"
        assert cache.get("missing") is None

        stats = cache.stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["sets"] == 1
        assert stats["hitRate"] == "50.00%"

    def test_stats_include_size_and_keys(self, cache: CacheManager) -> None:
        cache.set("blogs:list:page:1", [])
        stats = cache.stats()
        assert stats["size"] == 1
        assert stats["maxSize"] == cache.cache_config.max_size
        assert stats["keys"] == ["blogs:list:page:1"]

    def test_clear_returns_removed_count(self, cache: CacheManager) -> None:
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.clear() == 2
        assert cache.stats()["size"] == 0
        assert cache.stats()["deletes"] == 2

    def test_invalidate_pattern_counts_invalidations(self, cache: CacheManager) -> None:
        cache.set(f"{BLOGS_PREFIX}list:page:1", 1)
        cache.set(f"{BLOGS_PREFIX}list:page:2", 2)
        cache.set("users:total", 10)

        assert cache.invalidate_pattern(BLOGS_PREFIX) == 2
        assert cache.stats()["invalidations"] == 2
        assert cache.stats()["invalidatedByPrefix"] == {BLOGS_PREFIX: 2}
        assert cache.get("users:total") == 10


class TestGetOrSet:
    @pytest.mark.asyncio
    async def test_loader_runs_once(self, cache: CacheManager) -> None:
        loader = AsyncMock(return_value={"total": 5})

        first = await cache.get_or_set("users:total", loader)
        second = await cache.get_or_set("users:total", loader)

        assert first == second == {"total": 5}
        loader.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_none_is_not_cached(self, cache: CacheManager) -> None:
        loader = AsyncMock(return_value=None)

        assert await cache.get_or_set("k", loader) is None
        assert await cache.get_or_set("k", loader) is None
        assert loader.await_count == 2

    @pytest.mark.asyncio
    async def test_loader_errors_propagate(self, cache: CacheManager) -> None:
        loader = AsyncMock(side_effect=RuntimeError("store down"))

        with pytest.raises(RuntimeError, match="store down"):
            await cache.get_or_set("k", loader)
        assert cache.stats()["size"] == 0


class TestKey:
    def test_key_matches_client_format(self) -> None:
        assert CacheManager.key("blogs:list", {"page": 1, "limit": 10}) == "blogs:list:limit:10|page:1"


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_initialize_and_shutdown(self, cache: CacheManager) -> None:
        await cache.initialize()
        assert cache.memory_client.is_running is True
        await cache.shutdown()
        assert cache.memory_client.is_running is False
