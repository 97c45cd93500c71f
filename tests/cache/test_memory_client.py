"""Tests for the in-memory TTL cache client."""

import pytest
from pytest_mock import MockerFixture

from app.clients.memory_client import MemoryClient


@pytest.fixture
def memory_client() -> MemoryClient:
    return MemoryClient(max_size=3, default_ttl=60)


@pytest.fixture
def clock(mocker: MockerFixture):
    """Freeze the cache's clock at t=1000 and let tests move it."""
    return mocker.patch("app.clients.memory_client.time", return_value=1000.0)


class TestGetSet:
    def test_set_and_get(self, memory_client: MemoryClient) -> None:
        memory_client.set("key", {"value": 1})
        assert memory_client.get("key") == {"value": 1}

    def test_get_missing(self, memory_client: MemoryClient) -> None:
        assert memory_client.get("missing") is None

    def test_overwrite_replaces_value(self, memory_client: MemoryClient) -> None:
        memory_client.set("key", "old")
        memory_client.set("key", "new")
        assert memory_client.get("key") == "new"
        assert memory_client.stats()["size"] == 1

    def test_delete(self, memory_client: MemoryClient) -> None:
        memory_client.set("key", "value")
        assert memory_client.delete("key") is True
        assert memory_client.delete("key") is False
        assert memory_client.get("key") is None

    def test_clear(self, memory_client: MemoryClient) -> None:
        memory_client.set("a", 1)
        memory_client.set("b", 2)
        memory_client.clear()
        assert memory_client.stats()["size"] == 0


class TestExpiry:
    def test_entry_expires_after_ttl(self, memory_client: MemoryClient, clock) -> None:
        memory_client.set("key", "value", ttl=10)
        clock.return_value = 1010.0
        assert memory_client.get("key") == "value"
        clock.return_value = 1010.5
        assert memory_client.get("key") is None

    def test_expired_entry_is_dropped_on_read(self, memory_client: MemoryClient, clock) -> None:
        memory_client.set("key", "value", ttl=1)
        clock.return_value = 1002.0
        memory_client.get("key")
        assert "key" not in memory_client.stats()["keys"]

    def test_default_ttl_applies(self, memory_client: MemoryClient, clock) -> None:
        memory_client.set("key", "value")
        clock.return_value = 1059.0
        assert memory_client.get("key") == "value"
        clock.return_value = 1061.0
        assert memory_client.get("key") is None

    def test_cleanup_removes_only_expired(self, memory_client: MemoryClient, clock) -> None:
        memory_client.set("short", 1, ttl=5)
        memory_client.set("long", 2, ttl=500)
        clock.return_value = 1100.0
        assert memory_client.cleanup() == 1
        assert memory_client.stats()["keys"] == ["long"]


class TestEviction:
    def test_oldest_entry_is_evicted_at_capacity(self, memory_client: MemoryClient) -> None:
        for key in ("a", "b", "c"):
            memory_client.set(key, key)
        memory_client.set("d", "d")

        stats = memory_client.stats()
        assert stats["size"] == 3
        assert stats["keys"] == ["b", "c", "d"]
        assert memory_client.get("a") is None
        assert memory_client.evictions == 1

    def test_overwrite_at_capacity_does_not_evict(self, memory_client: MemoryClient) -> None:
        for key in ("a", "b", "c"):
            memory_client.set(key, key)
        memory_client.set("b", "updated")
        assert memory_client.stats()["keys"] == ["a", "b", "c"]
        assert memory_client.evictions == 0


class TestInvalidatePattern:
    def test_removes_matching_prefix_only(self) -> None:
        memory_client = MemoryClient()
        memory_client.set("blogs:list:page:1", 1)
        memory_client.set("blogs:list:page:2", 2)
        memory_client.set("users:total", 3)

        assert memory_client.invalidate_pattern("blogs:") == 2
        assert memory_client.stats()["keys"] == ["users:total"]

    def test_no_match_returns_zero(self, memory_client: MemoryClient) -> None:
        memory_client.set("users:total", 3)
        assert memory_client.invalidate_pattern("blogs:") == 0


class TestGenerateKey:
    def test_parameters_are_sorted(self) -> None:
        first = MemoryClient.generate_key("blogs:list", {"page": 2, "limit": 10})
        second = MemoryClient.generate_key("blogs:list", {"limit": 10, "page": 2})
        assert first == second == "blogs:list:limit:10|page:2"

    def test_none_and_bool_values(self) -> None:
        key = MemoryClient.generate_key("x", {"search": None, "active": True})
        assert key == "x:active:true|search:"

    def test_different_params_give_different_keys(self) -> None:
        assert MemoryClient.generate_key("x", {"page": 1}) != MemoryClient.generate_key("x", {"page": 2})


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_and_close(self) -> None:
        memory_client = MemoryClient(cleanup_interval=3600)
        await memory_client.start_lifecycle()
        assert memory_client.is_running is True
        await memory_client.close()
        assert memory_client.is_running is False
