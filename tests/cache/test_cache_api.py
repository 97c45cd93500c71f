"""Tests for the cache inspection endpoints."""

from typing import Any

import pytest
from httpx import AsyncClient

from app.dependencies import get_cache_manager
from app.main import app
from app.managers.cache_manager import CacheManager


@pytest.fixture
def seeded(cache: CacheManager) -> CacheManager:
    cache.set("blogs:list:page:1", {"data": []})
    cache.set("blogs:list:page:2", {"data": []})
    cache.set("users:total", 42)
    app.dependency_overrides[get_cache_manager] = lambda: cache
    return cache


@pytest.mark.asyncio
async def test_stats(client: AsyncClient, as_admin: dict[str, Any], seeded: CacheManager) -> None:
    response = await client.get("/cache/stats")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["size"] == 3
    assert "users:total" in body["data"]["keys"]


@pytest.mark.asyncio
async def test_clear_by_prefix(client: AsyncClient, as_admin: dict[str, Any], seeded: CacheManager) -> None:
    response = await client.post("/cache/clear", params={"prefix": "blogs:"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": {"removed": 2}}
    assert seeded.get("users:total") == 42


@pytest.mark.asyncio
async def test_clear_everything(client: AsyncClient, as_admin: dict[str, Any], seeded: CacheManager) -> None:
    response = await client.post("/cache/clear")

    assert response.json()["data"]["removed"] == 3
    assert seeded.stats()["size"] == 0


@pytest.mark.asyncio
async def test_stats_requires_admin(client: AsyncClient, as_member: dict[str, Any], seeded: CacheManager) -> None:
    response = await client.get("/cache/stats")

    assert response.status_code == 403
    assert response.json() == {"success": False, "error": "Admin access required"}
