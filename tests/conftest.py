# tests/conftest.py
"""Root pytest configuration and shared fixtures."""

import os

# Must happen before the app (and its settings) are imported anywhere
os.environ["LOG_TO_FILE"] = "false"
os.environ["ENVIRONMENT"] = "test"

from collections.abc import AsyncGenerator, Iterator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from app.dependencies import get_current_user
from app.main import app
from app.managers import limiter, metrics_manager
from app.managers.cache_manager import CacheManager

ADMIN_USER: dict[str, Any] = {
    "id": "admin-1",
    "email": "admin@acme.example",
    "user_metadata": {"role": "Admin"},
    "app_metadata": {},
}
MEMBER_USER: dict[str, Any] = {
    "id": "member-1",
    "email": "member@acme.example",
    "user_metadata": {},
    "app_metadata": {"role": "member"},
}


@pytest.fixture(autouse=True)
def clear_overrides() -> Iterator[None]:
    """Every test starts without dependency overrides and with fresh metrics."""
    app.dependency_overrides.clear()
    metrics_manager.reset_metrics()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient]:
    """
    Create async HTTP client for testing FastAPI endpoints.

    Rate limiting is disabled; the lifespan does not run, so tests override
    whatever dependency would reach ``app.state``.
    """
    limiter.enabled = False
    async with AsyncClient(
        base_url="http://test",
        transport=ASGITransport(app=app),
    ) as ac:
        yield ac


@pytest.fixture
def as_admin() -> dict[str, Any]:
    """Authenticate every request as an admin."""
    app.dependency_overrides[get_current_user] = lambda: ADMIN_USER
    return ADMIN_USER


@pytest.fixture
def as_member() -> dict[str, Any]:
    """Authenticate every request as a signed-in non-admin."""
    app.dependency_overrides[get_current_user] = lambda: MEMBER_USER
    return MEMBER_USER


@pytest.fixture
def cache() -> CacheManager:
    """A private cache manager, isolated from the process-wide one."""
    return CacheManager()
