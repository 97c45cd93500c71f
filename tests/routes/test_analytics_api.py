"""Endpoint tests for the dashboard analytics widgets."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from app.dependencies import get_analytics_service, get_identity_client
from app.main import app
from app.managers.cache_manager import CacheManager
from app.services.analytics import AnalyticsService
from app.services.enrichment import Resolver


@pytest.fixture
def identity() -> MagicMock:
    identity = MagicMock()
    identity.get_user = AsyncMock(return_value=None)
    identity.get_user_for_token = AsyncMock(return_value=None)
    identity.count_users = AsyncMock(return_value=3)
    identity.list_all_users = AsyncMock(return_value=[{"id": "u1", "created_at": "2025-01-10T10:00:00Z"}])
    app.dependency_overrides[get_identity_client] = lambda: identity
    return identity


@pytest.fixture
def repos() -> dict[str, MagicMock]:
    accounts = MagicMock()
    accounts.count = AsyncMock(return_value=1)
    payments = MagicMock()
    payments.captured_totals = AsyncMock(return_value=(2, 99800))
    payments.recent = AsyncMock(
        return_value=[{"id": "pay1", "user_id": "u1", "amount": 49900, "currency": "INR", "status": "captured"}],
    )
    blogs = MagicMock()
    blogs.created_counts = AsyncMock(return_value={"2025-01-10": 2})
    blogs.count_created = AsyncMock(return_value=2)
    activity = MagicMock()
    activity.since = AsyncMock(return_value=[])
    return {"projects": MagicMock(), "blogs": blogs, "accounts": accounts, "payments": payments, "activity": activity}


@pytest.fixture
def service(identity: MagicMock, repos: dict[str, MagicMock], cache: CacheManager) -> AnalyticsService:
    service = AnalyticsService(identity, Resolver(identity), cache=cache, **repos)
    app.dependency_overrides[get_analytics_service] = lambda: service
    return service


class TestMetrics:
    @pytest.mark.asyncio
    async def test_metrics(self, client: AsyncClient, as_admin: dict[str, Any], service: AnalyticsService) -> None:
        response = await client.get("/analytics/metrics")

        assert response.status_code == 200
        assert response.json()["data"] == {
            "total_users": 3,
            "free_users": 1,
            "pro_users": 1,
            "total_payments": 2,
            "total_amount": 99800,
        }

    @pytest.mark.asyncio
    async def test_requires_admin(self, client: AsyncClient, as_member: dict[str, Any], service: AnalyticsService) -> None:
        response = await client.get("/analytics/metrics")
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_active_users(self, client: AsyncClient, as_admin: dict[str, Any], service: AnalyticsService) -> None:
        response = await client.get("/analytics/active-users")

        assert response.status_code == 200
        assert response.json()["data"]["total_count"] == 0


class TestGrowth:
    @pytest.mark.asyncio
    async def test_user_growth(self, client: AsyncClient, as_admin: dict[str, Any], service: AnalyticsService) -> None:
        response = await client.get(
            "/analytics/user-growth",
            params={"period_type": "month", "start_date": "2025-01-01", "end_date": "2025-02-28"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_users"] == 1
        assert [point["count"] for point in data["growth_data"]] == [1, 0]

    @pytest.mark.asyncio
    async def test_blog_growth_by_day(
        self,
        client: AsyncClient,
        as_admin: dict[str, Any],
        service: AnalyticsService,
    ) -> None:
        response = await client.get(
            "/analytics/blogs-growth",
            params={"period_type": "day", "start_date": "2025-01-09", "end_date": "2025-01-11"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert [point["date"] for point in data["growth_data"]] == ["2025-01-09", "2025-01-10", "2025-01-11"]
        assert data["current_period_blogs"] == 0
        assert data["last_period_blogs"] == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("params", "error"),
        [
            ({"start_date": "2025-13-01", "end_date": "2025-12-31"}, "Invalid date format. Use YYYY-MM-DD format."),
            ({"start_date": "2025-03-01", "end_date": "2025-02-01"}, "Start date must be before end date."),
            ({"start_date": "2023-01-01", "end_date": "2025-01-01"}, "Date range cannot exceed 1 year."),
            ({"period_type": "week"}, 'Invalid period_type. Must be "day" or "month".'),
        ],
    )
    async def test_rejected_range(
        self,
        client: AsyncClient,
        as_admin: dict[str, Any],
        service: AnalyticsService,
        params: dict[str, str],
        error: str,
    ) -> None:
        response = await client.get("/analytics/project-growth", params=params)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": error}

    @pytest.mark.asyncio
    async def test_session_checked_before_dates(self, client: AsyncClient, service: AnalyticsService) -> None:
        response = await client.get("/analytics/user-growth", params={"start_date": "bad", "end_date": "bad"})
        assert response.status_code == 401


class TestRecent:
    @pytest.mark.asyncio
    async def test_recent_payments(
        self,
        client: AsyncClient,
        as_admin: dict[str, Any],
        service: AnalyticsService,
    ) -> None:
        response = await client.get("/payments/recent")

        assert response.status_code == 200
        (payment,) = response.json()["data"]
        assert payment["amount"] == 49900
        assert payment["user_name"] == "Unknown User"

    @pytest.mark.asyncio
    async def test_recent_projects_is_not_a_project_id(
        self,
        client: AsyncClient,
        as_admin: dict[str, Any],
        service: AnalyticsService,
        repos: dict[str, MagicMock],
    ) -> None:
        repos["projects"].recent = AsyncMock(return_value=[])

        response = await client.get("/projects/recent")

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": []}

    @pytest.mark.asyncio
    async def test_recent_blogs_is_not_a_blog_id(
        self,
        client: AsyncClient,
        as_admin: dict[str, Any],
        service: AnalyticsService,
        repos: dict[str, MagicMock],
    ) -> None:
        repos["blogs"].recent = AsyncMock(return_value=[])

        response = await client.get("/blogs/recent")

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": []}
