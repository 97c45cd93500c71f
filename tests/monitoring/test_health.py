"""Tests for the readiness checks and the /health endpoint."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient
from pytest_mock import MockerFixture
from sqlalchemy.exc import OperationalError

from app.monitoring import CheckStatus, HealthChecker, OverallStatus


@pytest.fixture
def databases_up(mocker: MockerFixture) -> AsyncMock:
    mocker.patch("app.monitoring.health.disk_usage", return_value=MagicMock(percent=40.0))
    return mocker.patch("app.monitoring.health._select_one", AsyncMock(return_value=None))


def app_with_documents(ping: AsyncMock | None) -> SimpleNamespace:
    state = SimpleNamespace()
    if ping is not None:
        state.documents = SimpleNamespace(ping=ping)
    return SimpleNamespace(state=state)


class TestHealthChecker:
    @pytest.mark.asyncio
    async def test_all_pass(self, databases_up: AsyncMock) -> None:
        status = await HealthChecker(app_with_documents(AsyncMock())).check_readiness()

        assert status.status == OverallStatus.READY
        assert status.is_healthy
        assert set(status.checks) == {"database", "monitoring_database", "document_store", "cache", "disk"}
        assert status.to_dict()["checks"]["disk"] == {"status": "pass", "usage_percent": 40.0}

    @pytest.mark.asyncio
    async def test_database_failure(self, databases_up: AsyncMock) -> None:
        databases_up.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))

        status = await HealthChecker(app_with_documents(AsyncMock())).check_readiness()

        assert status.status == OverallStatus.NOT_READY
        assert status.checks["database"].status == CheckStatus.FAIL
        assert "Database check failed" in status.checks["database"].message

    @pytest.mark.asyncio
    async def test_document_store_not_initialized(self, databases_up: AsyncMock) -> None:
        status = await HealthChecker(app_with_documents(None)).check_readiness()

        assert status.checks["document_store"].status == CheckStatus.FAIL
        assert not status.is_healthy

    @pytest.mark.asyncio
    async def test_full_disk_warns_then_fails(self, databases_up: AsyncMock, mocker: MockerFixture) -> None:
        mocker.patch("app.monitoring.health.disk_usage", return_value=MagicMock(percent=92.0))
        status = await HealthChecker(app_with_documents(AsyncMock())).check_readiness()
        assert status.checks["disk"].status == CheckStatus.WARN
        assert status.is_healthy

        mocker.patch("app.monitoring.health.disk_usage", return_value=MagicMock(percent=97.0))
        status = await HealthChecker(app_with_documents(AsyncMock())).check_readiness()
        assert not status.is_healthy


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_not_ready_without_document_store(self, client: AsyncClient, databases_up: AsyncMock) -> None:
        # The lifespan does not run under the test transport, so no document store is attached
        response = await client.get("/health")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "not_ready"
        assert body["checks"]["document_store"]["message"] == "Document store not initialized"
