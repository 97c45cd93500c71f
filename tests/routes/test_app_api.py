"""Endpoint tests for the root, metrics and middleware behaviour."""

from typing import Any
from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient

from app.configs import settings
from app.dependencies import get_identity_client
from app.main import app


@pytest.mark.asyncio
async def test_root(client: AsyncClient) -> None:
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": f"Welcome to {settings.APP_NAME}"}


@pytest.mark.asyncio
async def test_request_id_and_security_headers(client: AsyncClient) -> None:
    response = await client.get("/", headers={"X-Request-ID": "req-42"})

    assert response.headers["X-Request-ID"] == "req-42"
    assert "X-Process-Time" in response.headers
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


@pytest.mark.asyncio
async def test_metrics(client: AsyncClient, as_admin: dict[str, Any]) -> None:
    await client.get("/metrics")
    response = await client.get("/metrics")

    assert response.status_code == 200
    body = response.json()
    assert body["api_metrics"]["endpoints"]["/metrics"]["requests"] >= 1
    assert "cpu_percent" in body["system_metrics"]


@pytest.mark.asyncio
async def test_metrics_requires_session(client: AsyncClient) -> None:
    app.dependency_overrides[get_identity_client] = lambda: MagicMock()

    response = await client.get("/metrics")

    assert response.status_code == 401
