"""Integration tests for health endpoints."""

from unittest.mock import patch

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_liveness_always_healthy(client: AsyncClient) -> None:
    """GET /health should always return 200."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_readiness_checks_database_only(client: AsyncClient, fake_executor) -> None:
    """GET /health/ready reports the database and never contacts the managed host."""
    response = await client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert list(data["checks"]) == ["database"]
    assert fake_executor.commands == []


@pytest.mark.asyncio
async def test_detailed_requires_token(client: AsyncClient, api) -> None:
    response = await client.get("/health/detailed")
    api.assert_error(response, 401, "AUTH_UNAUTHORIZED")


@pytest.mark.asyncio
async def test_detailed_returns_components(client: AsyncClient, auth_headers: dict) -> None:
    """Without SSH credentials the managed host is reported as not configured."""
    with patch("adminui.backend.api.health.has_ssh_credentials", return_value=False):
        response = await client.get("/health/detailed", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["application"]["name"] == "AdminUI"
    assert data["checks"]["database"]["status"] == "healthy"
    assert data["checks"]["remote_host"] == {"status": "not_configured"}
    assert data["checks"]["telegram"] == {"status": "disabled"}
