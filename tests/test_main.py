"""
Tests for the application probes and request correlation.
"""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient


class TestHealthEndpoints:
    """Test suite for health, readiness and liveness probes."""

    @pytest.mark.asyncio
    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_live(self, async_client: AsyncClient):
        response = await async_client.get("/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    @pytest.mark.asyncio
    async def test_ready(self, async_client: AsyncClient, monkeypatch):
        monkeypatch.setattr(
            "order_management.main.check_database_health", AsyncMock(return_value=True)
        )

        response = await async_client.get("/ready")

        assert response.status_code == 200
        assert response.json()["database"] == "healthy"

    @pytest.mark.asyncio
    async def test_not_ready_without_database(self, async_client: AsyncClient, monkeypatch):
        """
        Verifies:
        - Readiness reports 503 while the database is unreachable
        """
        monkeypatch.setattr(
            "order_management.main.check_database_health", AsyncMock(return_value=False)
        )

        response = await async_client.get("/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"


class TestRequestCorrelation:
    """Test suite for request id handling."""

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, async_client: AsyncClient):
        response = await async_client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, async_client: AsyncClient):
        response = await async_client.get("/health")

        assert response.headers["X-Request-ID"]
