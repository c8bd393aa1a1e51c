"""
Test suite for database session management helpers.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from order_management.database import connection
from order_management.database.connection import check_database_health, to_async_url


class TestAsyncUrl:
    """Test suite for driver URL conversion."""

    def test_plain_postgres_url_uses_asyncpg(self):
        assert (
            to_async_url("postgresql://u:p@db:5432/orders")
            == "postgresql+asyncpg://u:p@db:5432/orders"
        )

    def test_asyncpg_url_unchanged(self):
        url = "postgresql+asyncpg://u:p@db:5432/orders"

        assert to_async_url(url) == url


class TestSession:
    """Test suite for the transactional session scope."""

    @pytest.mark.asyncio
    async def test_commit_on_success(self, monkeypatch, mock_session: AsyncMock):
        monkeypatch.setattr(
            connection, "get_session_factory", lambda: MagicMock(return_value=mock_session)
        )

        async with connection.get_session() as session:
            assert session is mock_session

        mock_session.commit.assert_awaited_once()
        mock_session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rollback_on_error(self, monkeypatch, mock_session: AsyncMock):
        monkeypatch.setattr(
            connection, "get_session_factory", lambda: MagicMock(return_value=mock_session)
        )

        with pytest.raises(ValueError):
            async with connection.get_session():
                raise ValueError("boom")

        mock_session.rollback.assert_awaited_once()
        mock_session.commit.assert_not_awaited()
        mock_session.close.assert_awaited_once()


class TestHealthCheck:
    """Test suite for the database health check."""

    @pytest.mark.asyncio
    async def test_unreachable_database(self, monkeypatch):
        engine = MagicMock()
        engine.connect.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))
        monkeypatch.setattr(connection, "get_engine", lambda: engine)

        assert await check_database_health(max_retries=2, retry_delay=0) is False
        assert engine.connect.call_count == 2
