"""
Pytest configuration and shared test fixtures.

This module provides mocked sessions, repositories and remote clients, and an
async HTTP client bound to the FastAPI application. Entity factories live in
``tests.factories``.
"""

import uuid
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from order_management.core.locks import KeyedLock
from order_management.main import app
from order_management.services.inventory.client import InventoryClient
from order_management.services.orders.enums import OrderStatus
from order_management.services.orders.repository import OrderRepository
from order_management.services.users.client import UserDirectoryClient, UserProfile
from tests.factories import InMemoryInventory


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_session() -> AsyncMock:
    """
    Create mock async database session.

    Returns:
        AsyncMock: Mock database session
    """
    session = AsyncMock(spec=AsyncSession)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
def mock_repository() -> AsyncMock:
    """Mock order repository whose status writes apply to the given entity."""
    repository = AsyncMock(spec=OrderRepository)

    async def apply_line_status(detail, order_item_status, updated_by=None):
        detail.order_item_status = order_item_status
        return detail

    async def apply_order_status(order, order_status, updated_by=None):
        order.order_status = order_status
        return order

    async def apply_rejection(order, details, updated_by=None):
        order.order_status = OrderStatus.REJECTED
        for detail in details:
            detail.order_item_status = OrderStatus.REJECTED
        return order

    repository.update_line_status.side_effect = apply_line_status
    repository.update_status.side_effect = apply_order_status
    repository.reject_with_lines.side_effect = apply_rejection
    return repository


@pytest.fixture
def inventory() -> InMemoryInventory:
    return InMemoryInventory()


@pytest.fixture
def mock_inventory_client(inventory: InMemoryInventory) -> AsyncMock:
    """InventoryClient mock backed by the in-memory inventory."""
    client = AsyncMock(spec=InventoryClient)
    client.get_product.side_effect = inventory.get_product
    client.set_quantity.side_effect = inventory.set_quantity
    client.get_products_by_ids.side_effect = inventory.get_products_by_ids
    return client


@pytest.fixture
def users() -> dict[uuid.UUID, UserProfile]:
    return {}


@pytest.fixture
def mock_user_client(users: dict[uuid.UUID, UserProfile]) -> AsyncMock:
    """UserDirectoryClient mock resolving ids from the ``users`` fixture."""
    client = AsyncMock(spec=UserDirectoryClient)

    async def lookup(user_ids):
        return {user_id: users[user_id] for user_id in set(user_ids) if user_id in users}

    client.get_users_by_ids.side_effect = lookup
    return client


@pytest.fixture
def keyed_locks() -> tuple[KeyedLock, KeyedLock]:
    """Fresh (order, product) lock registries."""
    return KeyedLock(), KeyedLock()


# ============================================================================
# Application Client
# ============================================================================


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """
    Create an asynchronous test client for the FastAPI application.

    Dependency overrides set by a test are cleared afterwards.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
