"""
Test suite for OrderRepository and the search condition builder.

The session is mocked; these tests check transaction handling and error
translation rather than SQL results.
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from order_management.core.exceptions import ConflictError, PersistenceError
from order_management.services.orders.enums import OrderStatus
from order_management.services.orders.repository import (
    OrderRepository,
    build_search_conditions,
)
from tests.factories import make_detail, make_order


@pytest.fixture
def repository(mock_session: AsyncMock) -> OrderRepository:
    return OrderRepository(mock_session)


# ============================================================================
# Search Conditions
# ============================================================================


class TestBuildSearchConditions:
    """Test suite for search condition building."""

    def test_no_filters(self):
        assert build_search_conditions() == []

    def test_one_condition_per_filter(self):
        conditions = build_search_conditions(
            order_id=uuid.uuid4(),
            retailer_id=uuid.uuid4(),
            manufacturer_id=uuid.uuid4(),
            delivery_personnel_id=uuid.uuid4(),
            order_status=OrderStatus.NEW,
            order_item_status=OrderStatus.SUBMITTED,
        )

        assert len(conditions) == 6

    def test_empty_id_collection_still_filters(self):
        """
        Verifies:
        - A name filter that resolved to no ids adds a condition, so it
          matches nothing instead of everything
        """
        conditions = build_search_conditions(retailer_ids=set(), product_ids=set())

        assert len(conditions) == 2


# ============================================================================
# Writes
# ============================================================================


class TestInsertOrder:
    """Test suite for atomic order insertion."""

    @pytest.mark.asyncio
    async def test_insert_order_with_details(
        self, repository: OrderRepository, mock_session: AsyncMock
    ):
        """
        Verifies:
        - Lines are attached to the order and committed with it
        """
        order = make_order()
        details = [make_detail(order_id=order.order_id), make_detail(order_id=order.order_id)]

        result = await repository.insert_order_with_details(order, details)

        assert result is order
        assert list(order.details) == details
        mock_session.add.assert_called_once_with(order)
        mock_session.flush.assert_awaited_once()
        mock_session.commit.assert_awaited_once()
        mock_session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_insert_failure_rolls_back(
        self, repository: OrderRepository, mock_session: AsyncMock
    ):
        """
        Verifies:
        - A failed flush rolls back and raises PersistenceError; nothing is committed
        """
        mock_session.flush.side_effect = IntegrityError(
            "INSERT INTO order_details", {}, Exception("duplicate key")
        )

        with pytest.raises(PersistenceError, match="integrity"):
            await repository.insert_order_with_details(make_order(), [make_detail()])

        mock_session.rollback.assert_awaited_once()
        mock_session.commit.assert_not_awaited()


class TestStatusWrites:
    """Test suite for order and line status updates."""

    @pytest.mark.asyncio
    async def test_update_line_status(
        self, repository: OrderRepository, mock_session: AsyncMock
    ):
        detail = make_detail()
        actor = uuid.uuid4()

        result = await repository.update_line_status(detail, OrderStatus.ACCEPTED, actor)

        assert result.order_item_status == OrderStatus.ACCEPTED
        assert result.updated_by == actor
        assert result.updated_on is not None
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stale_version_is_conflict(
        self, repository: OrderRepository, mock_session: AsyncMock
    ):
        """
        Verifies:
        - A concurrent modification surfaces as ConflictError
        """
        mock_session.commit.side_effect = StaleDataError("version mismatch")

        with pytest.raises(ConflictError, match="modified concurrently"):
            await repository.update_status(make_order(), OrderStatus.ACCEPTED)

        mock_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_database_error_is_persistence_error(
        self, repository: OrderRepository, mock_session: AsyncMock
    ):
        mock_session.commit.side_effect = SQLAlchemyError("connection reset")

        with pytest.raises(PersistenceError):
            await repository.update_line_status(make_detail(), OrderStatus.REJECTED)

    @pytest.mark.asyncio
    async def test_reject_with_lines_commits_once(
        self, repository: OrderRepository, mock_session: AsyncMock
    ):
        """
        Verifies:
        - The order and the given lines become Rejected in a single commit
        - Lines not passed in are left alone
        """
        held = make_detail(status=OrderStatus.ACCEPTED)
        other = make_detail(status=OrderStatus.SUBMITTED)
        order = make_order([held, other], status=OrderStatus.ACCEPTED)

        await repository.reject_with_lines(order, [held], uuid.uuid4())

        assert order.order_status == OrderStatus.REJECTED
        assert held.order_item_status == OrderStatus.REJECTED
        assert other.order_item_status == OrderStatus.SUBMITTED
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_mutable_fields(
        self, repository: OrderRepository, mock_session: AsyncMock
    ):
        order = make_order()
        personnel_id = uuid.uuid4()

        result = await repository.update_mutable_fields(
            order, OrderStatus.IN_TRANSIT, personnel_id
        )

        assert result.order_status == OrderStatus.IN_TRANSIT
        assert result.delivery_personnel_id == personnel_id
        mock_session.commit.assert_awaited_once()


# ============================================================================
# Reads
# ============================================================================


class TestReads:
    """Test suite for order reads."""

    @pytest.mark.asyncio
    async def test_get_by_id(self, repository: OrderRepository, mock_session: AsyncMock):
        order = make_order([make_detail()])
        result = MagicMock()
        result.scalar_one_or_none.return_value = order
        mock_session.execute.return_value = result

        assert await repository.get_by_id(order.order_id) is order

    @pytest.mark.asyncio
    async def test_get_by_id_failure(
        self, repository: OrderRepository, mock_session: AsyncMock
    ):
        mock_session.execute.side_effect = SQLAlchemyError("timeout")

        with pytest.raises(PersistenceError, match="Failed to fetch order"):
            await repository.get_by_id(uuid.uuid4())

        mock_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_search_returns_page_and_total(
        self, repository: OrderRepository, mock_session: AsyncMock
    ):
        orders = [make_order(), make_order()]
        count_result = MagicMock()
        count_result.scalar_one.return_value = 12
        page_result = MagicMock()
        page_result.scalars.return_value.all.return_value = orders
        mock_session.execute.side_effect = [count_result, page_result]

        result, total = await repository.search([], offset=0, limit=2)

        assert result == orders
        assert total == 12
        assert mock_session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_get_related_ids(
        self, repository: OrderRepository, mock_session: AsyncMock
    ):
        retailer_id, manufacturer_id = uuid.uuid4(), uuid.uuid4()
        products = [uuid.uuid4(), uuid.uuid4()]
        retailer_result = MagicMock()
        retailer_result.scalars.return_value.all.return_value = [retailer_id]
        line_result = MagicMock()
        line_result.all.return_value = [
            (manufacturer_id, products[0]),
            (manufacturer_id, products[1]),
        ]
        mock_session.execute.side_effect = [retailer_result, line_result]

        retailers, manufacturers, product_ids = await repository.get_related_ids([])

        assert retailers == {retailer_id}
        assert manufacturers == {manufacturer_id}
        assert product_ids == set(products)
