"""
Order data access repository.

This module implements the OrderRepository class: async methods that insert an
order together with its lines in one transaction, read orders with their lines,
change order and line status, and run the filtered, paginated order search.
Every write commits before returning. Database failures are rolled back and
raised as ``PersistenceError``; stale optimistic-lock versions are raised as
``ConflictError``.
"""

import uuid
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.sql.elements import ColumnElement

from order_management.core.exceptions import (
    ConflictError,
    OrderManagementError,
    PersistenceError,
)
from order_management.core.logging import get_logger
from order_management.database.models.order import Order, OrderDetail
from order_management.services.orders.enums import OrderStatus

logger = get_logger(__name__)


def build_search_conditions(
    order_id: Optional[uuid.UUID] = None,
    retailer_id: Optional[uuid.UUID] = None,
    manufacturer_id: Optional[uuid.UUID] = None,
    delivery_personnel_id: Optional[uuid.UUID] = None,
    order_status: Optional[OrderStatus] = None,
    order_item_status: Optional[OrderStatus] = None,
    retailer_ids: Optional[Iterable[uuid.UUID]] = None,
    manufacturer_ids: Optional[Iterable[uuid.UUID]] = None,
    product_ids: Optional[Iterable[uuid.UUID]] = None,
) -> list[ColumnElement[bool]]:
    """
    Build SQL conditions for the order search.

    Manufacturer, item status and product filters match an order when any of
    its lines matches. The ``*_ids`` arguments hold ids resolved from name
    filters; an empty collection matches nothing.

    Returns:
        Conditions to be combined with AND
    """
    conditions: list[ColumnElement[bool]] = []

    if order_id is not None:
        conditions.append(Order.order_id == order_id)
    if retailer_id is not None:
        conditions.append(Order.retailer_id == retailer_id)
    if delivery_personnel_id is not None:
        conditions.append(Order.delivery_personnel_id == delivery_personnel_id)
    if order_status is not None:
        conditions.append(Order.order_status == order_status)
    if manufacturer_id is not None:
        conditions.append(
            Order.details.any(OrderDetail.manufacturer_id == manufacturer_id)
        )
    if order_item_status is not None:
        conditions.append(
            Order.details.any(OrderDetail.order_item_status == order_item_status)
        )
    if retailer_ids is not None:
        conditions.append(Order.retailer_id.in_(list(retailer_ids)))
    if manufacturer_ids is not None:
        conditions.append(
            Order.details.any(OrderDetail.manufacturer_id.in_(list(manufacturer_ids)))
        )
    if product_ids is not None:
        conditions.append(
            Order.details.any(OrderDetail.product_id.in_(list(product_ids)))
        )

    return conditions


class OrderRepository:
    """
    Repository for order and order line persistence.

    Holds one AsyncSession for the duration of a request. Methods that change
    data commit before returning so that each step of a multi-step workflow
    is durable on its own.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize order repository.

        Args:
            session: Async database session
        """
        self.session = session

    async def _fail(
        self, message: str, error: Exception, **context: Any
    ) -> OrderManagementError:
        """Roll back, log and build the domain error for a database failure."""
        await self.session.rollback()

        if isinstance(error, StaleDataError):
            logger.warning(message, reason="stale version", **context)
            return ConflictError(
                "Order was modified concurrently, retry the request", **context
            )

        logger.error(
            message,
            error=str(error),
            error_type=type(error).__name__,
            **context,
        )
        return PersistenceError(message, **context)

    async def insert_order_with_details(
        self, order: Order, details: Sequence[OrderDetail]
    ) -> Order:
        """
        Insert an order and its lines atomically.

        The order row is written before its lines; either all rows are
        committed or none are.

        Args:
            order: New order, not yet added to the session
            details: New lines belonging to the order

        Returns:
            Persisted order with lines loaded

        Raises:
            PersistenceError: If any insert fails
        """
        order.details = list(details)
        # Read before the flush; a failed flush leaves the instances unusable.
        context = dict(
            order_id=str(order.order_id),
            retailer_id=str(order.retailer_id),
            line_count=len(details),
        )

        try:
            self.session.add(order)
            await self.session.flush()
            await self.session.commit()
        except IntegrityError as e:
            raise await self._fail(
                "Order creation failed due to data integrity violation",
                e,
                **context,
            ) from e
        except SQLAlchemyError as e:
            raise await self._fail(
                "Order creation failed due to database error",
                e,
                **context,
            ) from e

        logger.info("Order inserted", **context)
        return order

    async def get_by_id(self, order_id: uuid.UUID) -> Optional[Order]:
        """
        Get order by ID with its lines.

        Returns:
            Order if found, None otherwise
        """
        try:
            stmt = (
                select(Order)
                .where(Order.order_id == order_id)
                .options(selectinload(Order.details))
            )
            result = await self.session.execute(stmt)
            order = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise await self._fail(
                "Failed to fetch order", e, order_id=str(order_id)
            ) from e

        logger.debug("Order fetched", order_id=str(order_id), found=order is not None)
        return order

    async def get_details_by_order_id(self, order_id: uuid.UUID) -> list[OrderDetail]:
        """Get the lines of an order, oldest first."""
        try:
            stmt = (
                select(OrderDetail)
                .where(OrderDetail.order_id == order_id)
                .order_by(OrderDetail.created_on, OrderDetail.order_detail_id)
            )
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise await self._fail(
                "Failed to fetch order lines", e, order_id=str(order_id)
            ) from e

    async def get_by_manufacturer(self, manufacturer_id: uuid.UUID) -> list[Order]:
        """Get all orders placed with a manufacturer, newest first."""
        try:
            stmt = (
                select(Order)
                .where(Order.manufacturer_id == manufacturer_id)
                .options(selectinload(Order.details))
                .order_by(Order.created_on.desc(), Order.order_id)
            )
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise await self._fail(
                "Failed to fetch manufacturer orders",
                e,
                manufacturer_id=str(manufacturer_id),
            ) from e

    async def update_mutable_fields(
        self,
        order: Order,
        order_status: OrderStatus,
        delivery_personnel_id: Optional[uuid.UUID],
        updated_by: Optional[uuid.UUID] = None,
    ) -> Order:
        """
        Change the fields of an order that may be edited after creation.

        Only status, delivery personnel and the update audit columns are
        written.
        """
        order_id = str(order.order_id)
        order.order_status = order_status
        order.delivery_personnel_id = delivery_personnel_id
        order.touch(updated_by)

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail(
                "Failed to update order", e, order_id=order_id
            ) from e

        logger.info(
            "Order updated",
            order_id=order_id,
            order_status=order_status.display_name,
        )
        return order

    async def update_status(
        self,
        order: Order,
        order_status: OrderStatus,
        updated_by: Optional[uuid.UUID] = None,
    ) -> Order:
        """Set the aggregate status of an order and commit."""
        order_id = str(order.order_id)
        order.order_status = order_status
        order.touch(updated_by)

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail(
                "Failed to update order status",
                e,
                order_id=order_id,
                order_status=order_status.display_name,
            ) from e

        logger.info(
            "Order status updated",
            order_id=order_id,
            order_status=order_status.display_name,
        )
        return order

    async def reject_with_lines(
        self,
        order: Order,
        details: Sequence[OrderDetail],
        updated_by: Optional[uuid.UUID] = None,
    ) -> Order:
        """
        Mark an order and the given lines Rejected in one commit.

        Either the order and every line move to Rejected or nothing changes.

        Raises:
            ConflictError: If a row was modified concurrently
            PersistenceError: If the update fails
        """
        order_id = str(order.order_id)
        line_count = len(details)
        order.order_status = OrderStatus.REJECTED
        order.touch(updated_by)
        for detail in details:
            if detail.order_item_status != OrderStatus.REJECTED:
                detail.order_item_status = OrderStatus.REJECTED
                detail.touch(updated_by)

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail(
                "Failed to reject order",
                e,
                order_id=order_id,
                line_count=line_count,
            ) from e

        logger.info("Order rejected with lines", order_id=order_id, line_count=line_count)
        return order

    async def update_line_status(
        self,
        detail: OrderDetail,
        order_item_status: OrderStatus,
        updated_by: Optional[uuid.UUID] = None,
    ) -> OrderDetail:
        """Set the status of one order line and commit."""
        order_detail_id = str(detail.order_detail_id)
        detail.order_item_status = order_item_status
        detail.touch(updated_by)

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail(
                "Failed to update order line status",
                e,
                order_detail_id=order_detail_id,
                order_item_status=order_item_status.display_name,
            ) from e

        logger.debug(
            "Order line status updated",
            order_detail_id=order_detail_id,
            order_item_status=order_item_status.display_name,
        )
        return detail

    async def get_related_ids(
        self, conditions: Sequence[ColumnElement[bool]]
    ) -> tuple[set[uuid.UUID], set[uuid.UUID], set[uuid.UUID]]:
        """
        Collect distinct party and product ids of the orders matching ``conditions``.

        Returns:
            Tuple of (retailer_ids, manufacturer_ids, product_ids), where
            manufacturer and product ids come from the order lines
        """
        where = and_(True, *conditions)
        try:
            retailer_result = await self.session.execute(
                select(Order.retailer_id).where(where).distinct()
            )
            line_result = await self.session.execute(
                select(OrderDetail.manufacturer_id, OrderDetail.product_id)
                .join(Order, Order.order_id == OrderDetail.order_id)
                .where(where)
                .distinct()
            )
        except SQLAlchemyError as e:
            raise await self._fail("Failed to collect order party ids", e) from e

        retailer_ids = set(retailer_result.scalars().all())
        manufacturer_ids: set[uuid.UUID] = set()
        product_ids: set[uuid.UUID] = set()
        for manufacturer_id, product_id in line_result.all():
            manufacturer_ids.add(manufacturer_id)
            product_ids.add(product_id)

        return retailer_ids, manufacturer_ids, product_ids

    async def search(
        self,
        conditions: Sequence[ColumnElement[bool]],
        offset: int,
        limit: int,
    ) -> tuple[list[Order], int]:
        """
        Get one page of orders matching ``conditions``.

        Orders are sorted newest first with the order id as tie breaker so
        that pages are stable.

        Returns:
            Tuple of (orders, total_count)
        """
        where = and_(True, *conditions)
        try:
            count_result = await self.session.execute(
                select(func.count()).select_from(Order).where(where)
            )
            total = count_result.scalar_one()

            stmt = (
                select(Order)
                .where(where)
                .options(selectinload(Order.details))
                .order_by(Order.created_on.desc(), Order.order_id)
                .offset(offset)
                .limit(limit)
            )
            result = await self.session.execute(stmt)
            orders = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise await self._fail(
                "Order search failed", e, offset=offset, limit=limit
            ) from e

        logger.debug(
            "Order search executed",
            total=total,
            returned=len(orders),
            offset=offset,
            limit=limit,
        )
        return orders, total
