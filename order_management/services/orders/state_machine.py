"""Order decision workflow: accept or reject order lines against inventory.

This module implements the OrderDecisionWorkflow class. Accepting a line takes
its quantity out of the product's stock; rejecting any line rejects the whole
order, moves every accepted line to Rejected and gives back the stock those
lines held. Each line status change is committed on its own, so progress
already made survives a later failure and re-running a request is safe:
accepting an Accepted line is a no-op.

Decisions for one order are serialized per process, and every stock
read-modify-write is serialized per product.
"""

import uuid
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from order_management.core.exceptions import (
    ConflictError,
    DependencyError,
    InsufficientStockError,
    NotFoundError,
    OrderManagementError,
    ValidationError,
)
from order_management.core.locks import KeyedLock, order_locks, product_locks
from order_management.core.logging import get_logger, log_performance
from order_management.database.models.order import OrderDetail
from order_management.services.inventory.client import InventoryClient, ProductSnapshot
from order_management.services.orders.enums import OrderStatus, validate_line_decision
from order_management.services.orders.repository import OrderRepository

logger = get_logger(__name__)


class DecisionResult(BaseModel):
    """Outcome of one accept/reject request."""

    model_config = ConfigDict(frozen=True)

    order_id: uuid.UUID
    order_status: OrderStatus
    accepted_ids: list[uuid.UUID] = Field(default_factory=list)
    rejected_ids: list[uuid.UUID] = Field(default_factory=list)
    restored_ids: list[uuid.UUID] = Field(default_factory=list)
    restore_failures: list[uuid.UUID] = Field(default_factory=list)


class OrderDecisionWorkflow:
    """Applies accept/reject decisions to the lines of an order.

    Attributes:
        repository: Order repository for data access
        inventory_client: Product service client holding stock levels
    """

    def __init__(
        self,
        session: AsyncSession,
        inventory_client: InventoryClient,
        repository: Optional[OrderRepository] = None,
        order_lock: Optional[KeyedLock] = None,
        product_lock: Optional[KeyedLock] = None,
    ):
        """Initialize decision workflow.

        Args:
            session: Async database session
            inventory_client: Product service client
            repository: Optional order repository, built from session if omitted
            order_lock: Lock registry keyed by order id
            product_lock: Lock registry keyed by product id
        """
        self.repository = repository or OrderRepository(session)
        self.inventory_client = inventory_client
        self.order_lock = order_lock if order_lock is not None else order_locks
        self.product_lock = product_lock if product_lock is not None else product_locks

    async def process(
        self,
        order_id: uuid.UUID,
        decisions: Sequence[tuple[uuid.UUID, bool]],
        updated_by: Optional[uuid.UUID] = None,
    ) -> DecisionResult:
        """Apply line decisions to an order.

        Args:
            order_id: Order being decided
            decisions: Pairs of (order_detail_id, is_accepted), processed in order
            updated_by: Actor making the decisions

        Returns:
            Final order status with the accepted, rejected and restored line ids

        Raises:
            ValidationError: If decisions are empty, repeat a line or name a
                line of another order
            NotFoundError: If the order, its lines or a product is missing
            ConflictError: If the order can no longer be decided, a line
                cannot move to the decided status, or stock is insufficient
            DependencyError: If the product service rejects a stock update
        """
        if not decisions:
            raise ValidationError(
                "At least one line decision is required", order_id=str(order_id)
            )

        async with self.order_lock.hold(order_id):
            with log_performance(
                logger,
                "order_decisions",
                order_id=str(order_id),
                decision_count=len(decisions),
            ):
                return await self._process(order_id, decisions, updated_by)

    async def _process(
        self,
        order_id: uuid.UUID,
        decisions: Sequence[tuple[uuid.UUID, bool]],
        updated_by: Optional[uuid.UUID],
    ) -> DecisionResult:
        order = await self.repository.get_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found", order_id=str(order_id))

        if not order.order_status.is_decidable():
            raise ConflictError(
                f"Order {order_id} is {order.order_status.display_name} "
                "and can no longer be accepted or rejected",
                order_id=str(order_id),
                order_status=order.order_status.display_name,
            )

        details = await self.repository.get_details_by_order_id(order_id)
        if not details:
            raise NotFoundError(
                f"Order {order_id} has no order lines", order_id=str(order_id)
            )

        lines = {detail.order_detail_id: detail for detail in details}
        self._validate_decision_ids(order_id, decisions, lines)

        # Lines accepted by earlier requests already hold stock.
        reserved: dict[uuid.UUID, OrderDetail] = {
            detail_id: detail
            for detail_id, detail in lines.items()
            if detail.order_item_status == OrderStatus.ACCEPTED
        }
        accepted_ids: list[uuid.UUID] = []
        rejected_ids: list[uuid.UUID] = []

        for detail_id, is_accepted in decisions:
            detail = lines[detail_id]
            if is_accepted:
                await self._accept_line(detail, updated_by)
                reserved[detail_id] = detail
                accepted_ids.append(detail_id)
            else:
                await self._reject_line(detail, updated_by)
                rejected_ids.append(detail_id)

        if not rejected_ids:
            await self.repository.update_status(order, OrderStatus.ACCEPTED, updated_by)
            logger.info(
                "Order accepted",
                order_id=str(order_id),
                accepted=len(accepted_ids),
            )
            return DecisionResult(
                order_id=order_id,
                order_status=OrderStatus.ACCEPTED,
                accepted_ids=accepted_ids,
            )

        held = [
            (detail.order_detail_id, detail.product_id, detail.quantity)
            for detail in reserved.values()
        ]
        # Statuses first, so a partially failed restore is never repeated and
        # a reopened order holds no Accepted lines.
        await self.repository.reject_with_lines(
            order, list(reserved.values()), updated_by
        )
        restored_ids, restore_failures = await self._restore_stock(held)

        logger.info(
            "Order rejected",
            order_id=str(order_id),
            accepted=len(accepted_ids),
            rejected=len(rejected_ids),
            restored=len(restored_ids),
            restore_failures=len(restore_failures),
        )
        return DecisionResult(
            order_id=order_id,
            order_status=OrderStatus.REJECTED,
            accepted_ids=accepted_ids,
            rejected_ids=rejected_ids,
            restored_ids=restored_ids,
            restore_failures=restore_failures,
        )

    def _validate_decision_ids(
        self,
        order_id: uuid.UUID,
        decisions: Sequence[tuple[uuid.UUID, bool]],
        lines: dict[uuid.UUID, OrderDetail],
    ) -> None:
        seen: set[uuid.UUID] = set()
        for detail_id, _ in decisions:
            if detail_id in seen:
                raise ValidationError(
                    f"Order line {detail_id} is decided more than once",
                    order_id=str(order_id),
                    order_detail_id=str(detail_id),
                )
            if detail_id not in lines:
                raise ValidationError(
                    f"Order line {detail_id} does not belong to order {order_id}",
                    order_id=str(order_id),
                    order_detail_id=str(detail_id),
                )
            seen.add(detail_id)


    async def _require_product(
        self, product_id: uuid.UUID, order_detail_id: uuid.UUID
    ) -> ProductSnapshot:
        product = await self.inventory_client.get_product(product_id)
        if product is None:
            raise NotFoundError(
                f"Product {product_id} not found",
                product_id=str(product_id),
                order_detail_id=str(order_detail_id),
            )
        return product

    def _check_transition(self, detail: OrderDetail, target: OrderStatus) -> None:
        if not validate_line_decision(detail.order_item_status, target):
            raise ConflictError(
                f"Order line {detail.order_detail_id} is "
                f"{detail.order_item_status.display_name} and cannot become "
                f"{target.display_name}",
                order_detail_id=str(detail.order_detail_id),
                order_item_status=detail.order_item_status.display_name,
            )

    async def _accept_line(
        self, detail: OrderDetail, updated_by: Optional[uuid.UUID]
    ) -> None:
        """Take the line's quantity out of stock and mark it Accepted."""
        self._check_transition(detail, OrderStatus.ACCEPTED)
        # A failed write expires the instance; later steps use these copies.
        order_detail_id = detail.order_detail_id
        product_id = detail.product_id
        quantity = detail.quantity

        async with self.product_lock.hold(product_id):
            product = await self._require_product(product_id, order_detail_id)

            if detail.order_item_status == OrderStatus.ACCEPTED:
                logger.debug(
                    "Order line already accepted",
                    order_detail_id=str(order_detail_id),
                )
                return

            if product.quantity < quantity:
                logger.warning(
                    "Insufficient stock for order line",
                    order_detail_id=str(order_detail_id),
                    product_id=str(product_id),
                    requested=quantity,
                    available=product.quantity,
                )
                raise InsufficientStockError(str(product_id), quantity, product.quantity)

            updated = await self.inventory_client.set_quantity(
                product_id, product.quantity - quantity
            )
            if not updated:
                raise DependencyError(
                    f"Failed to update stock for product {product_id}",
                    product_id=str(product_id),
                    order_detail_id=str(order_detail_id),
                )

            try:
                await self.repository.update_line_status(
                    detail, OrderStatus.ACCEPTED, updated_by
                )
            except OrderManagementError:
                # Stock was taken but the line is not Accepted; give it back.
                try:
                    await self._add_back(order_detail_id, product_id, quantity)
                except OrderManagementError as restore_error:
                    logger.error(
                        "Stock restore after failed line update failed",
                        order_detail_id=str(order_detail_id),
                        product_id=str(product_id),
                        error=restore_error.message,
                    )
                raise

        logger.info(
            "Order line accepted",
            order_detail_id=str(order_detail_id),
            product_id=str(product_id),
            quantity=quantity,
            remaining=product.quantity - quantity,
        )

    async def _reject_line(
        self, detail: OrderDetail, updated_by: Optional[uuid.UUID]
    ) -> None:
        """Mark the line Rejected; stock is settled once all lines are decided."""
        self._check_transition(detail, OrderStatus.REJECTED)
        order_detail_id = detail.order_detail_id
        product_id = detail.product_id
        await self._require_product(product_id, order_detail_id)

        if detail.order_item_status != OrderStatus.REJECTED:
            await self.repository.update_line_status(
                detail, OrderStatus.REJECTED, updated_by
            )

        logger.info(
            "Order line rejected",
            order_detail_id=str(order_detail_id),
            product_id=str(product_id),
        )

    async def _add_back(
        self, order_detail_id: uuid.UUID, product_id: uuid.UUID, quantity: int
    ) -> bool:
        """Add ``quantity`` back to a product's stock. Caller holds the product lock."""
        product = await self._require_product(product_id, order_detail_id)
        return await self.inventory_client.set_quantity(
            product_id, product.quantity + quantity
        )

    async def _give_back(
        self, order_detail_id: uuid.UUID, product_id: uuid.UUID, quantity: int
    ) -> bool:
        """Add a line's quantity back to its product's stock.

        Returns:
            True if the stock update was accepted
        """
        async with self.product_lock.hold(product_id):
            return await self._add_back(order_detail_id, product_id, quantity)

    async def _restore_stock(
        self, held: Sequence[tuple[uuid.UUID, uuid.UUID, int]]
    ) -> tuple[list[uuid.UUID], list[uuid.UUID]]:
        """Give back the stock of every held line, best effort.

        Args:
            held: Triples of (order_detail_id, product_id, quantity)

        Returns:
            Tuple of (restored line ids, line ids whose restore failed)
        """
        restored: list[uuid.UUID] = []
        failures: list[uuid.UUID] = []

        for order_detail_id, product_id, quantity in held:
            try:
                if await self._give_back(order_detail_id, product_id, quantity):
                    restored.append(order_detail_id)
                    continue
                logger.error(
                    "Stock restore refused",
                    order_detail_id=str(order_detail_id),
                    product_id=str(product_id),
                    quantity=quantity,
                )
            except OrderManagementError as e:
                logger.error(
                    "Stock restore failed",
                    order_detail_id=str(order_detail_id),
                    product_id=str(product_id),
                    quantity=quantity,
                    error=e.message,
                    error_code=e.code,
                )
            failures.append(order_detail_id)

        return restored, failures
