"""
Cart repository for data access operations.

This module implements the CartRepository class: insert, read and soft
deactivation of shopping cart entries. Entries are never physically deleted.
"""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from order_management.core.exceptions import PersistenceError
from order_management.core.logging import get_logger
from order_management.database.models.cart import ShoppingCart
from order_management.services.orders.enums import CartStatus

logger = get_logger(__name__)


class CartRepository:
    """Repository for shopping cart entries."""

    def __init__(self, session: AsyncSession):
        """
        Initialize cart repository.

        Args:
            session: Async database session for operations
        """
        self.session = session

    async def insert(self, cart: ShoppingCart) -> ShoppingCart:
        """
        Persist a new cart entry.

        Raises:
            PersistenceError: If the insert fails
        """
        retailer_id = str(cart.retailer_id)
        product_id = str(cart.product_id)

        try:
            self.session.add(cart)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to insert cart entry",
                retailer_id=retailer_id,
                product_id=product_id,
                error=str(e),
            )
            raise PersistenceError(
                "Failed to save cart entry",
                retailer_id=retailer_id,
                product_id=product_id,
            ) from e

        logger.info(
            "Cart entry inserted",
            cart_id=str(cart.cart_id),
            retailer_id=retailer_id,
        )
        return cart

    async def get_by_id(self, cart_id: uuid.UUID) -> Optional[ShoppingCart]:
        """
        Retrieve cart entry by ID.

        Returns:
            Cart entry if found, None otherwise
        """
        try:
            result = await self.session.execute(
                select(ShoppingCart).where(ShoppingCart.cart_id == cart_id)
            )
            cart = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to fetch cart entry", cart_id=str(cart_id), error=str(e))
            raise PersistenceError("Failed to fetch cart entry", cart_id=str(cart_id)) from e

        if cart is None:
            logger.debug("Cart entry not found", cart_id=str(cart_id))
        return cart

    async def deactivate(
        self,
        cart: ShoppingCart,
        updated_by: Optional[uuid.UUID] = None,
        converted: bool = False,
    ) -> ShoppingCart:
        """
        Soft-delete a cart entry.

        Args:
            cart: Entry to deactivate
            updated_by: Actor performing the change
            converted: True when the entry was consumed by an order

        Raises:
            PersistenceError: If the update fails
        """
        cart_id = str(cart.cart_id)
        if converted:
            cart.status = CartStatus.CONVERTED
        cart.deactivate(updated_by)

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to deactivate cart entry",
                cart_id=cart_id,
                error=str(e),
            )
            raise PersistenceError(
                "Failed to deactivate cart entry", cart_id=cart_id
            ) from e

        logger.info(
            "Cart entry deactivated",
            cart_id=cart_id,
            status=cart.status.display_name,
        )
        return cart

    async def list_active_by_retailer(self, retailer_id: uuid.UUID) -> list[ShoppingCart]:
        """List a retailer's active cart entries, oldest first."""
        try:
            result = await self.session.execute(
                select(ShoppingCart)
                .where(
                    ShoppingCart.retailer_id == retailer_id,
                    ShoppingCart.is_active.is_(True),
                )
                .order_by(ShoppingCart.created_on, ShoppingCart.cart_id)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to list cart entries",
                retailer_id=str(retailer_id),
                error=str(e),
            )
            raise PersistenceError(
                "Failed to list cart entries", retailer_id=str(retailer_id)
            ) from e
