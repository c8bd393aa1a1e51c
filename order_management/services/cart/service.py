"""
Cart service for retailer shopping cart entries.

This module implements the CartService class: staging a product in a
retailer's cart, reading entries and removing them. Removal is a soft
deactivation; entries consumed by an order are deactivated by the order
service instead.
"""

import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from order_management.core.exceptions import NotFoundError, ValidationError
from order_management.core.logging import get_logger
from order_management.database.models.cart import ShoppingCart
from order_management.services.cart.repository import CartRepository
from order_management.services.orders.enums import CartStatus
from order_management.services.orders.service import quantize_money

logger = get_logger(__name__)


class CartService:
    """
    Cart service for staging products before an order is placed.

    Attributes:
        repository: Cart repository for data access
    """

    def __init__(self, session: AsyncSession, repository: Optional[CartRepository] = None):
        self.repository = repository or CartRepository(session)

    async def add_item(
        self,
        retailer_id: uuid.UUID,
        product_id: uuid.UUID,
        manufacturer_id: uuid.UUID,
        order_quantity: int,
        product_price: Decimal,
        created_by: Optional[uuid.UUID] = None,
    ) -> ShoppingCart:
        """
        Stage a product in a retailer's cart.

        Args:
            retailer_id: Retailer staging the item
            product_id: Product to stage
            manufacturer_id: Manufacturer of the product
            order_quantity: Quantity to order, must be positive
            product_price: Unit price, must not be negative
            created_by: Actor, the retailer when omitted

        Returns:
            Persisted, active cart entry with status Save

        Raises:
            ValidationError: If quantity or price is out of range
        """
        if order_quantity is None or order_quantity <= 0:
            raise ValidationError(
                "Cart quantity must be positive",
                product_id=str(product_id),
                order_quantity=order_quantity,
            )
        if product_price is None or Decimal(str(product_price)) < 0:
            raise ValidationError(
                "Cart price must not be negative",
                product_id=str(product_id),
                product_price=str(product_price),
            )

        cart = ShoppingCart(
            cart_id=uuid.uuid4(),
            retailer_id=retailer_id,
            product_id=product_id,
            manufacturer_id=manufacturer_id,
            order_quantity=order_quantity,
            product_price=quantize_money(product_price),
            status=CartStatus.SAVE,
            is_active=True,
            created_by=created_by or retailer_id,
        )

        logger.info(
            "Adding cart item",
            retailer_id=str(retailer_id),
            product_id=str(product_id),
            order_quantity=order_quantity,
        )
        return await self.repository.insert(cart)

    async def get_item(self, cart_id: uuid.UUID) -> ShoppingCart:
        """
        Get a cart entry.

        Raises:
            NotFoundError: If the entry does not exist
        """
        cart = await self.repository.get_by_id(cart_id)
        if cart is None:
            raise NotFoundError(f"Cart entry {cart_id} not found", cart_id=str(cart_id))
        return cart

    async def get_retailer_items(self, retailer_id: uuid.UUID) -> list[ShoppingCart]:
        """Get a retailer's active cart entries."""
        return await self.repository.list_active_by_retailer(retailer_id)

    async def remove_item(
        self, cart_id: uuid.UUID, updated_by: Optional[uuid.UUID] = None
    ) -> ShoppingCart:
        """
        Remove a cart entry by deactivating it.

        Raises:
            NotFoundError: If the entry does not exist
        """
        cart = await self.get_item(cart_id)
        if not cart.is_active:
            logger.debug("Cart entry already inactive", cart_id=str(cart_id))
            return cart

        logger.info("Removing cart item", cart_id=str(cart_id))
        return await self.repository.deactivate(cart, updated_by=updated_by)
