"""
Shopping cart Pydantic schemas for API request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import Field

from order_management.database.models.cart import ShoppingCart
from order_management.schemas.common import CamelModel
from order_management.services.orders.enums import cart_status_to_display_name


class CartItemCreateRequest(CamelModel):
    """Request schema for staging a product in a retailer's cart."""

    retailer_id: UUID = Field(..., description="Retailer staging the item")
    product_id: UUID = Field(..., description="Product to stage")
    manufacturer_id: UUID = Field(..., description="Manufacturer of the product")
    order_quantity: int = Field(..., description="Quantity to order, must be positive")
    product_price: Decimal = Field(..., description="Unit price, must not be negative")
    created_by: Optional[UUID] = Field(None, description="Actor, defaults to the retailer")


class CartItemResponse(CamelModel):
    """Cart entry as returned by the API."""

    cart_id: UUID
    retailer_id: UUID
    product_id: UUID
    manufacturer_id: UUID
    order_quantity: int
    product_price: Decimal
    status: str
    is_active: bool
    created_on: Optional[datetime] = None
    updated_on: Optional[datetime] = None

    @classmethod
    def from_cart(cls, cart: ShoppingCart) -> "CartItemResponse":
        return cls(
            cart_id=cart.cart_id,
            retailer_id=cart.retailer_id,
            product_id=cart.product_id,
            manufacturer_id=cart.manufacturer_id,
            order_quantity=cart.order_quantity,
            product_price=cart.product_price,
            status=cart_status_to_display_name(cart.status),
            is_active=cart.is_active,
            created_on=cart.created_on,
            updated_on=cart.updated_on,
        )
