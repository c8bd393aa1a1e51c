"""
Shopping cart database model.

This module defines the ShoppingCart model: one row per product a retailer
has staged before ordering. Entries are soft-deactivated, never deleted,
either explicitly by the retailer or when an order consumes them.
"""

import uuid
from decimal import Decimal

from sqlalchemy import CheckConstraint, Index, Integer, Numeric
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from order_management.database.base import (
    ActiveFlagMixin,
    AuditMixin,
    Base,
    IntEnumType,
)
from order_management.services.orders.enums import CartStatus


class ShoppingCart(Base, AuditMixin, ActiveFlagMixin):
    """
    Shopping cart entry staged by a retailer.

    Attributes:
        cart_id: Unique cart entry identifier (UUID)
        retailer_id: Retailer who staged the item
        product_id: Staged product
        manufacturer_id: Manufacturer of the product
        order_quantity: Quantity the retailer intends to order
        product_price: Unit price shown when the item was staged
        status: Save while staged, Converted once ordered
    """

    __tablename__ = "shopping_carts"

    cart_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique cart entry identifier",
    )

    retailer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        index=True,
        comment="Retailer who staged the item",
    )

    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        comment="Staged product",
    )

    manufacturer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        comment="Manufacturer of the product",
    )

    order_quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Quantity to order",
    )

    product_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Unit price when staged",
    )

    status: Mapped[CartStatus] = mapped_column(
        IntEnumType(CartStatus),
        nullable=False,
        default=CartStatus.SAVE,
        comment="Save or Converted",
    )

    __table_args__ = (
        CheckConstraint(
            "order_quantity > 0", name="ck_shopping_carts_quantity_positive"
        ),
        CheckConstraint(
            "product_price >= 0", name="ck_shopping_carts_price_non_negative"
        ),
        Index("ix_shopping_carts_retailer_active", "retailer_id", "is_active"),
        {"comment": "Retailer shopping cart entries"},
    )
