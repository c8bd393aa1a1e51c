"""
Order and order detail models.

This module defines the Order model for retailer purchase orders placed with a
manufacturer, and the OrderDetail model for the line items each order owns.
Statuses are stored as integers and exposed as ``OrderStatus`` members. Both
tables carry a ``version`` counter used for optimistic concurrency control.
"""

import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from order_management.database.base import (
    ActiveFlagMixin,
    AuditMixin,
    Base,
    IntEnumType,
)
from order_management.services.orders.enums import OrderStatus, PaymentMode


class Order(Base, AuditMixin, ActiveFlagMixin):
    """
    Retailer purchase order.

    Attributes:
        order_id: Unique order identifier (UUID)
        retailer_id: Retailer who placed the order
        manufacturer_id: Manufacturer the order is placed with
        delivery_personnel_id: Assigned delivery person, if any
        order_status: Aggregate order status
        total_price: Sum of quantity x price over all lines, fixed at creation
        payment_mode: How the retailer pays
        payment_currency: ISO 4217 currency of the payment
        shipping_cost: Shipping charge
        shipping_currency: ISO 4217 currency of the shipping charge
        shipping_address: Free-form delivery address
        version: Optimistic concurrency counter
        details: Line items owned by the order
    """

    __tablename__ = "orders"

    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique order identifier",
    )

    retailer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        index=True,
        comment="Retailer who placed the order",
    )

    manufacturer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        index=True,
        comment="Manufacturer the order is placed with",
    )

    delivery_personnel_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
        index=True,
        comment="Assigned delivery personnel",
    )

    order_status: Mapped[OrderStatus] = mapped_column(
        IntEnumType(OrderStatus),
        nullable=False,
        default=OrderStatus.NEW,
        index=True,
        comment="Current order status",
    )

    total_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Sum of quantity x price over all lines",
    )

    payment_mode: Mapped[PaymentMode] = mapped_column(
        IntEnumType(PaymentMode),
        nullable=False,
        default=PaymentMode.CASH,
        comment="Payment mode",
    )

    payment_currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        comment="Payment currency code",
    )

    shipping_cost: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        default=Decimal("0.00"),
        comment="Shipping cost",
    )

    shipping_currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        comment="Shipping currency code",
    )

    shipping_address: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        comment="Delivery address",
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Optimistic concurrency counter",
    )

    details: Mapped[list["OrderDetail"]] = relationship(
        "OrderDetail",
        back_populates="order",
        lazy="selectin",
        order_by="OrderDetail.created_on",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("total_price >= 0", name="ck_orders_total_price_non_negative"),
        CheckConstraint("shipping_cost >= 0", name="ck_orders_shipping_cost_non_negative"),
        Index("ix_orders_retailer_status", "retailer_id", "order_status"),
        Index("ix_orders_created_on", "created_on"),
        {"comment": "Retailer purchase orders"},
    )


class OrderDetail(Base, AuditMixin, ActiveFlagMixin):
    """
    Line item of an order.

    Created only together with its order and never added afterwards. After
    creation only ``order_item_status`` changes.
    """

    __tablename__ = "order_details"

    order_detail_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique line item identifier",
    )

    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.order_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Owning order",
    )

    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        index=True,
        comment="Ordered product",
    )

    manufacturer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        index=True,
        comment="Manufacturer of the product",
    )

    quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Ordered quantity",
    )

    product_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Unit price at time of order",
    )

    order_item_status: Mapped[OrderStatus] = mapped_column(
        IntEnumType(OrderStatus),
        nullable=False,
        default=OrderStatus.SUBMITTED,
        index=True,
        comment="Line item status",
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Optimistic concurrency counter",
    )

    order: Mapped["Order"] = relationship(
        "Order",
        back_populates="details",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_details_quantity_positive"),
        CheckConstraint(
            "product_price >= 0", name="ck_order_details_price_non_negative"
        ),
        {"comment": "Order line items"},
    )

    @property
    def line_total(self) -> Decimal:
        """Quantity times unit price."""
        return Decimal(self.quantity) * Decimal(self.product_price)
