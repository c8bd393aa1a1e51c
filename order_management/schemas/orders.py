"""
Order Pydantic schemas for API request/response validation.

Requests carry statuses and payment modes as display names ("Submitted",
"Bank Transfer"); responses render the stored integer enums back to display
names. Product, retailer and manufacturer names are only filled in by the
search endpoint.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from order_management.database.models.order import Order, OrderDetail
from order_management.schemas.common import CamelModel
from order_management.services.orders.enums import (
    payment_mode_to_display_name,
    status_to_display_name,
)


class OrderLineCreate(CamelModel):
    """One line of a new order."""

    product_id: UUID = Field(..., description="Ordered product")
    quantity: int = Field(..., description="Ordered quantity, must be positive")
    product_price: Decimal = Field(..., description="Unit price, must not be negative")
    manufacturer_id: Optional[UUID] = Field(
        None, description="Manufacturer of the product, defaults to the order's"
    )
    cart_id: Optional[UUID] = Field(
        None, description="Cart entry consumed by this line"
    )


class OrderCreateRequest(CamelModel):
    """Request schema for creating an order."""

    retailer_id: UUID = Field(..., description="Retailer placing the order")
    manufacturer_id: UUID = Field(..., description="Manufacturer the order is placed with")
    payment_mode: Optional[str] = Field(
        None, description="Payment mode display name, defaults to Cash"
    )
    payment_currency: str = Field(..., description="ISO 4217 payment currency")
    shipping_cost: Decimal = Field(default=Decimal("0.00"), description="Shipping charge")
    shipping_currency: str = Field(..., description="ISO 4217 shipping currency")
    shipping_address: Optional[str] = Field(None, max_length=500, description="Delivery address")
    created_by: Optional[UUID] = Field(None, description="Actor, defaults to the retailer")
    order_details: list[OrderLineCreate] = Field(
        default_factory=list, description="Order lines"
    )


class OrderUpdateRequest(CamelModel):
    """Request schema for changing an order's status and delivery assignment."""

    order_status: Optional[str] = Field(None, description="New status display name")
    delivery_personnel_id: Optional[str] = Field(
        None, description="Delivery personnel to assign"
    )
    updated_by: Optional[UUID] = Field(None, description="Actor performing the update")


class LineDecision(CamelModel):
    """Accept or reject decision for one order line."""

    order_detail_id: UUID = Field(..., description="Line being decided")
    is_accepted: bool = Field(..., description="True to accept, False to reject")


class OrderDecisionRequest(CamelModel):
    """Request schema for accepting or rejecting order lines."""

    decisions: list[LineDecision] = Field(..., min_length=1, description="Line decisions")
    updated_by: Optional[UUID] = Field(None, description="Actor making the decisions")

    @field_validator("decisions")
    @classmethod
    def validate_unique_lines(cls, v: list[LineDecision]) -> list[LineDecision]:
        """Reject requests deciding the same line twice."""
        ids = [decision.order_detail_id for decision in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Each order line may only be decided once per request")
        return v


class OrderDetailResponse(CamelModel):
    """Order line as returned by the API."""

    order_detail_id: UUID
    order_id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    manufacturer_id: UUID
    manufacturer_name: Optional[str] = None
    quantity: int
    product_price: Decimal
    order_item_status: str

    @classmethod
    def from_detail(
        cls,
        detail: OrderDetail,
        product_name: Optional[str] = None,
        manufacturer_name: Optional[str] = None,
    ) -> "OrderDetailResponse":
        return cls(
            order_detail_id=detail.order_detail_id,
            order_id=detail.order_id,
            product_id=detail.product_id,
            product_name=product_name,
            manufacturer_id=detail.manufacturer_id,
            manufacturer_name=manufacturer_name,
            quantity=detail.quantity,
            product_price=detail.product_price,
            order_item_status=status_to_display_name(detail.order_item_status),
        )


class OrderResponse(CamelModel):
    """Order with its lines as returned by the API."""

    order_id: UUID
    retailer_id: UUID
    retailer_name: Optional[str] = None
    manufacturer_id: UUID
    delivery_personnel_id: Optional[UUID] = None
    order_status: str
    total_price: Decimal
    payment_mode: str
    payment_currency: str
    shipping_cost: Decimal
    shipping_currency: str
    shipping_address: Optional[str] = None
    is_active: bool
    created_on: Optional[datetime] = None
    created_by: Optional[UUID] = None
    updated_on: Optional[datetime] = None
    updated_by: Optional[UUID] = None
    order_details: list[OrderDetailResponse] = Field(default_factory=list)

    @classmethod
    def from_order(
        cls,
        order: Order,
        retailer_name: Optional[str] = None,
        product_names: Optional[dict[UUID, str]] = None,
        manufacturer_names: Optional[dict[UUID, str]] = None,
    ) -> "OrderResponse":
        """
        Build the response for an order.

        Name mappings are only passed by the search; without them the name
        fields stay empty.
        """
        details = [
            OrderDetailResponse.from_detail(
                detail,
                product_name=(
                    product_names.get(detail.product_id)
                    if product_names is not None
                    else None
                ),
                manufacturer_name=(
                    manufacturer_names.get(detail.manufacturer_id)
                    if manufacturer_names is not None
                    else None
                ),
            )
            for detail in order.details
        ]
        return cls(
            order_id=order.order_id,
            retailer_id=order.retailer_id,
            retailer_name=retailer_name,
            manufacturer_id=order.manufacturer_id,
            delivery_personnel_id=order.delivery_personnel_id,
            order_status=status_to_display_name(order.order_status),
            total_price=order.total_price,
            payment_mode=payment_mode_to_display_name(order.payment_mode),
            payment_currency=order.payment_currency,
            shipping_cost=order.shipping_cost,
            shipping_currency=order.shipping_currency,
            shipping_address=order.shipping_address,
            is_active=order.is_active,
            created_on=order.created_on,
            created_by=order.created_by,
            updated_on=order.updated_on,
            updated_by=order.updated_by,
            order_details=details,
        )


class DecisionResultResponse(CamelModel):
    """Outcome of an accept/reject request."""

    order_id: UUID
    order_status: str
    accepted_ids: list[UUID] = Field(default_factory=list)
    rejected_ids: list[UUID] = Field(default_factory=list)
    restored_ids: list[UUID] = Field(default_factory=list)
    restore_failures: list[UUID] = Field(default_factory=list)


class OrderSearchResponse(CamelModel):
    """One page of the order search."""

    orders: list[OrderResponse] = Field(default_factory=list)
    page_number: int
    page_size: int
    total_records: int
    total_pages: int
