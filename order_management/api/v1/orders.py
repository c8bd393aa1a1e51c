"""
Order management API endpoints.

This module implements the FastAPI router for the order lifecycle: order
creation, status and delivery updates, accept/reject decisions, single-order
and per-manufacturer reads, and the filtered, paginated order search. Domain
errors raised by the services are turned into the response envelope by the
application's exception handlers.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from order_management.api.deps import DecisionWorkflowDep, OrderServiceDep
from order_management.core.logging import get_logger
from order_management.schemas.common import ApiResponse
from order_management.schemas.orders import (
    DecisionResultResponse,
    OrderCreateRequest,
    OrderDecisionRequest,
    OrderResponse,
    OrderSearchResponse,
    OrderUpdateRequest,
)
from order_management.services.orders.enums import status_to_display_name

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "",
    response_model=ApiResponse[OrderResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create order",
    description="Create an order with its lines from a retailer's cart",
)
async def create_order(
    request: OrderCreateRequest,
    order_service: OrderServiceDep,
) -> ApiResponse[OrderResponse]:
    logger.info(
        "Create order request",
        retailer_id=str(request.retailer_id),
        line_count=len(request.order_details),
    )

    order = await order_service.create_order(
        retailer_id=request.retailer_id,
        manufacturer_id=request.manufacturer_id,
        lines=request.order_details,
        payment_currency=request.payment_currency,
        shipping_currency=request.shipping_currency,
        shipping_cost=request.shipping_cost,
        shipping_address=request.shipping_address,
        payment_mode=request.payment_mode,
        created_by=request.created_by,
    )
    return ApiResponse.success(
        OrderResponse.from_order(order), message="Order created successfully"
    )


@router.get(
    "",
    response_model=ApiResponse[OrderSearchResponse],
    summary="Search orders",
    description="Filter orders by ids, statuses and names with pagination",
)
async def search_orders(
    order_service: OrderServiceDep,
    order_id: Optional[UUID] = Query(None, alias="orderId"),
    retailer_id: Optional[UUID] = Query(None, alias="retailerId"),
    manufacturer_id: Optional[UUID] = Query(None, alias="manufacturerId"),
    delivery_personnel_id: Optional[UUID] = Query(None, alias="deliveryPersonnelId"),
    order_status: Optional[str] = Query(None, alias="orderStatus"),
    order_item_status: Optional[str] = Query(None, alias="orderItemStatus"),
    retailer_name: Optional[str] = Query(None, alias="retailerName"),
    manufacturer_name: Optional[str] = Query(None, alias="manufacturerName"),
    product_name: Optional[str] = Query(None, alias="productName"),
    page_number: int = Query(1, alias="pageNumber"),
    page_size: Optional[int] = Query(None, alias="pageSize"),
) -> ApiResponse[OrderSearchResponse]:
    page = await order_service.search_orders(
        order_id=order_id,
        retailer_id=retailer_id,
        manufacturer_id=manufacturer_id,
        delivery_personnel_id=delivery_personnel_id,
        order_status=order_status,
        order_item_status=order_item_status,
        retailer_name=retailer_name,
        manufacturer_name=manufacturer_name,
        product_name=product_name,
        page_number=page_number,
        page_size=page_size,
    )
    message = "Orders retrieved successfully" if page.orders else "No orders found"
    return ApiResponse.success(page, message=message)


@router.get(
    "/manufacturer/{manufacturer_id}",
    response_model=ApiResponse[list[OrderResponse]],
    summary="List manufacturer orders",
)
async def get_orders_by_manufacturer(
    manufacturer_id: UUID,
    order_service: OrderServiceDep,
) -> ApiResponse[list[OrderResponse]]:
    orders = await order_service.get_orders_by_manufacturer(manufacturer_id)
    message = "Orders retrieved successfully" if orders else "No orders found"
    return ApiResponse.success(
        [OrderResponse.from_order(order) for order in orders], message=message
    )


@router.get(
    "/{order_id}",
    response_model=ApiResponse[OrderResponse],
    summary="Get order",
)
async def get_order(
    order_id: UUID,
    order_service: OrderServiceDep,
) -> ApiResponse[OrderResponse]:
    order = await order_service.get_order(order_id)
    return ApiResponse.success(
        OrderResponse.from_order(order), message="Order retrieved successfully"
    )


@router.put(
    "/{order_id}",
    response_model=ApiResponse[OrderResponse],
    summary="Update order",
    description="Change the order status and delivery personnel assignment",
)
async def update_order(
    order_id: UUID,
    request: OrderUpdateRequest,
    order_service: OrderServiceDep,
) -> ApiResponse[OrderResponse]:
    logger.info(
        "Update order request",
        order_id=str(order_id),
        order_status=request.order_status,
    )

    order = await order_service.update_order(
        order_id,
        order_status=request.order_status,
        delivery_personnel_id=request.delivery_personnel_id,
        updated_by=request.updated_by,
    )
    return ApiResponse.success(
        OrderResponse.from_order(order), message="Order updated successfully"
    )


@router.put(
    "/{order_id}/decisions",
    response_model=ApiResponse[DecisionResultResponse],
    summary="Accept or reject order lines",
    description=(
        "Accepting a line takes its quantity out of stock; rejecting any line "
        "rejects the order and gives back the stock of every accepted line"
    ),
)
async def decide_order(
    order_id: UUID,
    request: OrderDecisionRequest,
    workflow: DecisionWorkflowDep,
) -> ApiResponse[DecisionResultResponse]:
    logger.info(
        "Order decision request",
        order_id=str(order_id),
        decision_count=len(request.decisions),
    )

    result = await workflow.process(
        order_id,
        [(decision.order_detail_id, decision.is_accepted) for decision in request.decisions],
        updated_by=request.updated_by,
    )
    order_status = status_to_display_name(result.order_status)
    return ApiResponse.success(
        DecisionResultResponse(
            order_id=result.order_id,
            order_status=order_status,
            accepted_ids=result.accepted_ids,
            rejected_ids=result.rejected_ids,
            restored_ids=result.restored_ids,
            restore_failures=result.restore_failures,
        ),
        message=f"Order {order_status.lower()}",
    )
