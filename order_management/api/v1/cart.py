"""
Shopping cart API endpoints.

Retailers stage products here before placing an order; removing an entry
deactivates it.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from order_management.api.deps import CartServiceDep
from order_management.core.logging import get_logger
from order_management.schemas.cart import CartItemCreateRequest, CartItemResponse
from order_management.schemas.common import ApiResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/cart", tags=["cart"])


@router.post(
    "",
    response_model=ApiResponse[CartItemResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Add cart item",
)
async def add_cart_item(
    request: CartItemCreateRequest,
    cart_service: CartServiceDep,
) -> ApiResponse[CartItemResponse]:
    cart = await cart_service.add_item(
        retailer_id=request.retailer_id,
        product_id=request.product_id,
        manufacturer_id=request.manufacturer_id,
        order_quantity=request.order_quantity,
        product_price=request.product_price,
        created_by=request.created_by,
    )
    return ApiResponse.success(
        CartItemResponse.from_cart(cart), message="Item added to cart"
    )


@router.get(
    "/retailer/{retailer_id}",
    response_model=ApiResponse[list[CartItemResponse]],
    summary="List a retailer's cart",
)
async def get_retailer_cart(
    retailer_id: UUID,
    cart_service: CartServiceDep,
) -> ApiResponse[list[CartItemResponse]]:
    items = await cart_service.get_retailer_items(retailer_id)
    message = "Cart retrieved successfully" if items else "Cart is empty"
    return ApiResponse.success(
        [CartItemResponse.from_cart(item) for item in items], message=message
    )


@router.get(
    "/{cart_id}",
    response_model=ApiResponse[CartItemResponse],
    summary="Get cart item",
)
async def get_cart_item(
    cart_id: UUID,
    cart_service: CartServiceDep,
) -> ApiResponse[CartItemResponse]:
    cart = await cart_service.get_item(cart_id)
    return ApiResponse.success(
        CartItemResponse.from_cart(cart), message="Cart item retrieved successfully"
    )


@router.delete(
    "/{cart_id}",
    response_model=ApiResponse[CartItemResponse],
    summary="Remove cart item",
)
async def remove_cart_item(
    cart_id: UUID,
    cart_service: CartServiceDep,
    updated_by: Optional[UUID] = Query(None, alias="updatedBy"),
) -> ApiResponse[CartItemResponse]:
    logger.info("Remove cart item request", cart_id=str(cart_id))
    cart = await cart_service.remove_item(cart_id, updated_by=updated_by)
    return ApiResponse.success(
        CartItemResponse.from_cart(cart), message="Item removed from cart"
    )
