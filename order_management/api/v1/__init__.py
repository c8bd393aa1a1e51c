"""
API v1 package initialization.

This module exposes the v1 routers of the order management API.
"""

from order_management.api.v1.cart import router as cart_router
from order_management.api.v1.orders import router as orders_router

__all__ = ["cart_router", "orders_router"]
