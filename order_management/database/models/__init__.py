"""
Database models package initialization.

Models are imported here so they register with the Base metadata for
Alembic autogeneration and relationship resolution.
"""

from order_management.database.base import (
    ActiveFlagMixin,
    AuditMixin,
    Base,
    IntEnumType,
)
from order_management.database.models.cart import ShoppingCart
from order_management.database.models.order import Order, OrderDetail

__all__ = [
    "ActiveFlagMixin",
    "AuditMixin",
    "Base",
    "IntEnumType",
    "Order",
    "OrderDetail",
    "ShoppingCart",
]
