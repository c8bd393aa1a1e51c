"""
Database package initialization.

- base: declarative base, column mixins and the integer enum column type
- connection: async engine, session factory and FastAPI session dependency
- models: ORM models for orders, order details and shopping carts
"""

__all__ = []
