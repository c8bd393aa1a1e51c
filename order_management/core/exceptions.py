"""
Error taxonomy shared by the order lifecycle engine and its collaborators.

Every error carries a stable ``code``, the HTTP status the API layer reports
it with, a human-readable message and free-form context for structured logs.
"""

from typing import Any


class OrderManagementError(Exception):
    """Base exception for order management errors."""

    code = "ERROR"
    status_code = 500

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(OrderManagementError):
    """Raised when caller input is missing or malformed."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(OrderManagementError):
    """Raised when an order, line, product, retailer or cart id is unknown."""

    code = "NOT_FOUND"
    status_code = 404


class ConflictError(OrderManagementError):
    """Raised when a business rule blocks the operation (e.g. insufficient stock)."""

    code = "CONFLICT"
    status_code = 400


class DependencyError(OrderManagementError):
    """Raised when a remote collaborator fails or cannot be reached."""

    code = "DEPENDENCY_ERROR"
    status_code = 500


class PersistenceError(OrderManagementError):
    """Raised when a database read or write fails."""

    code = "PERSISTENCE_ERROR"
    status_code = 500


class InsufficientStockError(ConflictError):
    """Raised when a product cannot cover the quantity of an accepted line."""

    def __init__(self, product_id: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}",
            product_id=product_id,
            requested=requested,
            available=available,
        )
