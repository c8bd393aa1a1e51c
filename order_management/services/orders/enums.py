"""Order, payment and cart enums with display-name conversions.

Statuses are stored as integers. Clients send and receive display names
("Submitted", "In Transit", ...), so each enum comes with an explicit pair
of pure conversion functions instead of attribute lookups at mapping time.
"""

from enum import IntEnum
from typing import Dict, Optional, Set, Type, TypeVar

E = TypeVar("E", bound=IntEnum)


class OrderStatus(IntEnum):
    """Order lifecycle status, shared by orders and their line items.

    Decision transitions for a line item:
    - NEW, SAVE, SUBMITTED -> ACCEPTED, REJECTED
    - ACCEPTED -> ACCEPTED (no-op), REJECTED (stock is given back)
    - REJECTED -> REJECTED (no-op)
    """

    NEW = 1
    SAVE = 2
    SUBMITTED = 3
    ACCEPTED = 4
    REJECTED = 5
    IN_TRANSIT = 6
    DELIVERED = 7
    CANCELLED = 8

    @property
    def display_name(self) -> str:
        """Human-readable name used on the wire."""
        return ORDER_STATUS_DISPLAY_NAMES[self]

    def is_decidable(self) -> bool:
        """Check if an order in this status may receive accept/reject decisions.

        Returns:
            True for orders that are not rejected, shipped or closed
        """
        return self in DECIDABLE_ORDER_STATUSES


class PaymentMode(IntEnum):
    """How the retailer pays for an order."""

    CASH = 1
    CARD = 2
    BANK_TRANSFER = 3
    UPI = 4

    @property
    def display_name(self) -> str:
        return PAYMENT_MODE_DISPLAY_NAMES[self]


class CartStatus(IntEnum):
    """Shopping cart entry status."""

    SAVE = 1
    CONVERTED = 2

    @property
    def display_name(self) -> str:
        return CART_STATUS_DISPLAY_NAMES[self]


ORDER_STATUS_DISPLAY_NAMES: Dict[OrderStatus, str] = {
    OrderStatus.NEW: "New",
    OrderStatus.SAVE: "Save",
    OrderStatus.SUBMITTED: "Submitted",
    OrderStatus.ACCEPTED: "Accepted",
    OrderStatus.REJECTED: "Rejected",
    OrderStatus.IN_TRANSIT: "In Transit",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}

PAYMENT_MODE_DISPLAY_NAMES: Dict[PaymentMode, str] = {
    PaymentMode.CASH: "Cash",
    PaymentMode.CARD: "Card",
    PaymentMode.BANK_TRANSFER: "Bank Transfer",
    PaymentMode.UPI: "UPI",
}

CART_STATUS_DISPLAY_NAMES: Dict[CartStatus, str] = {
    CartStatus.SAVE: "Save",
    CartStatus.CONVERTED: "Converted",
}

DECIDABLE_ORDER_STATUSES: Set[OrderStatus] = {
    OrderStatus.NEW,
    OrderStatus.SAVE,
    OrderStatus.SUBMITTED,
    OrderStatus.ACCEPTED,
}

LINE_DECISION_TRANSITIONS: Dict[OrderStatus, Set[OrderStatus]] = {
    OrderStatus.NEW: {OrderStatus.ACCEPTED, OrderStatus.REJECTED},
    OrderStatus.SAVE: {OrderStatus.ACCEPTED, OrderStatus.REJECTED},
    OrderStatus.SUBMITTED: {OrderStatus.ACCEPTED, OrderStatus.REJECTED},
    OrderStatus.ACCEPTED: {OrderStatus.ACCEPTED, OrderStatus.REJECTED},
    OrderStatus.REJECTED: {OrderStatus.REJECTED},
}


def _normalize(name: str) -> str:
    return " ".join(name.replace("_", " ").split()).casefold()


def _lookup(
    enum_cls: Type[E],
    names: Dict[E, str],
    name: Optional[str],
) -> Optional[E]:
    if name is None:
        return None
    wanted = _normalize(str(name))
    if not wanted:
        return None
    for member, display in names.items():
        if _normalize(display) == wanted or _normalize(member.name) == wanted:
            return member
    return None


def status_to_display_name(status: OrderStatus) -> str:
    """Convert an order status to its display name.

    Args:
        status: Order status, or its integer value

    Returns:
        Display name such as "Submitted"

    Raises:
        ValueError: If the value is not an order status
    """
    return ORDER_STATUS_DISPLAY_NAMES[OrderStatus(status)]


def display_name_to_status(
    name: Optional[str],
    fallback: Optional[OrderStatus] = OrderStatus.SUBMITTED,
) -> Optional[OrderStatus]:
    """Convert a display name to an order status.

    Matching ignores case, surrounding whitespace and underscores, and also
    accepts member names ("IN_TRANSIT").

    Args:
        name: Display name sent by a client
        fallback: Value returned for a missing or unknown name. Defaults to
            SUBMITTED; pass None to detect unknown names.

    Returns:
        Matching OrderStatus, or ``fallback``
    """
    status = _lookup(OrderStatus, ORDER_STATUS_DISPLAY_NAMES, name)
    return status if status is not None else fallback


def payment_mode_to_display_name(mode: PaymentMode) -> str:
    """Convert a payment mode to its display name."""
    return PAYMENT_MODE_DISPLAY_NAMES[PaymentMode(mode)]


def display_name_to_payment_mode(
    name: Optional[str],
    fallback: Optional[PaymentMode] = PaymentMode.CASH,
) -> Optional[PaymentMode]:
    """Convert a display name to a payment mode, or return ``fallback``."""
    mode = _lookup(PaymentMode, PAYMENT_MODE_DISPLAY_NAMES, name)
    return mode if mode is not None else fallback


def cart_status_to_display_name(status: CartStatus) -> str:
    """Convert a cart status to its display name."""
    return CART_STATUS_DISPLAY_NAMES[CartStatus(status)]


def display_name_to_cart_status(
    name: Optional[str],
    fallback: Optional[CartStatus] = CartStatus.SAVE,
) -> Optional[CartStatus]:
    """Convert a display name to a cart status, or return ``fallback``."""
    status = _lookup(CartStatus, CART_STATUS_DISPLAY_NAMES, name)
    return status if status is not None else fallback


def validate_line_decision(current: OrderStatus, new: OrderStatus) -> bool:
    """Validate if a line item may move from ``current`` to ``new``.

    Args:
        current: Current line status
        new: Status the decision would set

    Returns:
        True if the decision is allowed
    """
    return new in LINE_DECISION_TRANSITIONS.get(current, set())
