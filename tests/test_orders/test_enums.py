"""
Test suite for status and payment mode conversions and decision transitions.
"""

import pytest

from order_management.services.orders.enums import (
    CartStatus,
    OrderStatus,
    PaymentMode,
    cart_status_to_display_name,
    display_name_to_cart_status,
    display_name_to_payment_mode,
    display_name_to_status,
    payment_mode_to_display_name,
    status_to_display_name,
    validate_line_decision,
)


class TestOrderStatusNames:
    """Test suite for order status display names."""

    @pytest.mark.parametrize(
        "status,name",
        [
            (OrderStatus.NEW, "New"),
            (OrderStatus.SAVE, "Save"),
            (OrderStatus.SUBMITTED, "Submitted"),
            (OrderStatus.ACCEPTED, "Accepted"),
            (OrderStatus.REJECTED, "Rejected"),
            (OrderStatus.IN_TRANSIT, "In Transit"),
            (OrderStatus.DELIVERED, "Delivered"),
            (OrderStatus.CANCELLED, "Cancelled"),
        ],
    )
    def test_every_status_has_a_name(self, status, name):
        assert status_to_display_name(status) == name
        assert display_name_to_status(name) == status

    def test_integer_values_are_stable(self):
        assert [status.value for status in OrderStatus] == [1, 2, 3, 4, 5, 6, 7, 8]

    def test_name_matching_is_lenient(self):
        """
        Verifies:
        - Case, surrounding whitespace and member names are accepted
        """
        assert display_name_to_status("  in transit ") == OrderStatus.IN_TRANSIT
        assert display_name_to_status("IN_TRANSIT") == OrderStatus.IN_TRANSIT
        assert display_name_to_status("accepted") == OrderStatus.ACCEPTED

    def test_unknown_name_falls_back(self):
        """
        Verifies:
        - Unknown or missing names give Submitted unless a fallback is passed
        """
        assert display_name_to_status("Shipped") == OrderStatus.SUBMITTED
        assert display_name_to_status(None) == OrderStatus.SUBMITTED
        assert display_name_to_status("Shipped", fallback=None) is None

    def test_integer_input_to_display_name(self):
        assert status_to_display_name(6) == "In Transit"

    def test_out_of_range_integer(self):
        with pytest.raises(ValueError):
            status_to_display_name(42)


class TestPaymentAndCartNames:
    """Test suite for payment mode and cart status display names."""

    def test_payment_modes(self):
        assert payment_mode_to_display_name(PaymentMode.BANK_TRANSFER) == "Bank Transfer"
        assert display_name_to_payment_mode("upi") == PaymentMode.UPI
        assert display_name_to_payment_mode("Barter") == PaymentMode.CASH
        assert display_name_to_payment_mode("Barter", fallback=None) is None

    def test_cart_statuses(self):
        assert cart_status_to_display_name(CartStatus.CONVERTED) == "Converted"
        assert display_name_to_cart_status("save") == CartStatus.SAVE
        assert display_name_to_cart_status(None) == CartStatus.SAVE


class TestDecisionTransitions:
    """Test suite for line decision transitions and decidable orders."""

    @pytest.mark.parametrize(
        "current", [OrderStatus.NEW, OrderStatus.SAVE, OrderStatus.SUBMITTED]
    )
    def test_open_lines_can_be_decided(self, current):
        assert validate_line_decision(current, OrderStatus.ACCEPTED)
        assert validate_line_decision(current, OrderStatus.REJECTED)

    def test_accepted_line(self):
        assert validate_line_decision(OrderStatus.ACCEPTED, OrderStatus.ACCEPTED)
        assert validate_line_decision(OrderStatus.ACCEPTED, OrderStatus.REJECTED)

    def test_rejected_line_stays_rejected(self):
        assert not validate_line_decision(OrderStatus.REJECTED, OrderStatus.ACCEPTED)
        assert validate_line_decision(OrderStatus.REJECTED, OrderStatus.REJECTED)

    @pytest.mark.parametrize(
        "current",
        [OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED, OrderStatus.CANCELLED],
    )
    def test_closed_lines_cannot_be_decided(self, current):
        assert not validate_line_decision(current, OrderStatus.ACCEPTED)
        assert not validate_line_decision(current, OrderStatus.REJECTED)

    def test_decidable_orders(self):
        decidable = {status for status in OrderStatus if status.is_decidable()}

        assert decidable == {
            OrderStatus.NEW,
            OrderStatus.SAVE,
            OrderStatus.SUBMITTED,
            OrderStatus.ACCEPTED,
        }
