"""
Order service orchestrating order creation, updates and queries.

This module implements the OrderService class. It validates order input,
prices orders, persists an order with its lines in one transaction, consumes
the cart entries the order was built from, and serves the single-order,
per-manufacturer and filtered search reads. Accept/reject decisions live in
``order_management.services.orders.state_machine``.
"""

import math
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from order_management.core.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)
from order_management.core.logging import get_logger
from order_management.database.models.cart import ShoppingCart
from order_management.database.models.order import Order, OrderDetail
from order_management.schemas.orders import (
    OrderLineCreate,
    OrderResponse,
    OrderSearchResponse,
)
from order_management.services.cart.repository import CartRepository
from order_management.services.inventory.client import InventoryClient
from order_management.services.orders.enums import (
    OrderStatus,
    PaymentMode,
    display_name_to_payment_mode,
    display_name_to_status,
)
from order_management.services.orders.repository import (
    OrderRepository,
    build_search_conditions,
)
from order_management.services.users.client import UserDirectoryClient

logger = get_logger(__name__)

CENT = Decimal("0.01")
UNKNOWN_RETAILER = "Unknown Retailer"
UNKNOWN_MANUFACTURER = "Unknown Manufacturer"
UNKNOWN_PRODUCT = "Unknown Product"


def quantize_money(value: Decimal) -> Decimal:
    """Round a monetary amount to cents, half up."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_total_price(lines: Sequence[OrderLineCreate]) -> Decimal:
    """Sum of quantity x unit price over all lines, rounded to cents.

    Unit prices are rounded first, as they are stored on the lines, so the
    total always equals the sum of the stored line totals.
    """
    total = sum(
        (Decimal(line.quantity) * quantize_money(line.product_price) for line in lines),
        Decimal("0"),
    )
    return quantize_money(total)


def parse_status_filter(value: Optional[str], field: str) -> Optional[OrderStatus]:
    """
    Parse a status filter given as display name or integer value.

    Raises:
        ValidationError: If the value names no status
    """
    if value is None or not str(value).strip():
        return None

    text = str(value).strip()
    if text.isdigit():
        try:
            return OrderStatus(int(text))
        except ValueError as e:
            raise ValidationError(f"Unknown {field}: {text}", field=field) from e

    status = display_name_to_status(text, fallback=None)
    if status is None:
        raise ValidationError(f"Unknown {field}: {text}", field=field)
    return status


def _matching_ids(names: dict[uuid.UUID, str], fragment: str) -> set[uuid.UUID]:
    wanted = fragment.casefold()
    return {entity_id for entity_id, name in names.items() if wanted in name.casefold()}


class OrderService:
    """
    Order service for creation, updates and reads.

    Attributes:
        repository: Order repository for data access
        cart_repository: Cart repository used to consume cart entries
        inventory_client: Product service client, used for product names
        user_client: User directory client, used for retailer and
            manufacturer resolution
    """

    def __init__(
        self,
        session: AsyncSession,
        inventory_client: InventoryClient,
        user_client: UserDirectoryClient,
        max_page_size: int = 100,
        default_page_size: int = 10,
        repository: Optional[OrderRepository] = None,
        cart_repository: Optional[CartRepository] = None,
    ):
        """
        Initialize order service.

        Args:
            session: Async database session
            inventory_client: Product service client
            user_client: User directory client
            max_page_size: Largest page size a search may request
            default_page_size: Page size used when a search gives none
            repository: Optional order repository, built from session if omitted
            cart_repository: Optional cart repository, built from session if omitted
        """
        self.repository = repository or OrderRepository(session)
        self.cart_repository = cart_repository or CartRepository(session)
        self.inventory_client = inventory_client
        self.user_client = user_client
        self.max_page_size = max_page_size
        self.default_page_size = default_page_size

    async def create_order(
        self,
        retailer_id: uuid.UUID,
        manufacturer_id: uuid.UUID,
        lines: Sequence[OrderLineCreate],
        payment_currency: str,
        shipping_currency: str,
        shipping_cost: Decimal = Decimal("0.00"),
        shipping_address: Optional[str] = None,
        payment_mode: Optional[str] = None,
        created_by: Optional[uuid.UUID] = None,
    ) -> Order:
        """
        Create an order with its lines from a retailer's cart.

        The order starts as New with every line Submitted. Order and lines are
        committed together; the referenced cart entries are checked before
        the insert and deactivated afterwards. Inventory is not touched.

        Args:
            retailer_id: Retailer placing the order
            manufacturer_id: Manufacturer the order is placed with
            lines: Order lines, at least one
            payment_currency: ISO 4217 payment currency
            shipping_currency: ISO 4217 shipping currency
            shipping_cost: Shipping charge, not negative
            shipping_address: Optional delivery address
            payment_mode: Payment mode display name, Cash when omitted
            created_by: Actor, the retailer when omitted

        Returns:
            Persisted order with lines

        Raises:
            ValidationError: If the input is malformed
            NotFoundError: If the retailer or a referenced cart entry is unknown
            ConflictError: If a referenced cart entry was already ordered
            PersistenceError: If the order cannot be stored
        """
        logger.info(
            "Creating order",
            retailer_id=str(retailer_id),
            manufacturer_id=str(manufacturer_id),
            line_count=len(lines),
        )

        self._validate_order_lines(lines)
        mode = self._resolve_payment_mode(payment_mode)
        payment_currency = self._validate_currency(payment_currency, "payment_currency")
        shipping_currency = self._validate_currency(shipping_currency, "shipping_currency")
        if shipping_cost is None or Decimal(str(shipping_cost)) < 0:
            raise ValidationError(
                "Shipping cost must not be negative", shipping_cost=str(shipping_cost)
            )

        retailers = await self.user_client.get_users_by_ids([retailer_id])
        if retailer_id not in retailers:
            raise NotFoundError(
                f"Retailer {retailer_id} not found", retailer_id=str(retailer_id)
            )

        carts = await self._load_cart_entries(lines)
        actor = created_by or retailer_id
        total_price = calculate_total_price(lines)

        order = Order(
            order_id=uuid.uuid4(),
            retailer_id=retailer_id,
            manufacturer_id=manufacturer_id,
            delivery_personnel_id=None,
            order_status=OrderStatus.NEW,
            total_price=total_price,
            payment_mode=mode,
            payment_currency=payment_currency,
            shipping_cost=quantize_money(shipping_cost),
            shipping_currency=shipping_currency,
            shipping_address=shipping_address,
            is_active=True,
            created_by=actor,
        )
        details = [
            OrderDetail(
                order_detail_id=uuid.uuid4(),
                order_id=order.order_id,
                product_id=line.product_id,
                manufacturer_id=line.manufacturer_id or manufacturer_id,
                quantity=line.quantity,
                product_price=quantize_money(line.product_price),
                order_item_status=OrderStatus.SUBMITTED,
                is_active=True,
                created_by=actor,
            )
            for line in lines
        ]

        order = await self.repository.insert_order_with_details(order, details)

        logger.info(
            "Order created successfully",
            order_id=str(order.order_id),
            total_price=str(total_price),
            line_count=len(details),
        )

        await self._consume_cart_entries(carts, actor)
        return order

    async def update_order(
        self,
        order_id: uuid.UUID,
        order_status: Optional[str],
        delivery_personnel_id: Optional[str] = None,
        updated_by: Optional[uuid.UUID] = None,
    ) -> Order:
        """
        Change an order's status and delivery assignment.

        The status is parsed strictly: a missing or unknown display name is
        rejected instead of falling back to Submitted. When no delivery
        personnel id is given the current assignment is kept.

        Raises:
            ValidationError: If the status or delivery personnel id is malformed
            NotFoundError: If the order does not exist
        """
        if order_status is None or not str(order_status).strip():
            raise ValidationError("Order status is required", order_id=str(order_id))

        status = display_name_to_status(order_status, fallback=None)
        if status is None:
            raise ValidationError(
                f"Unknown order status: {order_status}",
                order_id=str(order_id),
                order_status=order_status,
            )

        personnel_id = self._parse_optional_uuid(
            delivery_personnel_id, "delivery_personnel_id"
        )

        order = await self.repository.get_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found", order_id=str(order_id))

        logger.info(
            "Updating order",
            order_id=str(order_id),
            from_status=order.order_status.display_name,
            to_status=status.display_name,
        )

        return await self.repository.update_mutable_fields(
            order,
            order_status=status,
            delivery_personnel_id=(
                personnel_id if personnel_id is not None else order.delivery_personnel_id
            ),
            updated_by=updated_by,
        )

    async def get_order(self, order_id: uuid.UUID) -> Order:
        """
        Get an order with its lines.

        Raises:
            NotFoundError: If the order does not exist
        """
        order = await self.repository.get_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found", order_id=str(order_id))
        return order

    async def get_orders_by_manufacturer(self, manufacturer_id: uuid.UUID) -> list[Order]:
        """Get all orders placed with a manufacturer, newest first."""
        orders = await self.repository.get_by_manufacturer(manufacturer_id)
        logger.debug(
            "Manufacturer orders retrieved",
            manufacturer_id=str(manufacturer_id),
            count=len(orders),
        )
        return orders

    async def search_orders(
        self,
        order_id: Optional[uuid.UUID] = None,
        retailer_id: Optional[uuid.UUID] = None,
        manufacturer_id: Optional[uuid.UUID] = None,
        delivery_personnel_id: Optional[uuid.UUID] = None,
        order_status: Optional[str] = None,
        order_item_status: Optional[str] = None,
        retailer_name: Optional[str] = None,
        manufacturer_name: Optional[str] = None,
        product_name: Optional[str] = None,
        page_number: int = 1,
        page_size: Optional[int] = None,
    ) -> OrderSearchResponse:
        """
        Search orders with filters and pagination.

        Id and status filters run in SQL. Name filters resolve the distinct
        retailer, manufacturer and product ids of the filtered orders to names,
        keep the ids whose name contains the fragment (case-insensitive) and
        filter on those ids.

        Raises:
            ValidationError: If a status filter or the paging is invalid
        """
        page_size = self.default_page_size if page_size is None else page_size
        if page_number < 1:
            raise ValidationError("Page number must be at least 1", page_number=page_number)
        if page_size < 1 or page_size > self.max_page_size:
            raise ValidationError(
                f"Page size must be between 1 and {self.max_page_size}",
                page_size=page_size,
            )

        filters = dict(
            order_id=order_id,
            retailer_id=retailer_id,
            manufacturer_id=manufacturer_id,
            delivery_personnel_id=delivery_personnel_id,
            order_status=parse_status_filter(order_status, "order_status"),
            order_item_status=parse_status_filter(order_item_status, "order_item_status"),
        )
        conditions = build_search_conditions(**filters)

        retailer_name = (retailer_name or "").strip()
        manufacturer_name = (manufacturer_name or "").strip()
        product_name = (product_name or "").strip()

        if retailer_name or manufacturer_name or product_name:
            retailer_ids, manufacturer_ids, product_ids = (
                await self.repository.get_related_ids(conditions)
            )
            name_filters: dict[str, set[uuid.UUID]] = {}
            if retailer_name or manufacturer_name:
                user_names = await self._user_names(retailer_ids | manufacturer_ids)
                if retailer_name:
                    name_filters["retailer_ids"] = _matching_ids(
                        {i: n for i, n in user_names.items() if i in retailer_ids},
                        retailer_name,
                    )
                if manufacturer_name:
                    name_filters["manufacturer_ids"] = _matching_ids(
                        {i: n for i, n in user_names.items() if i in manufacturer_ids},
                        manufacturer_name,
                    )
            if product_name:
                name_filters["product_ids"] = _matching_ids(
                    await self._product_names(product_ids), product_name
                )
            conditions = build_search_conditions(**filters, **name_filters)

        orders, total = await self.repository.search(
            conditions,
            offset=(page_number - 1) * page_size,
            limit=page_size,
        )

        user_ids = {order.retailer_id for order in orders} | {
            detail.manufacturer_id for order in orders for detail in order.details
        }
        product_ids = {detail.product_id for order in orders for detail in order.details}
        user_names = await self._user_names(user_ids)
        product_names = await self._product_names(product_ids)

        manufacturer_names = {
            detail.manufacturer_id: user_names.get(detail.manufacturer_id, UNKNOWN_MANUFACTURER)
            for order in orders
            for detail in order.details
        }
        product_display = {
            product_id: product_names.get(product_id, UNKNOWN_PRODUCT)
            for product_id in product_ids
        }

        logger.info(
            "Order search completed",
            total_records=total,
            page_number=page_number,
            page_size=page_size,
            returned=len(orders),
        )

        return OrderSearchResponse(
            orders=[
                OrderResponse.from_order(
                    order,
                    retailer_name=user_names.get(order.retailer_id, UNKNOWN_RETAILER),
                    product_names=product_display,
                    manufacturer_names=manufacturer_names,
                )
                for order in orders
            ],
            page_number=page_number,
            page_size=page_size,
            total_records=total,
            total_pages=math.ceil(total / page_size),
        )

    async def _load_cart_entries(
        self, lines: Sequence[OrderLineCreate]
    ) -> list[ShoppingCart]:
        """
        Load the cart entries referenced by order lines, each once.

        Raises:
            NotFoundError: If an entry does not exist
            ConflictError: If an entry was already converted or removed
        """
        cart_ids = list(dict.fromkeys(line.cart_id for line in lines if line.cart_id))
        carts: list[ShoppingCart] = []
        for cart_id in cart_ids:
            cart = await self.cart_repository.get_by_id(cart_id)
            if cart is None:
                logger.warning("Cart entry for order line not found", cart_id=str(cart_id))
                raise NotFoundError(
                    f"Cart entry {cart_id} not found", cart_id=str(cart_id)
                )
            if not cart.is_active:
                logger.warning(
                    "Cart entry for order line is no longer active",
                    cart_id=str(cart_id),
                    cart_status=cart.status.display_name,
                )
                raise ConflictError(
                    f"Cart entry {cart_id} was already ordered or removed",
                    cart_id=str(cart_id),
                    cart_status=cart.status.display_name,
                )
            carts.append(cart)
        return carts

    async def _consume_cart_entries(
        self, carts: Sequence[ShoppingCart], actor: uuid.UUID
    ) -> None:
        """Deactivate the cart entries an order was built from."""
        for cart in carts:
            await self.cart_repository.deactivate(cart, updated_by=actor, converted=True)

    async def _user_names(self, user_ids: set[uuid.UUID]) -> dict[uuid.UUID, str]:
        if not user_ids:
            return {}
        profiles = await self.user_client.get_users_by_ids(user_ids)
        return {user_id: profile.name for user_id, profile in profiles.items()}

    async def _product_names(self, product_ids: set[uuid.UUID]) -> dict[uuid.UUID, str]:
        if not product_ids:
            return {}
        products = await self.inventory_client.get_products_by_ids(product_ids)
        return {product_id: product.product_name for product_id, product in products.items()}

    def _validate_order_lines(self, lines: Sequence[OrderLineCreate]) -> None:
        """
        Validate order lines.

        Raises:
            ValidationError: If there are no lines, or a line has a
                non-positive quantity or a negative price
        """
        if not lines:
            raise ValidationError("Order must contain at least one line", line_count=0)

        for index, line in enumerate(lines):
            if line.quantity is None or line.quantity <= 0:
                raise ValidationError(
                    "Line quantity must be positive",
                    line=index,
                    product_id=str(line.product_id),
                    quantity=line.quantity,
                )
            if line.product_price is None or Decimal(str(line.product_price)) < 0:
                raise ValidationError(
                    "Line price must not be negative",
                    line=index,
                    product_id=str(line.product_id),
                    product_price=str(line.product_price),
                )

    @staticmethod
    def _validate_currency(value: Optional[str], field: str) -> str:
        code = (value or "").strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValidationError(
                f"{field} must be a 3-letter currency code", field=field, value=value
            )
        return code

    @staticmethod
    def _resolve_payment_mode(name: Optional[str]) -> PaymentMode:
        if name is None or not str(name).strip():
            return PaymentMode.CASH
        mode = display_name_to_payment_mode(name, fallback=None)
        if mode is None:
            raise ValidationError(f"Unknown payment mode: {name}", payment_mode=name)
        return mode

    @staticmethod
    def _parse_optional_uuid(value: Optional[str], field: str) -> Optional[uuid.UUID]:
        if value is None or not str(value).strip():
            return None
        try:
            return uuid.UUID(str(value).strip())
        except ValueError as e:
            raise ValidationError(
                f"{field} is not a valid identifier", field=field, value=value
            ) from e
