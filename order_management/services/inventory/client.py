"""
Product inventory service client.

The product service owns product records and their available quantity. This
client reads product snapshots and sets a product's quantity to an absolute
value; callers compute the new quantity themselves. There is no conditional
write in the remote contract, so read-modify-write sequences must be
serialized by the caller (see ``order_management.core.locks``).
"""

import asyncio
import uuid
from decimal import Decimal
from typing import Iterable, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from order_management.core.exceptions import DependencyError
from order_management.core.logging import get_logger

logger = get_logger(__name__)


class ProductSnapshot(BaseModel):
    """Product state as returned by the product service."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    product_id: uuid.UUID = Field(..., alias="productId")
    product_name: str = Field(default="", alias="productName")
    quantity: int = Field(..., ge=0, alias="quantity")
    product_price: Optional[Decimal] = Field(default=None, alias="productPrice")
    manufacturer_id: Optional[uuid.UUID] = Field(default=None, alias="manufacturerId")


class InventoryClient:
    """
    Client for the remote product inventory service.

    Failures to reach the service, 5xx responses and unreadable payloads are
    raised as ``DependencyError``. A 404 on read means the product does not
    exist and is returned as ``None``.
    """

    def __init__(self, base_url: str, http_client: httpx.AsyncClient):
        """
        Initialize inventory client.

        Args:
            base_url: Base URL of the product service, without trailing slash
            http_client: Shared async HTTP client
        """
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client

    def _product_url(self, product_id: uuid.UUID) -> str:
        return f"{self.base_url}/api/products/{product_id}"

    async def get_product(self, product_id: uuid.UUID) -> Optional[ProductSnapshot]:
        """
        Read the current snapshot of a product.

        Args:
            product_id: Product identifier

        Returns:
            Product snapshot, or None if the product does not exist

        Raises:
            DependencyError: If the service fails or returns an unreadable body
        """
        try:
            response = await self.http_client.get(self._product_url(product_id))
        except httpx.HTTPError as e:
            logger.error(
                "Product service request failed",
                product_id=str(product_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DependencyError(
                "Product service is unavailable",
                product_id=str(product_id),
            ) from e

        if response.status_code == 404:
            logger.info("Product not found", product_id=str(product_id))
            return None

        if response.is_error:
            logger.error(
                "Product service returned an error",
                product_id=str(product_id),
                status_code=response.status_code,
            )
            raise DependencyError(
                f"Product service returned status {response.status_code}",
                product_id=str(product_id),
                status_code=response.status_code,
            )

        try:
            return ProductSnapshot.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            logger.error(
                "Unreadable product payload",
                product_id=str(product_id),
                error=str(e),
            )
            raise DependencyError(
                "Product service returned an unreadable product",
                product_id=str(product_id),
            ) from e

    async def set_quantity(self, product_id: uuid.UUID, new_quantity: int) -> bool:
        """
        Set a product's available quantity to an absolute value.

        Args:
            product_id: Product identifier
            new_quantity: Quantity to store, never negative

        Returns:
            True if the service accepted the update, False if it refused it

        Raises:
            DependencyError: If the service cannot be reached or fails with 5xx
        """
        if new_quantity < 0:
            raise ValueError("new_quantity must not be negative")

        try:
            response = await self.http_client.put(
                f"{self._product_url(product_id)}/quantity",
                json={"quantity": new_quantity},
            )
        except httpx.HTTPError as e:
            logger.error(
                "Product quantity update failed",
                product_id=str(product_id),
                new_quantity=new_quantity,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DependencyError(
                "Product service is unavailable",
                product_id=str(product_id),
            ) from e

        if response.is_server_error:
            logger.error(
                "Product service returned an error",
                product_id=str(product_id),
                status_code=response.status_code,
            )
            raise DependencyError(
                f"Product service returned status {response.status_code}",
                product_id=str(product_id),
                status_code=response.status_code,
            )

        if response.is_error:
            logger.warning(
                "Product quantity update refused",
                product_id=str(product_id),
                new_quantity=new_quantity,
                status_code=response.status_code,
            )
            return False

        logger.info(
            "Product quantity updated",
            product_id=str(product_id),
            new_quantity=new_quantity,
        )
        return True

    async def get_products_by_ids(
        self, product_ids: Iterable[uuid.UUID]
    ) -> dict[uuid.UUID, ProductSnapshot]:
        """
        Read several products concurrently.

        Products that do not exist, or whose lookup fails with a
        ``DependencyError``, are left out of the result; a failure is logged
        and does not fail the other lookups.

        Args:
            product_ids: Product identifiers, duplicates allowed

        Returns:
            Mapping of product id to snapshot
        """
        unique_ids = list(dict.fromkeys(product_ids))
        if not unique_ids:
            return {}

        results = await asyncio.gather(
            *(self.get_product(product_id) for product_id in unique_ids),
            return_exceptions=True,
        )

        snapshots: dict[uuid.UUID, ProductSnapshot] = {}
        for product_id, result in zip(unique_ids, results):
            if isinstance(result, DependencyError):
                logger.warning(
                    "Product lookup failed, leaving product unresolved",
                    product_id=str(product_id),
                    error=result.message,
                )
                continue
            if isinstance(result, BaseException):
                raise result
            if result is not None:
                snapshots[product_id] = result
        return snapshots
