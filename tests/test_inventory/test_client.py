"""
Test suite for InventoryClient against a mocked product service.
"""

import json
import uuid

import httpx
import pytest

from order_management.core.exceptions import DependencyError
from order_management.services.inventory.client import InventoryClient, ProductSnapshot

BASE_URL = "http://products.test"


def make_client(handler) -> InventoryClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return InventoryClient(f"{BASE_URL}/", http_client)


def product_payload(product_id: uuid.UUID, quantity: int = 7) -> dict:
    return {
        "productId": str(product_id),
        "productName": "Rice 5kg",
        "quantity": quantity,
        "productPrice": "12.50",
    }


# ============================================================================
# Reads
# ============================================================================


class TestGetProduct:
    """Test suite for product reads."""

    @pytest.mark.asyncio
    async def test_get_product(self):
        product_id = uuid.uuid4()
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=product_payload(product_id))

        product = await make_client(handler).get_product(product_id)

        assert isinstance(product, ProductSnapshot)
        assert product.product_id == product_id
        assert product.quantity == 7
        assert product.product_name == "Rice 5kg"
        assert str(requests[0].url) == f"{BASE_URL}/api/products/{product_id}"

    @pytest.mark.asyncio
    async def test_missing_product_is_none(self):
        client = make_client(lambda request: httpx.Response(404))

        assert await client.get_product(uuid.uuid4()) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(503),
            httpx.Response(200, text="not json"),
            httpx.Response(200, json={"productName": "no id"}),
        ],
    )
    async def test_failures_are_dependency_errors(self, response):
        """
        Verifies:
        - Server errors and unreadable payloads raise DependencyError
        """
        client = make_client(lambda request: response)

        with pytest.raises(DependencyError):
            await client.get_product(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_unreachable_service(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(DependencyError, match="unavailable"):
            await make_client(handler).get_product(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_get_products_by_ids_skips_missing(self):
        known = uuid.uuid4()
        missing = uuid.uuid4()

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith(str(known)):
                return httpx.Response(200, json=product_payload(known))
            return httpx.Response(404)

        products = await make_client(handler).get_products_by_ids([known, missing, known])

        assert list(products) == [known]

    @pytest.mark.asyncio
    async def test_get_products_by_ids_tolerates_failed_lookup(self):
        """
        Verifies:
        - One product answering 500 is left unresolved while the other
          products still resolve
        """
        healthy = uuid.uuid4()
        broken = uuid.uuid4()

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith(str(broken)):
                return httpx.Response(500)
            return httpx.Response(200, json=product_payload(healthy))

        products = await make_client(handler).get_products_by_ids([broken, healthy])

        assert list(products) == [healthy]

    @pytest.mark.asyncio
    async def test_get_products_by_ids_propagates_unexpected_errors(self, monkeypatch):
        client = make_client(lambda request: httpx.Response(404))

        async def explode(product_id):
            raise RuntimeError("bug")

        monkeypatch.setattr(client, "get_product", explode)

        with pytest.raises(RuntimeError, match="bug"):
            await client.get_products_by_ids([uuid.uuid4()])


# ============================================================================
# Writes
# ============================================================================


class TestSetQuantity:
    """Test suite for absolute stock updates."""

    @pytest.mark.asyncio
    async def test_set_quantity(self):
        product_id = uuid.uuid4()
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(204)

        assert await make_client(handler).set_quantity(product_id, 3) is True
        assert requests[0].method == "PUT"
        assert requests[0].url.path == f"/api/products/{product_id}/quantity"
        assert json.loads(requests[0].content) == {"quantity": 3}

    @pytest.mark.asyncio
    async def test_refused_update_is_false(self):
        client = make_client(lambda request: httpx.Response(409))

        assert await client.set_quantity(uuid.uuid4(), 3) is False

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        client = make_client(lambda request: httpx.Response(500))

        with pytest.raises(DependencyError):
            await client.set_quantity(uuid.uuid4(), 3)

    @pytest.mark.asyncio
    async def test_negative_quantity_rejected(self):
        client = make_client(lambda request: httpx.Response(204))

        with pytest.raises(ValueError):
            await client.set_quantity(uuid.uuid4(), -1)
