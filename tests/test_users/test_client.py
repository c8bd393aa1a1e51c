"""
Test suite for UserDirectoryClient against a mocked user service.
"""

import json
import uuid

import httpx
import pytest

from order_management.core.exceptions import DependencyError
from order_management.services.users.client import UserDirectoryClient


def make_client(handler) -> UserDirectoryClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return UserDirectoryClient("http://users.test", http_client)


class TestGetUsersByIds:
    """Test suite for batched user lookups."""

    @pytest.mark.asyncio
    async def test_lookup_deduplicates_ids(self):
        """
        Verifies:
        - One request carries each id once
        - Profiles are keyed by user id
        """
        user_id = uuid.uuid4()
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                json=[{"userId": str(user_id), "userName": "Corner Shop", "phoneNumber": "555"}],
            )

        profiles = await make_client(handler).get_users_by_ids([user_id, user_id])

        assert len(requests) == 1
        assert requests[0].url.path == "/api/users/lookup"
        assert json.loads(requests[0].content) == {"userIds": [str(user_id)]}
        assert profiles[user_id].name == "Corner Shop"
        assert profiles[user_id].phone == "555"

    @pytest.mark.asyncio
    async def test_empty_input_sends_nothing(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        assert await make_client(handler).get_users_by_ids([]) == {}

    @pytest.mark.asyncio
    async def test_unknown_ids_are_left_out(self):
        client = make_client(lambda request: httpx.Response(200, json=[]))

        assert await client.get_users_by_ids([uuid.uuid4()]) == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [httpx.Response(502), httpx.Response(200, json={"unexpected": "shape"})],
    )
    async def test_failures_are_dependency_errors(self, response):
        client = make_client(lambda request: response)

        with pytest.raises(DependencyError):
            await client.get_users_by_ids([uuid.uuid4()])
