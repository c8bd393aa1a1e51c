"""
User directory client.

Resolves retailer, manufacturer and delivery personnel ids to profiles held by
the remote user service.
"""

import uuid
from typing import Iterable, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from order_management.core.exceptions import DependencyError
from order_management.core.logging import get_logger

logger = get_logger(__name__)


class UserProfile(BaseModel):
    """User profile as returned by the user service."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: uuid.UUID = Field(..., alias="userId")
    name: str = Field(default="", alias="userName")
    phone: Optional[str] = Field(default=None, alias="phoneNumber")
    address: Optional[str] = Field(default=None, alias="address")


class UserDirectoryClient:
    """Client for the remote user directory service."""

    def __init__(self, base_url: str, http_client: httpx.AsyncClient):
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client

    async def get_users_by_ids(
        self, user_ids: Iterable[uuid.UUID]
    ) -> dict[uuid.UUID, UserProfile]:
        """
        Resolve user ids to profiles in one request.

        Unknown ids are left out of the result.

        Args:
            user_ids: User identifiers, duplicates allowed

        Returns:
            Mapping of user id to profile

        Raises:
            DependencyError: If the service fails or returns an unreadable body
        """
        unique_ids = [str(user_id) for user_id in dict.fromkeys(user_ids)]
        if not unique_ids:
            return {}

        try:
            response = await self.http_client.post(
                f"{self.base_url}/api/users/lookup",
                json={"userIds": unique_ids},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(
                "User directory request failed",
                user_count=len(unique_ids),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DependencyError(
                "User service is unavailable",
                user_count=len(unique_ids),
            ) from e

        try:
            profiles = [UserProfile.model_validate(item) for item in response.json()]
        except (ValueError, TypeError, PydanticValidationError) as e:
            logger.error("Unreadable user directory payload", error=str(e))
            raise DependencyError("User service returned unreadable profiles") from e

        logger.debug(
            "Users resolved",
            requested=len(unique_ids),
            resolved=len(profiles),
        )
        return {profile.user_id: profile for profile in profiles}
