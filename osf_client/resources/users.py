"""Users: OSF user profiles."""

from typing import Any

from ..adapter import TransformedList, TransformedResource
from .base import BaseResource


class Users(BaseResource):
    """Access to /users/ endpoints."""

    async def me(self) -> TransformedResource:
        """Get the profile of the authenticated user."""
        return await self._get("users/me/")

    async def get_by_id(self, user_id: str) -> TransformedResource:
        return await self._get(f"users/{user_id}/")

    async def list_nodes(self, user_id: str = "me", params: dict[str, Any] | None = None) -> TransformedList:
        """List the nodes a user contributes to."""
        return await self._list(f"users/{user_id}/nodes/", params)
