"""Nodes: OSF projects and their components."""

from typing import Any

from ..adapter import TransformedList, TransformedResource
from ..pagination import PaginatedResult
from .base import BaseResource


class Nodes(BaseResource):
    """Access to /nodes/ endpoints.

    Projects are top-level nodes; components are child nodes of a project.
    """

    async def get_by_id(self, node_id: str) -> TransformedResource:
        """Get a node by its ID.

        Raises:
            OsfNotFoundError: If the node does not exist
            OsfPermissionError: If the node is private and not readable
        """
        return await self._get(f"nodes/{node_id}/")

    async def list_nodes(self, params: dict[str, Any] | None = None) -> TransformedList:
        """List one page of nodes, e.g. params={"filter[public]": True}."""
        return await self._list("nodes/", params)

    async def list_nodes_paginated(self, params: dict[str, Any] | None = None) -> PaginatedResult:
        """List nodes with automatic pagination."""
        return await self._list_paginated("nodes/", params)

    async def list_children(self, node_id: str, params: dict[str, Any] | None = None) -> TransformedList:
        """List the components of a node."""
        return await self._list(f"nodes/{node_id}/children/", params)

    async def create(self, attributes: dict[str, Any]) -> TransformedResource:
        """Create a node. title and category are required; nodes are private by default."""
        payload = {"data": {"type": "nodes", "attributes": attributes}}
        return await self._post("nodes/", payload)

    async def update(self, node_id: str, attributes: dict[str, Any]) -> TransformedResource:
        """Update the given attributes of a node."""
        payload = {"data": {"type": "nodes", "id": node_id, "attributes": attributes}}
        return await self._patch(f"nodes/{node_id}/", payload)

    async def delete_node(self, node_id: str) -> None:
        await self._delete(f"nodes/{node_id}/")
