"""Common plumbing for OSF resource classes."""

from typing import Any

from ..adapter import TransformedList, TransformedResource, transform_list, transform_single
from ..http import HttpClient
from ..pagination import PaginatedResult


class BaseResource:
    """Base class for resource classes.

    Wraps the transport calls and flattens every JSON:API response.
    """

    def __init__(self, http: HttpClient):
        self.http = http

    @staticmethod
    def _build_params(params: dict[str, Any] | None) -> dict[str, str] | None:
        """Serialize query parameters.

        None values are dropped, booleans become "true"/"false" and lists are
        comma-joined, matching what the OSF filter syntax expects.
        """
        if not params:
            return None

        query: dict[str, str] = {}
        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, bool):
                query[key] = "true" if value else "false"
            elif isinstance(value, (list, tuple)):
                query[key] = ",".join(str(v) for v in value)
            else:
                query[key] = str(value)
        return query or None

    async def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> TransformedResource:
        payload = await self.http.get(endpoint, params=self._build_params(params))
        return transform_single(payload["data"])

    async def _list(self, endpoint: str, params: dict[str, Any] | None = None) -> TransformedList:
        payload = await self.http.get(endpoint, params=self._build_params(params))
        return transform_list(payload)

    async def _fetch_page(self, url: str) -> TransformedList:
        # next links already carry the full query string
        return transform_list(await self.http.get(url))

    async def _list_paginated(
        self, endpoint: str, params: dict[str, Any] | None = None
    ) -> PaginatedResult:
        first_page = await self._list(endpoint, params)
        return PaginatedResult(first_page, self._fetch_page)

    async def _post(self, endpoint: str, payload: dict[str, Any]) -> TransformedResource:
        response = await self.http.post(endpoint, json=payload)
        return transform_single(response["data"])

    async def _patch(self, endpoint: str, payload: dict[str, Any]) -> TransformedResource:
        response = await self.http.patch(endpoint, json=payload)
        return transform_single(response["data"])

    async def _delete(self, endpoint: str) -> None:
        await self.http.delete(endpoint)
