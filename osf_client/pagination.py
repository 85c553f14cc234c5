"""Lazy iteration over cursor-linked JSON:API list endpoints."""

import logging
from typing import Any, AsyncIterator, Awaitable, Callable

from .adapter import TransformedList, TransformedResource, next_link
from .errors import OsfError

logger = logging.getLogger(__name__)

PageFetcher = Callable[[str], Awaitable[TransformedList]]


class PaginationError(OsfError):
    """A PaginatedResult was iterated more than once."""

    pass


class PaginatedResult:
    """A paged list result that can be iterated page by page or item by item.

    The first page is available immediately through data/meta/links. Later
    pages are fetched one at a time by following links.next, and only when
    the consumer asks for them. Iteration can happen once; for a fresh pass,
    call the originating list method again.

    Usage:
        result = await client.nodes.list_nodes_paginated()

        async for page in result:
            print(f"Got {len(page)} nodes")

        # or, on a new result:
        async for node in result.items():
            print(node["title"])
    """

    def __init__(self, initial_page: TransformedList, fetch_page: PageFetcher):
        """Create a paginated result.

        Args:
            initial_page: The first page, already transformed
            fetch_page: Coroutine function fetching a transformed page by URL
        """
        self._initial_page = initial_page
        self._fetch_page = fetch_page
        self._started = False

    @property
    def data(self) -> list[TransformedResource]:
        """Items of the first page."""
        data: list[TransformedResource] = self._initial_page.get("data", [])
        return data

    @property
    def meta(self) -> dict[str, Any] | None:
        """Metadata of the first page (total, per_page, ...)."""
        return self._initial_page.get("meta")

    @property
    def links(self) -> dict[str, Any] | None:
        """Pagination links of the first page."""
        return self._initial_page.get("links")

    @property
    def has_next(self) -> bool:
        """Whether the first page links to another page."""
        return next_link(self._initial_page) is not None

    def _start(self) -> None:
        if self._started:
            raise PaginationError(
                "PaginatedResult can only be iterated once; request the list again to restart"
            )
        self._started = True

    async def _pages(self) -> AsyncIterator[list[TransformedResource]]:
        page = self._initial_page
        page_number = 1
        yield page.get("data", [])

        url = next_link(page)
        while url is not None:
            page_number += 1
            logger.debug(f"Fetching page {page_number}")
            page = await self._fetch_page(url)
            yield page.get("data", [])
            url = next_link(page)

    def __aiter__(self) -> AsyncIterator[list[TransformedResource]]:
        self._start()
        return self._pages()

    async def items(self) -> AsyncIterator[TransformedResource]:
        """Iterate over individual items across all pages, in order."""
        async for page in self:
            for item in page:
                yield item

    async def to_list(self) -> list[TransformedResource]:
        """Collect all items from all pages.

        This loads every page into memory; prefer items() for large lists.
        """
        return [item async for item in self.items()]
