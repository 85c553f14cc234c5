"""Files: file metadata plus Waterbutler links for content.

File content lives behind Waterbutler (files.osf.io). The API returns the
Waterbutler URLs in each file's links, and those are used verbatim.
"""

from typing import Any

from ..adapter import TransformedList, TransformedResource, transform_single
from ..pagination import PaginatedResult
from .base import BaseResource

# The "download" link only works in a browser session; these links serve the
# same bytes to token-authenticated GET requests.
RAW_CONTENT_LINKS = ("move", "upload", "delete")


class Files(BaseResource):
    """Access to file metadata and content."""

    async def get_by_id(self, file_id: str) -> TransformedResource:
        return await self._get(f"files/{file_id}/")

    async def list_providers(self, node_id: str) -> TransformedList:
        """List storage providers (osfstorage, github, ...) of a node."""
        return await self._list(f"nodes/{node_id}/files/")

    async def list_files(
        self, node_id: str, provider: str = "osfstorage", params: dict[str, Any] | None = None
    ) -> TransformedList:
        """List files at the root of a node's storage provider."""
        return await self._list(f"nodes/{node_id}/files/{provider}/", params)

    async def list_files_paginated(
        self, node_id: str, provider: str = "osfstorage", params: dict[str, Any] | None = None
    ) -> PaginatedResult:
        return await self._list_paginated(f"nodes/{node_id}/files/{provider}/", params)

    @staticmethod
    def get_download_url(file: TransformedResource) -> str | None:
        """Get the browser download URL of a file, if it has one."""
        links = file.get("links") or {}
        return links.get("download")

    @staticmethod
    def get_content_url(file: TransformedResource) -> str | None:
        """Get the URL to fetch a file's bytes with a bearer token."""
        links = file.get("links") or {}
        for name in RAW_CONTENT_LINKS:
            if links.get(name):
                url: str = links[name]
                return url
        return None

    async def download(self, file: TransformedResource) -> bytes:
        """Download a file's content.

        Raises:
            ValueError: If the file has no usable content link
        """
        url = self.get_content_url(file)
        if not url:
            raise ValueError(f"File {file.get('id')} does not have a download link")
        return await self.http.get_raw(url)

    async def upload(self, file: TransformedResource, content: bytes) -> TransformedResource:
        """Upload a new version of an existing file.

        Raises:
            ValueError: If the file has no upload link
        """
        url = (file.get("links") or {}).get("upload")
        if not url:
            raise ValueError(f"File {file.get('id')} does not have an upload link")
        response = await self.http.put_raw(url, content, params={"kind": "file"})
        return transform_single(response["data"])

    async def upload_new(
        self, parent_folder: TransformedResource, name: str, content: bytes
    ) -> TransformedResource:
        """Create a new file inside a folder (or provider root).

        Raises:
            ValueError: If the folder has no upload link
        """
        url = (parent_folder.get("links") or {}).get("upload")
        if not url:
            raise ValueError("Parent folder does not have an upload link")
        response = await self.http.put_raw(url, content, params={"kind": "file", "name": name})
        return transform_single(response["data"])

    async def delete_file(self, file: TransformedResource) -> None:
        """Delete a file through its Waterbutler delete link.

        Raises:
            ValueError: If the file has no delete link
        """
        url = (file.get("links") or {}).get("delete")
        if not url:
            raise ValueError(f"File {file.get('id')} does not have a delete link")
        await self.http.delete(url)
