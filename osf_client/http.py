"""Authenticated HTTP transport for the OSF API.

HttpClient resolves a bearer token for every request, refuses to send it to
hosts outside the allow-list, and maps error responses onto the OsfApiError
hierarchy. Nothing is retried; errors go straight to the caller.
"""

import logging
from typing import Any, Iterable
from urllib.parse import ParseResult, urljoin, urlparse

import httpx

from .auth.providers import TokenProvider, TokenSource, resolve_token_provider
from .errors import (
    ConfigurationError,
    OsfApiError,
    OsfAuthenticationError,
    OsfNetworkError,
    OsfNotFoundError,
    OsfPermissionError,
    OsfRateLimitError,
    OsfServerError,
    UntrustedHostError,
)

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.osf.io/v2/"

# Waterbutler serves file content for links returned by the API
DEFAULT_EXTRA_HOSTS = ("files.osf.io",)

DEFAULT_PORTS = {"http": 80, "https": 443}

STATUS_ERRORS: dict[int, type[OsfApiError]] = {
    401: OsfAuthenticationError,
    403: OsfPermissionError,
    404: OsfNotFoundError,
}


def _origin(url: ParseResult) -> tuple[str, str, int]:
    """Return (scheme, host, port) of a parsed URL, filling in the default port.

    Raises:
        ValueError: If the port is not a valid number
    """
    scheme = url.scheme.lower()
    port = url.port or DEFAULT_PORTS.get(scheme, 0)
    return scheme, (url.hostname or "").lower(), port


def _parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in seconds."""
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        # HTTP-date form is not supported
        return None


def error_from_response(response: httpx.Response) -> OsfApiError:
    """Build the OsfApiError matching an error response.

    The message is the first JSON:API error detail when the body has one,
    otherwise the status line.
    """
    message = f"HTTP Error {response.status_code} {response.reason_phrase}"
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            detail = errors[0].get("detail")
            if detail:
                message = str(detail)

    status = response.status_code
    if status == 429:
        return OsfRateLimitError(
            message,
            status_code=status,
            retry_after=_parse_retry_after(response.headers.get("Retry-After")),
        )
    if status in STATUS_ERRORS:
        return STATUS_ERRORS[status](message, status_code=status)
    if status >= 500:
        return OsfServerError(message, status_code=status)
    return OsfApiError(message, status_code=status)


class HttpClient:
    """Async HTTP client for the OSF API.

    Usage:
        async with HttpClient("personal-access-token") as http:
            payload = await http.get("nodes/abc12/")
    """

    def __init__(
        self,
        token: TokenSource,
        base_url: str = DEFAULT_API_BASE_URL,
        allowed_hosts: Iterable[str] | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the transport.

        Args:
            token: Token source (personal access token, TokenSet,
                OsfOAuth2Client, TokenProvider, or callable)
            base_url: API base URL that relative endpoints are joined onto
            allowed_hosts: Extra hosts ("host" or "host:port") absolute URLs
                may point at over https. The base URL origin and
                files.osf.io are always allowed.
            timeout: Timeout in seconds for the client-owned HTTP client
            http_client: Optional shared HTTP client (not closed by this client)
        """
        self.token_provider: TokenProvider = resolve_token_provider(token)
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"

        # Each trusted origin is (scheme, host, port). The base URL keeps its
        # own scheme and port; every other host is https-only.
        origins = {_origin(urlparse(self.base_url))}
        for entry in (*DEFAULT_EXTRA_HOSTS, *(allowed_hosts or ())):
            entry = entry.strip().lower()
            if not entry:
                continue
            try:
                origins.add(_origin(urlparse(f"https://{entry}")))
            except ValueError as e:
                raise ConfigurationError(f"Invalid allowed host {entry!r}: {e}") from e
        self._allowed_origins = frozenset(origins)
        self.allowed_hosts = frozenset(host for _, host, _ in origins if host)

        self._timeout = timeout
        self._http = http_client
        self._owns_http = http_client is None

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._timeout)
        return self._http

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def resolve_url(self, endpoint: str) -> str:
        """Turn an endpoint into an absolute URL.

        Relative endpoints are joined onto the base URL. Absolute URLs (such
        as links returned by the API) must match an allowed origin: the base
        URL's scheme, host and port, or https on another allowed host.

        Raises:
            UntrustedHostError: If an absolute URL's origin is not allowed
        """
        parsed = urlparse(endpoint)
        if not parsed.scheme and not parsed.netloc:
            return urljoin(self.base_url, endpoint.lstrip("/"))

        if parsed.scheme not in DEFAULT_PORTS:
            raise UntrustedHostError(f"Refusing URL with scheme {parsed.scheme!r}")

        try:
            origin = _origin(parsed)
        except ValueError as e:
            raise UntrustedHostError(f"Refusing URL with invalid port: {e}") from e

        if origin not in self._allowed_origins:
            scheme, host, port = origin
            raise UntrustedHostError(
                f"Refusing to send credentials to untrusted origin {scheme}://{host}:{port}. "
                f"Add the host to allowed_hosts if it is expected (https only)."
            )
        return endpoint

    async def _send(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        url = self.resolve_url(endpoint)

        request_headers = dict(headers or {})
        token = await self.token_provider.resolve_token()
        request_headers["Authorization"] = f"Bearer {token}"
        if json is not None and "Content-Type" not in request_headers:
            request_headers["Content-Type"] = "application/json"

        logger.debug(f"{method} {url}")
        try:
            response = await self._get_http().request(
                method,
                url,
                params=params,
                json=json,
                content=content,
                headers=request_headers,
            )
        except httpx.RequestError as e:
            raise OsfNetworkError(f"Network error during {method} {url}: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.debug(f"{method} {url} failed with HTTP {response.status_code}")
            raise error_from_response(response)

        return response

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send a request and return the parsed JSON body.

        Returns:
            Parsed JSON, or an empty dict for 204 / empty responses

        Raises:
            UntrustedHostError: If the URL points at a host that is not allowed
            OsfApiError: For non-2xx responses and network failures
        """
        response = await self._send(
            method, endpoint, params=params, json=json, content=content, headers=headers
        )
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", endpoint, params=params)

    async def post(self, endpoint: str, json: Any = None) -> Any:
        return await self.request("POST", endpoint, json=json)

    async def put(self, endpoint: str, json: Any = None) -> Any:
        return await self.request("PUT", endpoint, json=json)

    async def patch(self, endpoint: str, json: Any = None) -> Any:
        return await self.request("PATCH", endpoint, json=json)

    async def delete(self, endpoint: str) -> Any:
        return await self.request("DELETE", endpoint)

    async def get_raw(self, endpoint: str) -> bytes:
        """GET a URL and return the raw response body."""
        response = await self._send("GET", endpoint)
        return response.content

    async def put_raw(
        self, endpoint: str, content: bytes, params: dict[str, Any] | None = None
    ) -> Any:
        """PUT raw bytes (e.g. file content) and return the parsed JSON body."""
        return await self.request(
            "PUT",
            endpoint,
            params=params,
            content=content,
            headers={"Content-Type": "application/octet-stream"},
        )
