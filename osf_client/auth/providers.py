"""Token sources for the HTTP transport.

The transport asks its TokenProvider for a bearer token once per request.
resolve_token_provider() picks the strategy once, when the transport is built,
from whatever the caller passed as a token source.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Union

from ..errors import ConfigurationError
from .client import OsfOAuth2Client, TokenExpiredError
from .tokens import TokenSet

logger = logging.getLogger(__name__)

TokenCallable = Callable[[], Union[str, Awaitable[str]]]
TokenSource = Union[str, TokenSet, OsfOAuth2Client, "TokenProvider", TokenCallable]


class TokenProvider(ABC):
    """Supplies the bearer token for outgoing requests."""

    @abstractmethod
    async def resolve_token(self) -> str:
        """Return the token to send in the Authorization header."""


class StaticTokenProvider(TokenProvider):
    """A fixed personal access token."""

    def __init__(self, token: str):
        if not token:
            raise ConfigurationError("token must not be empty")
        self._token = token

    async def resolve_token(self) -> str:
        return self._token


class TokenSetProvider(TokenProvider):
    """A stored token set without a client to refresh it.

    Once the token expires every request fails with TokenExpiredError;
    use OAuth2TokenProvider for automatic refresh.
    """

    def __init__(self, token_set: TokenSet):
        self._token_set = token_set.copy()

    async def resolve_token(self) -> str:
        if self._token_set.is_expired():
            raise TokenExpiredError(
                "Stored access token has expired. Provide an OsfOAuth2Client to refresh it automatically."
            )
        return self._token_set.access_token


class OAuth2TokenProvider(TokenProvider):
    """Tokens from an OsfOAuth2Client, refreshed on demand."""

    def __init__(self, client: OsfOAuth2Client):
        self._client = client

    @property
    def client(self) -> OsfOAuth2Client:
        return self._client

    async def resolve_token(self) -> str:
        return await self._client.get_access_token()


class CallableTokenProvider(TokenProvider):
    """Tokens from a caller-supplied function (sync or async)."""

    def __init__(self, func: TokenCallable):
        self._func = func

    async def resolve_token(self) -> str:
        result = self._func()
        if inspect.isawaitable(result):
            result = await result
        if not isinstance(result, str) or not result:
            raise ConfigurationError("Token callable must return a non-empty string")
        return result


def resolve_token_provider(source: TokenSource) -> TokenProvider:
    """Build the TokenProvider for a token source.

    Args:
        source: A personal access token, TokenSet, OsfOAuth2Client,
            TokenProvider, or a callable returning a token

    Returns:
        TokenProvider wrapping the source

    Raises:
        ConfigurationError: If source is an empty string
        TypeError: If source is of an unsupported type
    """
    if isinstance(source, TokenProvider):
        return source
    if isinstance(source, str):
        return StaticTokenProvider(source)
    if isinstance(source, TokenSet):
        return TokenSetProvider(source)
    if isinstance(source, OsfOAuth2Client):
        return OAuth2TokenProvider(source)
    if callable(source):
        return CallableTokenProvider(source)

    raise TypeError(f"Unsupported token source: {type(source).__name__}")
