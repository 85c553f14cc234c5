"""Main entry point for the OSF API v2 client."""

import logging
from pathlib import Path
from typing import Any, Iterable

import httpx

from .auth.client import OsfOAuth2Client, TokenSetCallback
from .auth.providers import OAuth2TokenProvider, TokenSource
from .auth.store import TokenStore
from .auth.tokens import TokenSet
from .config import Settings, load_settings
from .errors import ConfigurationError
from .http import DEFAULT_API_BASE_URL, HttpClient
from .resources import Files, Nodes, Users

logger = logging.getLogger(__name__)


def _persist_to_store(store: TokenStore, profile: str) -> TokenSetCallback:
    """Build an on_token_set callback that keeps a store profile current."""

    def persist(token_set: TokenSet | None) -> None:
        if token_set is None:
            store.delete_token(profile)
        else:
            store.set_token(profile, token_set)
        logger.debug(f"Updated stored token set for profile {profile}")

    return persist


class OsfClient:
    """Client for the OSF API.

    Resource accessors are created lazily on first use.

    Usage:
        async with OsfClient("personal-access-token") as osf:
            me = await osf.users.me()
            result = await osf.nodes.list_nodes_paginated({"filter[public]": True})
            async for node in result.items():
                print(node["title"])
    """

    def __init__(
        self,
        token: TokenSource,
        *,
        base_url: str | None = None,
        allowed_hosts: Iterable[str] | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Create a client.

        Args:
            token: Personal access token, TokenSet, OsfOAuth2Client,
                TokenProvider, or a callable returning a token
            base_url: API base URL (defaults to https://api.osf.io/v2/)
            allowed_hosts: Extra hosts that absolute URLs may point at
            timeout: Request timeout in seconds
            http_client: Optional shared HTTP client
        """
        self.http = HttpClient(
            token,
            base_url=base_url or DEFAULT_API_BASE_URL,
            allowed_hosts=allowed_hosts,
            timeout=timeout,
            http_client=http_client,
        )

        self._nodes: Nodes | None = None
        self._users: Users | None = None
        self._files: Files | None = None
        self._owns_oauth2 = False

    @classmethod
    def from_settings(cls, settings: Settings, token_set: TokenSet | None = None) -> "OsfClient":
        """Build a client from settings.

        A personal access token (OSF_TOKEN) takes precedence. Otherwise an
        OsfOAuth2Client is built from the OAuth2 settings and primed with
        token_set, or with the token set stored for the configured profile
        when OSF_TOKEN_STORE_DIR is set. With a store configured, every token
        set the client later obtains is saved back to that profile.

        Raises:
            ConfigurationError: If neither a token nor OAuth2 is configured
        """
        common: dict[str, Any] = {
            "base_url": settings.api_base_url,
            "allowed_hosts": settings.allowed_hosts,
            "timeout": settings.timeout,
        }

        if settings.token:
            logger.debug("Using personal access token from settings")
            return cls(settings.token, **common)

        if not settings.has_oauth2():
            raise ConfigurationError(
                "No credentials configured. Set OSF_TOKEN, or OSF_CLIENT_ID and OSF_REDIRECT_URI."
            )

        store = TokenStore(settings.token_store_dir) if settings.token_store_dir else None
        profile = settings.token_profile

        oauth2 = OsfOAuth2Client(
            settings.oauth2_config(),
            timeout=settings.timeout,
            on_token_set=_persist_to_store(store, profile) if store is not None else None,
        )
        if token_set is None and store is not None:
            token_set = store.get_token(profile)
            if token_set is None:
                logger.info(f"No stored token set for profile {profile}")

        if token_set is not None:
            oauth2.set_token_set(token_set)

        client = cls(oauth2, **common)
        client._owns_oauth2 = True
        return client

    @classmethod
    def from_env(cls, env_path: Path | None = None) -> "OsfClient":
        """Build a client from OSF_* environment variables (and .env)."""
        return cls.from_settings(load_settings(env_path))

    @property
    def oauth2(self) -> OsfOAuth2Client | None:
        """The OAuth2 client backing this client, if any."""
        provider = self.http.token_provider
        if isinstance(provider, OAuth2TokenProvider):
            return provider.client
        return None

    async def aclose(self) -> None:
        await self.http.aclose()
        if self._owns_oauth2 and self.oauth2 is not None:
            await self.oauth2.aclose()

    async def __aenter__(self) -> "OsfClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @property
    def nodes(self) -> Nodes:
        """Projects and components."""
        if self._nodes is None:
            self._nodes = Nodes(self.http)
        return self._nodes

    @property
    def users(self) -> Users:
        if self._users is None:
            self._users = Users(self.http)
        return self._users

    @property
    def files(self) -> Files:
        """File metadata and content."""
        if self._files is None:
            self._files = Files(self.http)
        return self._files
