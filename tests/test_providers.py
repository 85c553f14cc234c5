"""Tests for token providers."""

from unittest.mock import AsyncMock, patch

import pytest

from osf_client.auth.client import NoCredentialError, OsfOAuth2Client, TokenExpiredError
from osf_client.auth.providers import (
    CallableTokenProvider,
    OAuth2TokenProvider,
    StaticTokenProvider,
    TokenProvider,
    TokenSetProvider,
    resolve_token_provider,
)
from osf_client.errors import ConfigurationError


class TestResolveTokenProvider:
    """Tests for choosing a provider from a token source."""

    def test_string(self):
        assert isinstance(resolve_token_provider("pat"), StaticTokenProvider)

    def test_token_set(self, valid_token_set):
        assert isinstance(resolve_token_provider(valid_token_set), TokenSetProvider)

    def test_oauth2_client(self, oauth_client):
        provider = resolve_token_provider(oauth_client)
        assert isinstance(provider, OAuth2TokenProvider)
        assert provider.client is oauth_client

    def test_callable(self):
        assert isinstance(resolve_token_provider(lambda: "t"), CallableTokenProvider)

    def test_provider_passthrough(self):
        provider = StaticTokenProvider("pat")
        assert resolve_token_provider(provider) is provider

    def test_unsupported_type(self):
        with pytest.raises(TypeError, match="Unsupported token source"):
            resolve_token_provider(42)  # type: ignore[arg-type]

    def test_empty_string(self):
        with pytest.raises(ConfigurationError):
            resolve_token_provider("")


class TestProviders:
    """Tests for resolving tokens from each provider."""

    @pytest.mark.asyncio
    async def test_static(self):
        assert await StaticTokenProvider("pat").resolve_token() == "pat"

    @pytest.mark.asyncio
    async def test_token_set_valid(self, valid_token_set):
        provider = TokenSetProvider(valid_token_set)
        assert await provider.resolve_token() == "valid_access_token"

    @pytest.mark.asyncio
    async def test_token_set_is_copied(self, valid_token_set):
        provider = TokenSetProvider(valid_token_set)
        valid_token_set.access_token = "mutated"
        assert await provider.resolve_token() == "valid_access_token"

    @pytest.mark.asyncio
    async def test_token_set_expired(self, expired_token_set):
        with pytest.raises(TokenExpiredError):
            await TokenSetProvider(expired_token_set).resolve_token()

    @pytest.mark.asyncio
    async def test_oauth2_delegates_to_get_access_token(self, oauth_client, valid_token_set):
        oauth_client.set_token_set(valid_token_set)
        with patch.object(
            OsfOAuth2Client, "get_access_token", AsyncMock(return_value="from_client")
        ) as mock_get:
            assert await OAuth2TokenProvider(oauth_client).resolve_token() == "from_client"
        mock_get.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_oauth2_without_credential(self, oauth_client):
        with pytest.raises(NoCredentialError):
            await OAuth2TokenProvider(oauth_client).resolve_token()

    @pytest.mark.asyncio
    async def test_sync_callable(self):
        assert await CallableTokenProvider(lambda: "sync_token").resolve_token() == "sync_token"

    @pytest.mark.asyncio
    async def test_async_callable(self):
        async def fetch_token() -> str:
            return "async_token"

        assert await CallableTokenProvider(fetch_token).resolve_token() == "async_token"

    @pytest.mark.asyncio
    async def test_callable_called_every_time(self):
        tokens = iter(["first", "second"])
        provider = CallableTokenProvider(lambda: next(tokens))

        assert await provider.resolve_token() == "first"
        assert await provider.resolve_token() == "second"

    @pytest.mark.asyncio
    async def test_callable_returning_empty(self):
        with pytest.raises(ConfigurationError):
            await CallableTokenProvider(lambda: "").resolve_token()

    def test_custom_provider_subclass(self):
        class VaultProvider(TokenProvider):
            async def resolve_token(self) -> str:
                return "vault"

        provider = VaultProvider()
        assert resolve_token_provider(provider) is provider
