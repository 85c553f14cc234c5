"""Shared fixtures and utilities for osf-client tests."""

import time
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from osf_client.auth.client import OsfOAuth2Client
from osf_client.auth.tokens import OAuth2Config, TokenSet


# ============================================================================
# Helpers
# ============================================================================


def token_response(
    access_token: str = "new_access_token",
    refresh_token: str | None = "new_refresh_token",
    expires_in: int = 3600,
    scope: str | None = "osf.full_read",
) -> httpx.Response:
    """Build a successful token endpoint response."""
    body: dict[str, Any] = {
        "access_token": access_token,
        "token_type": "Bearer",
        "expires_in": expires_in,
    }
    if refresh_token is not None:
        body["refresh_token"] = refresh_token
    if scope is not None:
        body["scope"] = scope
    return httpx.Response(200, json=body)


def wire_resource(resource_id: str, resource_type: str = "nodes", **attributes: Any) -> dict[str, Any]:
    """Build a JSON:API wire resource."""
    return {
        "id": resource_id,
        "type": resource_type,
        "attributes": attributes,
        "relationships": {
            "children": {"links": {"related": {"href": f"https://api.osf.io/v2/nodes/{resource_id}/children/"}}}
        },
        "links": {"self": f"https://api.osf.io/v2/{resource_type}/{resource_id}/"},
    }


def wire_page(ids: list[str], next_url: str | None = None, total: int | None = None) -> dict[str, Any]:
    """Build a JSON:API list document."""
    return {
        "data": [wire_resource(i, title=f"Node {i}") for i in ids],
        "meta": {"total": total if total is not None else len(ids), "per_page": 10},
        "links": {"self": "https://api.osf.io/v2/nodes/", "next": next_url, "prev": None},
    }


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def oauth_config() -> OAuth2Config:
    """Client registration against the test CAS server."""
    return OAuth2Config(
        client_id="test_client",
        redirect_uri="https://app.example.com/callback",
        scope="osf.full_read",
        auth_server_base_url="https://accounts.test.osf.io",
    )


@pytest.fixture
def mock_http() -> AsyncMock:
    """Stand-in for httpx.AsyncClient."""
    mock = AsyncMock()
    mock.post = AsyncMock(return_value=token_response())
    mock.request = AsyncMock(return_value=httpx.Response(200, json={"data": []}))
    mock.aclose = AsyncMock()
    return mock


@pytest.fixture
def oauth_client(oauth_config: OAuth2Config, mock_http: AsyncMock) -> OsfOAuth2Client:
    """OAuth2 client wired to the mock HTTP client."""
    return OsfOAuth2Client(oauth_config, http_client=mock_http)


@pytest.fixture
def valid_token_set() -> TokenSet:
    """A token set that expires in one hour."""
    return TokenSet(
        access_token="valid_access_token",
        refresh_token="valid_refresh_token",
        expires_at=int(time.time() * 1000) + 3600 * 1000,
        scope="osf.full_read",
    )


@pytest.fixture
def expired_token_set() -> TokenSet:
    """A token set that expired long ago but can be refreshed."""
    return TokenSet(
        access_token="expired_access_token",
        refresh_token="stored_refresh_token",
        expires_at=0,
    )
