"""OAuth2 authentication support for the OSF client.

Main Components:
    OsfOAuth2Client: Authorization Code + PKCE client with managed tokens
    TokenSet: Token data structure (the state to persist between runs)
    TokenProvider: Token source used by the HTTP transport
    TokenStore: Optional encrypted token storage

Quick Start:
    from osf_client.auth import OsfOAuth2Client

    client = OsfOAuth2Client(client_id="...", redirect_uri="https://app/callback")
    request = client.build_authorization_url(access_type="offline")
    # send the user to request.url, then:
    await client.exchange_code(code, request.code_verifier)
"""

from .client import (
    AuthorizationRequest,
    NoCredentialError,
    NoRefreshTokenError,
    NoTokenToRevokeError,
    OAuth2Error,
    OsfOAuth2Client,
    RevocationError,
    TokenExchangeError,
    TokenExpiredError,
    TokenRefreshError,
)
from .pkce import (
    InvalidLengthError,
    PKCEChallenge,
    compute_code_challenge,
    generate_code_verifier,
    generate_pkce_challenge,
    generate_state,
)
from .providers import (
    CallableTokenProvider,
    OAuth2TokenProvider,
    StaticTokenProvider,
    TokenProvider,
    TokenSetProvider,
    resolve_token_provider,
)
from .store import TokenDecryptionError, TokenStore, TokenStoreError
from .tokens import OAuth2Config, TokenSet

__all__ = [
    # Client
    "OsfOAuth2Client",
    "OAuth2Config",
    "AuthorizationRequest",
    # Errors
    "OAuth2Error",
    "TokenExchangeError",
    "TokenRefreshError",
    "RevocationError",
    "NoCredentialError",
    "NoRefreshTokenError",
    "NoTokenToRevokeError",
    "TokenExpiredError",
    # Tokens
    "TokenSet",
    # Providers
    "TokenProvider",
    "StaticTokenProvider",
    "TokenSetProvider",
    "OAuth2TokenProvider",
    "CallableTokenProvider",
    "resolve_token_provider",
    # Storage
    "TokenStore",
    "TokenStoreError",
    "TokenDecryptionError",
    # PKCE
    "generate_pkce_challenge",
    "generate_code_verifier",
    "compute_code_challenge",
    "generate_state",
    "PKCEChallenge",
    "InvalidLengthError",
]
