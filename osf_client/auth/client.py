"""OAuth2 Authorization Code + PKCE client for the OSF authorization server.

OsfOAuth2Client owns the credential lifecycle for one session:

1. build_authorization_url() - generate PKCE pair, send the user to CAS
2. exchange_code() - trade the returned code (plus verifier) for tokens
3. get_access_token() - hand out a valid token, refreshing when needed
4. revoke_token() - invalidate the token server-side and forget it

The stored TokenSet never leaves the client by reference; get_token_set()
and set_token_set() copy in both directions.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal
from urllib.parse import urlencode

import httpx

from ..errors import OsfError
from .pkce import generate_pkce_challenge
from .tokens import OAuth2Config, TokenSet

logger = logging.getLogger(__name__)

AccessType = Literal["online", "offline"]
ApprovalPrompt = Literal["auto", "force"]

ACCESS_TYPES = ("online", "offline")
APPROVAL_PROMPTS = ("auto", "force")

FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}

TokenSetCallback = Callable[[TokenSet | None], None]


class OAuth2Error(OsfError):
    """Error during an OAuth2 operation."""

    pass


class OAuth2HTTPError(OAuth2Error):
    """The authorization server rejected a request.

    Attributes:
        status_code: HTTP status code, or None for network failures
        reason: HTTP reason phrase
    """

    def __init__(self, message: str, status_code: int | None = None, reason: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class TokenExchangeError(OAuth2HTTPError):
    """Error exchanging an authorization code for tokens."""

    pass


class TokenRefreshError(OAuth2HTTPError):
    """Error refreshing an access token."""

    pass


class RevocationError(OAuth2HTTPError):
    """Error revoking a token."""

    pass


class NoCredentialError(OAuth2Error):
    """No token set is stored; run the authorization flow first."""

    pass


class NoRefreshTokenError(OAuth2Error):
    """A refresh was needed but no refresh token is available."""

    pass


class NoTokenToRevokeError(OAuth2Error):
    """Revocation was requested but there is no token to revoke."""

    pass


class TokenExpiredError(OAuth2Error):
    """A stored access token expired and nothing is able to refresh it."""

    pass


@dataclass
class AuthorizationRequest:
    """Result of build_authorization_url().

    The caller must keep code_verifier (e.g. in the user's session) until
    the authorization code comes back; the client does not store it.
    """

    url: str
    code_verifier: str
    code_challenge: str


def _error_detail(response: httpx.Response) -> str:
    """Extract a safe error description from an error response.

    Only the error_description, error or detail fields are used. The raw
    body is never returned since it may contain unexpected content.
    """
    try:
        data = response.json()
    except ValueError:
        return ""

    if not isinstance(data, dict):
        return ""

    for key in ("error_description", "error", "detail"):
        value = data.get(key)
        if isinstance(value, str) and value:
            return f": {value}"
    return ""


def _is_success(response: httpx.Response) -> bool:
    return 200 <= response.status_code < 300


def _consume_refresh_result(task: "asyncio.Future[TokenSet]") -> None:
    # Waiters may all have been cancelled; mark the failure as retrieved
    if not task.cancelled() and task.exception() is not None:
        logger.debug(f"Token refresh failed: {type(task.exception()).__name__}")


class OsfOAuth2Client:
    """OAuth2 client with PKCE and managed token lifecycle.

    Usage:
        client = OsfOAuth2Client(client_id="...", redirect_uri="https://app/callback")

        request = client.build_authorization_url(state=state, access_type="offline")
        # redirect the user to request.url, keep request.code_verifier

        await client.exchange_code(code, request.code_verifier)
        token = await client.get_access_token()
    """

    def __init__(
        self,
        config: OAuth2Config | None = None,
        *,
        client_id: str | None = None,
        redirect_uri: str | None = None,
        scope: str | None = None,
        auth_server_base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        on_token_set: TokenSetCallback | None = None,
    ):
        """Initialize the client.

        Args:
            config: Complete client registration; keyword fields are used if omitted
            client_id: Client ID of the registered OSF application
            redirect_uri: Registered redirect URI
            scope: Optional space-delimited scopes
            auth_server_base_url: Optional CAS base URL (defaults to production)
            http_client: Optional shared HTTP client (not closed by this client)
            timeout: Timeout in seconds for the client-owned HTTP client
            on_token_set: Called with a copy of each TokenSet the client obtains
                (exchange or refresh), and with None when revocation clears it.
                Use it to persist the session.

        Raises:
            ConfigurationError: If client_id or redirect_uri is missing
        """
        if config is None:
            config = OAuth2Config(
                client_id=client_id or "",
                redirect_uri=redirect_uri or "",
                scope=scope,
                auth_server_base_url=auth_server_base_url or "",
            )
        self._config = config

        self._http = http_client
        self._owns_http = http_client is None
        self._timeout = timeout

        self._token_set: TokenSet | None = None
        self._refresh_task: asyncio.Task[TokenSet] | None = None
        self._on_token_set = on_token_set

    @property
    def config(self) -> OAuth2Config:
        return self._config

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._timeout)
        return self._http

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "OsfOAuth2Client":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _update_token_set(self, token_set: TokenSet | None) -> None:
        self._token_set = token_set
        if self._on_token_set is not None:
            self._on_token_set(token_set.copy() if token_set is not None else None)

    # Authorization

    def build_authorization_url(
        self,
        state: str | None = None,
        access_type: AccessType | None = None,
        approval_prompt: ApprovalPrompt | None = None,
    ) -> AuthorizationRequest:
        """Build the authorization URL for browser redirect.

        A fresh PKCE pair is generated on every call. Stored token state is
        not touched.

        Args:
            state: Optional state parameter for CSRF protection
            access_type: "offline" to request a refresh token, or "online"
            approval_prompt: "force" to always show the consent screen, or "auto"

        Returns:
            AuthorizationRequest with the URL and the PKCE verifier/challenge

        Raises:
            ValueError: If access_type or approval_prompt is not a known value
        """
        if access_type is not None and access_type not in ACCESS_TYPES:
            raise ValueError(f"access_type must be one of {ACCESS_TYPES}, got {access_type!r}")
        if approval_prompt is not None and approval_prompt not in APPROVAL_PROMPTS:
            raise ValueError(
                f"approval_prompt must be one of {APPROVAL_PROMPTS}, got {approval_prompt!r}"
            )

        pkce = generate_pkce_challenge()

        params: dict[str, str] = {
            "response_type": "code",
            "client_id": self._config.client_id,
            "redirect_uri": self._config.redirect_uri,
            "code_challenge": pkce.code_challenge,
            "code_challenge_method": pkce.method,
        }

        if self._config.scope:
            params["scope"] = self._config.scope
        if state:
            params["state"] = state
        if access_type:
            params["access_type"] = access_type
        if approval_prompt:
            params["approval_prompt"] = approval_prompt

        url = f"{self._config.authorization_endpoint}?{urlencode(params)}"
        return AuthorizationRequest(
            url=url,
            code_verifier=pkce.code_verifier,
            code_challenge=pkce.code_challenge,
        )

    async def _post_form(
        self,
        url: str,
        data: dict[str, str],
        error_cls: type[OAuth2HTTPError],
        action: str,
    ) -> httpx.Response:
        """POST a form to the authorization server, mapping failures to error_cls."""
        try:
            response = await self._get_http().post(url, data=data, headers=FORM_HEADERS)
        except httpx.RequestError as e:
            raise error_cls(f"Network error during {action}: {e}") from e

        if not _is_success(response):
            reason = response.reason_phrase
            raise error_cls(
                f"{action.capitalize()} failed (HTTP {response.status_code} {reason})"
                f"{_error_detail(response)}",
                status_code=response.status_code,
                reason=reason,
            )

        return response

    async def exchange_code(self, code: str, code_verifier: str) -> TokenSet:
        """Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the redirect
            code_verifier: The verifier returned by build_authorization_url()

        Returns:
            Copy of the new TokenSet, which is also stored in the client

        Raises:
            TokenExchangeError: If the token endpoint rejects the request
        """
        response = await self._post_form(
            self._config.token_endpoint,
            {
                "grant_type": "authorization_code",
                "code": code,
                "client_id": self._config.client_id,
                "redirect_uri": self._config.redirect_uri,
                "code_verifier": code_verifier,
            },
            TokenExchangeError,
            "token exchange",
        )

        try:
            token_set = TokenSet.from_token_response(response.json())
        except (ValueError, KeyError, TypeError, OverflowError) as e:
            raise TokenExchangeError("Token endpoint returned an invalid token response") from e

        self._update_token_set(token_set)
        logger.info("Authorization code exchanged for a new token set")
        return token_set.copy()

    async def refresh_access_token(self, refresh_token: str | None = None) -> TokenSet:
        """Refresh the access token.

        If the server does not issue a new refresh token, the one used for
        this request is kept.

        Args:
            refresh_token: Optional override; defaults to the stored refresh token

        Returns:
            Copy of the new TokenSet, which replaces the stored one

        Raises:
            NoRefreshTokenError: If no refresh token is available
            TokenRefreshError: If the token endpoint rejects the request
        """
        current = self._token_set
        token = refresh_token or (current.refresh_token if current else None)
        if not token:
            raise NoRefreshTokenError(
                "No refresh token available. Run the authorization flow again "
                "(use access_type='offline' to receive a refresh token)."
            )

        response = await self._post_form(
            self._config.token_endpoint,
            {
                "grant_type": "refresh_token",
                "refresh_token": token,
                "client_id": self._config.client_id,
            },
            TokenRefreshError,
            "token refresh",
        )

        try:
            token_set = TokenSet.from_token_response(response.json())
        except (ValueError, KeyError, TypeError, OverflowError) as e:
            raise TokenRefreshError("Token endpoint returned an invalid token response") from e

        if not token_set.has_refresh_token():
            token_set.refresh_token = token

        self._update_token_set(token_set)
        logger.info("Access token refreshed")
        return token_set.copy()

    async def revoke_token(self, token: str | None = None) -> None:
        """Revoke a token on the authorization server.

        Stored state is cleared only when the revoked token is the stored
        access token.

        Args:
            token: Token to revoke; defaults to the stored access token

        Raises:
            NoTokenToRevokeError: If no token is given and none is stored
            RevocationError: If the revocation endpoint rejects the request
        """
        stored = self._token_set
        token_to_revoke = token or (stored.access_token if stored else None)
        if not token_to_revoke:
            raise NoTokenToRevokeError("No token to revoke")

        await self._post_form(
            self._config.revocation_endpoint,
            {"token": token_to_revoke},
            RevocationError,
            "token revocation",
        )

        if self._token_set is not None and self._token_set.access_token == token_to_revoke:
            self._update_token_set(None)
            logger.info("Stored token revoked and cleared")
        else:
            logger.debug("Revoked a token that is not the stored access token")

    # Token access

    async def _run_refresh(self) -> TokenSet:
        try:
            return await self.refresh_access_token()
        finally:
            self._refresh_task = None

    async def get_access_token(self) -> str:
        """Get a valid access token, refreshing it first if it has expired.

        Concurrent callers share a single in-flight refresh, so only one
        refresh request is sent no matter how many tasks ask at once.

        Returns:
            The current access token

        Raises:
            NoCredentialError: If no token set is stored
            NoRefreshTokenError: If the token expired and cannot be refreshed
            TokenRefreshError: If the refresh request fails
        """
        if self._token_set is None:
            raise NoCredentialError(
                "No token set available. Exchange an authorization code or call set_token_set() first."
            )

        if not self.is_token_expired():
            return self._token_set.access_token

        if self._refresh_task is None:
            logger.debug("Access token expired, starting refresh")
            self._refresh_task = asyncio.ensure_future(self._run_refresh())
            self._refresh_task.add_done_callback(_consume_refresh_result)
        else:
            logger.debug("Access token expired, joining in-flight refresh")

        # shield: a cancelled caller must not cancel the refresh other callers wait on
        token_set = await asyncio.shield(self._refresh_task)
        return token_set.access_token

    def is_token_expired(self) -> bool:
        """Check whether the stored access token is missing or within the expiry buffer."""
        if self._token_set is None:
            return True
        return self._token_set.is_expired()

    def set_token_set(self, token_set: TokenSet | None) -> None:
        """Store a token set (e.g. restored from persistent storage).

        A copy is stored, so later changes to the argument have no effect.
        Passing None clears the stored credential.
        """
        self._token_set = token_set.copy() if token_set is not None else None

    def get_token_set(self) -> TokenSet | None:
        """Get a copy of the stored token set, or None."""
        if self._token_set is None:
            return None
        return self._token_set.copy()
