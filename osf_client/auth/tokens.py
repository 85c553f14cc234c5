"""OAuth token and client registration data structures.

TokenSet is the only state a host application needs to persist between
runs; to_dict()/from_dict() define its stable storage shape.
"""

import logging
import time
from dataclasses import dataclass, replace
from typing import Any

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_AUTH_SERVER_BASE_URL = "https://accounts.osf.io"

# Tokens are treated as expired this long before their actual expiry
TOKEN_EXPIRY_BUFFER_MS = 60 * 1000


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class TokenSet:
    """OAuth token set with expiry tracking.

    Attributes:
        access_token: The bearer access token
        refresh_token: Optional refresh token (absent for online grants)
        expires_at: When the access token expires, in epoch milliseconds
        scope: Space-separated list of granted scopes
    """

    access_token: str
    expires_at: int
    refresh_token: str | None = None
    scope: str | None = None

    def copy(self) -> "TokenSet":
        """Return an independent copy of this token set."""
        return replace(self)

    def is_expired(self, buffer_ms: int = TOKEN_EXPIRY_BUFFER_MS) -> bool:
        """Check if the access token is expired or about to expire.

        Args:
            buffer_ms: Consider the token expired this many milliseconds
                before actual expiry. Default is 60 seconds.

        Returns:
            True if now >= expires_at - buffer_ms
        """
        return now_ms() >= self.expires_at - buffer_ms

    def has_refresh_token(self) -> bool:
        """Check if this token set has a refresh token."""
        return self.refresh_token is not None and len(self.refresh_token) > 0

    def get_auth_header(self) -> str:
        """Get the Authorization header value for this token."""
        return f"Bearer {self.access_token}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize token set to dictionary for storage."""
        data: dict[str, Any] = {
            "access_token": self.access_token,
            "expires_at": self.expires_at,
        }

        if self.refresh_token:
            data["refresh_token"] = self.refresh_token

        if self.scope:
            data["scope"] = self.scope

        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TokenSet":
        """Deserialize token set from dictionary.

        Accepts both the snake_case shape written by to_dict() and the
        camelCase shape (accessToken, refreshToken, expiresAt) used by the
        JavaScript SDK, so saved sessions can be shared between the two.

        Raises:
            KeyError: If the access token or expiry is missing
            ValueError: If expires_at is not a number
        """
        def pick(snake: str, camel: str) -> Any:
            if snake in data:
                return data[snake]
            return data.get(camel)

        access_token = pick("access_token", "accessToken")
        expires_at = pick("expires_at", "expiresAt")
        if access_token is None:
            raise KeyError("access_token")
        if expires_at is None:
            raise KeyError("expires_at")

        return cls(
            access_token=access_token,
            expires_at=int(expires_at),
            refresh_token=pick("refresh_token", "refreshToken"),
            scope=data.get("scope"),
        )

    @classmethod
    def from_token_response(cls, response: dict[str, Any]) -> "TokenSet":
        """Create TokenSet from an OAuth token endpoint response.

        Args:
            response: JSON response from the token endpoint

        Returns:
            TokenSet with expires_at = now + expires_in seconds

        Raises:
            ValueError: If the response is not an object, has no access token,
                or expires_in is not a number
        """
        if not isinstance(response, dict):
            raise ValueError(f"Token response must be an object, got {type(response).__name__}")

        access_token = response.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("Token response has no access_token")

        expires_in = response.get("expires_in", 0)
        if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float, str)):
            raise ValueError(f"expires_in must be a number, got {expires_in!r}")
        expires_in = int(float(expires_in))

        return cls(
            access_token=access_token,
            expires_at=now_ms() + expires_in * 1000,
            refresh_token=response.get("refresh_token"),
            scope=response.get("scope"),
        )


@dataclass(frozen=True)
class OAuth2Config:
    """OAuth client registration for the OSF authorization server.

    Attributes:
        client_id: Client ID of the registered OSF application
        redirect_uri: Redirect URI registered with the application
        scope: Optional space-delimited scopes (e.g. "osf.full_read")
        auth_server_base_url: CAS base URL, defaults to production OSF
    """

    client_id: str
    redirect_uri: str
    scope: str | None = None
    auth_server_base_url: str = DEFAULT_AUTH_SERVER_BASE_URL

    def __post_init__(self) -> None:
        if not self.client_id or not self.client_id.strip():
            raise ConfigurationError("client_id is required")
        if not self.redirect_uri or not self.redirect_uri.strip():
            raise ConfigurationError("redirect_uri is required")

        base_url = (self.auth_server_base_url or DEFAULT_AUTH_SERVER_BASE_URL).rstrip("/")
        object.__setattr__(self, "auth_server_base_url", base_url)

    @property
    def authorization_endpoint(self) -> str:
        return f"{self.auth_server_base_url}/oauth2/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.auth_server_base_url}/oauth2/token"

    @property
    def revocation_endpoint(self) -> str:
        return f"{self.auth_server_base_url}/oauth2/revoke"
