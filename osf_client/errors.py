"""Error types raised by the OSF client.

Every error raised by this package derives from OsfError. HTTP failures
returned by the API are mapped onto the OsfApiError hierarchy by status code.
"""


class OsfError(Exception):
    """Base class for all osf-client errors."""

    pass


class ConfigurationError(OsfError):
    """Required configuration is missing or invalid."""

    pass


class OsfApiError(OsfError):
    """An OSF API request failed.

    Attributes:
        status_code: HTTP status code, or None if no response was received
    """

    default_message = "OSF API request failed"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        super().__init__(message or self.default_message)
        self.status_code = status_code


class OsfAuthenticationError(OsfApiError):
    """Authentication failed (401)."""

    default_message = "Authentication failed"


class OsfPermissionError(OsfApiError):
    """The credential lacks permission for the request (403)."""

    default_message = "Permission denied"


class OsfNotFoundError(OsfApiError):
    """The requested resource does not exist (404)."""

    default_message = "Resource not found"


class OsfRateLimitError(OsfApiError):
    """The rate limit was exceeded (429).

    Attributes:
        retry_after: Seconds to wait before retrying, from the Retry-After header
    """

    default_message = "Rate limit exceeded"

    def __init__(
        self,
        message: str | None = None,
        status_code: int | None = 429,
        retry_after: float | None = None,
    ):
        super().__init__(message, status_code)
        self.retry_after = retry_after


class OsfServerError(OsfApiError):
    """The OSF server returned a 5xx error."""

    default_message = "Internal server error"


class OsfNetworkError(OsfApiError):
    """The request could not be sent or no response was received."""

    default_message = "Network error"


class UntrustedHostError(OsfError):
    """An absolute URL points at a host outside the allow-list.

    Raised before any request is sent so the Authorization header never
    reaches an untrusted origin.
    """

    pass
