"""osf-client - An async Python client for the OSF API v2."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("osf-client")
except PackageNotFoundError:
    __version__ = "0.1.0"  # Fallback for development

__all__ = [
    "__version__",
    "OsfClient",
    "HttpClient",
    "PaginatedResult",
    "transform_single",
    "transform_list",
    "Settings",
    "load_settings",
    "OsfOAuth2Client",
    "OAuth2Config",
    "TokenSet",
    "generate_pkce_challenge",
]

# Lazy imports keep `import osf_client` cheap
def __getattr__(name: str) -> object:
    """Lazy import module components."""
    if name == "OsfClient":
        from .client import OsfClient
        return OsfClient
    elif name == "HttpClient":
        from .http import HttpClient
        return HttpClient
    elif name == "PaginatedResult":
        from .pagination import PaginatedResult
        return PaginatedResult
    elif name in ("transform_single", "transform_list"):
        from .adapter import transform_list, transform_single
        return {"transform_single": transform_single, "transform_list": transform_list}[name]
    elif name in ("Settings", "load_settings"):
        from .config import Settings, load_settings
        return {"Settings": Settings, "load_settings": load_settings}[name]
    elif name in ("OsfOAuth2Client", "OAuth2Config", "TokenSet", "generate_pkce_challenge"):
        from . import auth
        return getattr(auth, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
