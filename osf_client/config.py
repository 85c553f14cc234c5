"""Settings discovery and loading for the OSF client."""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .auth.tokens import DEFAULT_AUTH_SERVER_BASE_URL, OAuth2Config
from .errors import ConfigurationError
from .http import DEFAULT_API_BASE_URL

# Env file search paths in priority order
ENV_SEARCH_PATHS = [
    Path(".env"),
    Path.home() / ".config" / "osf-client" / ".env",
]

DEFAULT_TIMEOUT = 30.0


def _resolve_env_vars(value: str) -> str:
    """Resolve ${VAR} patterns in a string from environment variables.

    Missing vars resolve to empty string.
    """
    if "${" not in value:
        return value

    result = value
    for match in re.finditer(r"\$\{([^}]+)\}", value):
        result = result.replace(match.group(0), os.environ.get(match.group(1), ""))
    return result


def _env(name: str) -> str | None:
    """Read an environment variable, expanding ${VAR} references.

    Empty values are treated as unset.
    """
    value = os.environ.get(name)
    if value is None:
        return None
    value = _resolve_env_vars(value).strip()
    return value or None


@dataclass
class Settings:
    """Complete OSF client configuration."""

    token: str | None = None
    api_base_url: str = DEFAULT_API_BASE_URL
    allowed_hosts: list[str] = field(default_factory=list)
    client_id: str | None = None
    redirect_uri: str | None = None
    scope: str | None = None
    auth_server_base_url: str = DEFAULT_AUTH_SERVER_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    token_store_dir: Path | None = None
    token_profile: str = "default"
    env_path: Path | None = None

    def has_oauth2(self) -> bool:
        """Whether an OAuth2 client registration is configured."""
        return bool(self.client_id and self.redirect_uri)

    def oauth2_config(self) -> OAuth2Config:
        """Build the OAuth2 client registration.

        Raises:
            ConfigurationError: If OSF_CLIENT_ID or OSF_REDIRECT_URI is missing
        """
        if not self.has_oauth2():
            raise ConfigurationError(
                "OAuth2 is not configured. Set OSF_CLIENT_ID and OSF_REDIRECT_URI."
            )
        return OAuth2Config(
            client_id=self.client_id or "",
            redirect_uri=self.redirect_uri or "",
            scope=self.scope,
            auth_server_base_url=self.auth_server_base_url,
        )


def find_env_file(explicit_path: Path | None = None) -> Path | None:
    """Find the .env file, checking project then user level."""
    if explicit_path:
        if explicit_path.exists():
            return explicit_path
        return None

    for path in ENV_SEARCH_PATHS:
        if path.exists():
            return path
    return None


def _parse_timeout(value: str | None) -> float:
    if value is None:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(value)
    except ValueError as e:
        raise ConfigurationError(f"OSF_TIMEOUT must be a number, got {value!r}") from e
    if timeout <= 0:
        raise ConfigurationError(f"OSF_TIMEOUT must be positive, got {value!r}")
    return timeout


def load_settings(env_path: Path | None = None) -> Settings:
    """Load settings from the environment, after loading a .env file if found.

    Variables already set in the environment take precedence over the .env file.

    Args:
        env_path: Explicit path to .env file (optional)

    Returns:
        Settings populated from OSF_* variables

    Raises:
        ConfigurationError: If a value is malformed
    """
    env_file = find_env_file(env_path)
    if env_file:
        load_dotenv(env_file)

    allowed_hosts = [h.strip() for h in (_env("OSF_ALLOWED_HOSTS") or "").split(",") if h.strip()]
    store_dir = _env("OSF_TOKEN_STORE_DIR")

    return Settings(
        token=_env("OSF_TOKEN"),
        api_base_url=_env("OSF_API_URL") or DEFAULT_API_BASE_URL,
        allowed_hosts=allowed_hosts,
        client_id=_env("OSF_CLIENT_ID"),
        redirect_uri=_env("OSF_REDIRECT_URI"),
        scope=_env("OSF_SCOPE"),
        auth_server_base_url=_env("OSF_AUTH_URL") or DEFAULT_AUTH_SERVER_BASE_URL,
        timeout=_parse_timeout(_env("OSF_TIMEOUT")),
        token_store_dir=Path(store_dir).expanduser() if store_dir else None,
        token_profile=_env("OSF_TOKEN_PROFILE") or "default",
        env_path=env_file,
    )
