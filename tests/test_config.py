"""Tests for config module."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from osf_client.auth.tokens import DEFAULT_AUTH_SERVER_BASE_URL
from osf_client.config import (
    DEFAULT_TIMEOUT,
    Settings,
    _resolve_env_vars,
    find_env_file,
    load_settings,
)
from osf_client.errors import ConfigurationError
from osf_client.http import DEFAULT_API_BASE_URL


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    """Run with no OSF_* variables and no discoverable .env file.

    patch.dict restores os.environ afterwards, including anything load_dotenv set.
    """
    monkeypatch.chdir(tmp_path)
    with patch.dict(os.environ):
        for key in [k for k in os.environ if k.startswith("OSF_")]:
            del os.environ[key]
        with patch("osf_client.config.ENV_SEARCH_PATHS", [tmp_path / ".env"]):
            yield tmp_path


class TestResolveEnvVars:
    """Tests for ${VAR} expansion."""

    def test_static_value(self):
        assert _resolve_env_vars("plain") == "plain"

    def test_substitution(self):
        with patch.dict(os.environ, {"MY_TOKEN": "secret-token"}):
            assert _resolve_env_vars("${MY_TOKEN}") == "secret-token"

    def test_multiple_and_partial(self):
        with patch.dict(os.environ, {"HOST": "api.test.osf.io", "VER": "v2"}):
            assert _resolve_env_vars("https://${HOST}/${VER}/") == "https://api.test.osf.io/v2/"

    def test_missing_var_resolves_empty(self):
        with patch.dict(os.environ, {}, clear=True):
            assert _resolve_env_vars("${NOPE}") == ""


class TestFindEnvFile:
    """Tests for .env discovery."""

    def test_explicit_path(self, tmp_path):
        env_file = tmp_path / "custom.env"
        env_file.write_text("OSF_TOKEN=x\n")
        assert find_env_file(env_file) == env_file

    def test_explicit_path_missing(self, tmp_path):
        assert find_env_file(tmp_path / "missing.env") is None

    def test_search_paths(self, clean_env):
        env_file = clean_env / ".env"
        env_file.write_text("OSF_TOKEN=x\n")
        assert find_env_file() == env_file

    def test_nothing_found(self, clean_env):
        assert find_env_file() is None


class TestLoadSettings:
    """Tests for loading settings from the environment."""

    def test_defaults(self, clean_env):
        settings = load_settings()

        assert settings.token is None
        assert settings.api_base_url == DEFAULT_API_BASE_URL
        assert settings.allowed_hosts == []
        assert settings.auth_server_base_url == DEFAULT_AUTH_SERVER_BASE_URL
        assert settings.timeout == DEFAULT_TIMEOUT
        assert settings.token_store_dir is None
        assert settings.token_profile == "default"
        assert settings.env_path is None
        assert not settings.has_oauth2()

    def test_reads_environment(self, clean_env):
        os.environ.update(
            {
                "OSF_TOKEN": "pat",
                "OSF_API_URL": "https://api.test.osf.io/v2/",
                "OSF_ALLOWED_HOSTS": "files.test.osf.io, storage.example.org ,",
                "OSF_CLIENT_ID": "client",
                "OSF_REDIRECT_URI": "https://app.example.com/callback",
                "OSF_SCOPE": "osf.full_write",
                "OSF_AUTH_URL": "https://accounts.test.osf.io",
                "OSF_TIMEOUT": "12.5",
                "OSF_TOKEN_STORE_DIR": str(clean_env / "tokens"),
                "OSF_TOKEN_PROFILE": "work",
            }
        )

        settings = load_settings()

        assert settings.token == "pat"
        assert settings.api_base_url == "https://api.test.osf.io/v2/"
        assert settings.allowed_hosts == ["files.test.osf.io", "storage.example.org"]
        assert settings.scope == "osf.full_write"
        assert settings.timeout == 12.5
        assert settings.token_store_dir == clean_env / "tokens"
        assert settings.token_profile == "work"
        assert settings.has_oauth2()

    def test_loads_env_file(self, clean_env):
        env_file = clean_env / ".env"
        env_file.write_text("OSF_TOKEN=from_file\nOSF_CLIENT_ID=file_client\n")

        settings = load_settings()

        assert settings.token == "from_file"
        assert settings.client_id == "file_client"
        assert settings.env_path == env_file

    def test_environment_wins_over_env_file(self, clean_env):
        (clean_env / ".env").write_text("OSF_TOKEN=from_file\n")
        os.environ["OSF_TOKEN"] = "from_env"

        assert load_settings().token == "from_env"

    def test_explicit_env_path(self, clean_env):
        env_file = clean_env / "other.env"
        env_file.write_text("OSF_TOKEN=explicit\n")

        settings = load_settings(env_file)

        assert settings.token == "explicit"
        assert settings.env_path == env_file

    def test_variable_expansion(self, clean_env):
        os.environ["PAT_SECRET"] = "expanded"
        os.environ["OSF_TOKEN"] = "${PAT_SECRET}"

        assert load_settings().token == "expanded"

    def test_empty_value_is_unset(self, clean_env):
        os.environ["OSF_TOKEN"] = "   "
        os.environ["OSF_API_URL"] = ""

        settings = load_settings()

        assert settings.token is None
        assert settings.api_base_url == DEFAULT_API_BASE_URL

    @pytest.mark.parametrize("value", ["soon", "0", "-5"])
    def test_invalid_timeout(self, clean_env, value):
        os.environ["OSF_TIMEOUT"] = value

        with pytest.raises(ConfigurationError, match="OSF_TIMEOUT"):
            load_settings()

    def test_store_dir_expands_user(self, clean_env):
        os.environ["OSF_TOKEN_STORE_DIR"] = "~/osf-tokens"
        assert load_settings().token_store_dir == Path.home() / "osf-tokens"


class TestSettings:
    """Tests for the Settings dataclass."""

    def test_oauth2_config(self):
        settings = Settings(
            client_id="client",
            redirect_uri="https://app.example.com/callback",
            scope="osf.full_read",
            auth_server_base_url="https://accounts.test.osf.io",
        )

        config = settings.oauth2_config()

        assert config.client_id == "client"
        assert config.scope == "osf.full_read"
        assert config.token_endpoint == "https://accounts.test.osf.io/oauth2/token"

    @pytest.mark.parametrize(
        "client_id,redirect_uri",
        [(None, "https://app.example.com/callback"), ("client", None), (None, None)],
    )
    def test_oauth2_not_configured(self, client_id, redirect_uri):
        settings = Settings(client_id=client_id, redirect_uri=redirect_uri)

        with pytest.raises(ConfigurationError, match="OAuth2 is not configured"):
            settings.oauth2_config()
