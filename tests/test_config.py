"""Unit tests for settings loading."""

import pytest
from pydantic import ValidationError

from nsclient.config import DEFAULT_TOKEN_URL, load_settings
from nsclient.errors import ConfigError


class TestLoadSettings:
    """Tests for load_settings."""

    def test_reads_environment(self, env):
        settings = load_settings()

        assert settings.platform_api_hostname == "platform.example.com"
        assert settings.platform_api_cluster == "dev-cluster"
        assert settings.platform_api_timeout == 30.0
        assert settings.token_url == "https://login.example.com/test-tenant/oauth2/v2.0/token"

    def test_credentials(self, env):
        credentials = load_settings().credentials

        assert credentials.client_id == "test-client"
        assert credentials.client_secret == "s3cret"
        assert credentials.scope == "api://platform/.default"
        assert credentials.tenant == "test-tenant"

    def test_credentials_are_immutable(self, env):
        credentials = load_settings().credentials
        with pytest.raises(ValidationError):
            credentials.client_id = "other"

    def test_overrides_win(self, env):
        settings = load_settings(hostname="other.example.com", cluster="prod", tenant="t2")

        assert settings.platform_api_hostname == "other.example.com"
        assert settings.platform_api_cluster == "prod"
        assert settings.credentials.tenant == "t2"
        assert "/t2/" in settings.token_url

    def test_default_token_url(self, env, monkeypatch):
        monkeypatch.delenv("PLATFORM_API_TOKEN_URL")
        settings = load_settings()

        assert settings.platform_api_token_url == DEFAULT_TOKEN_URL
        assert settings.token_url == "https://login.microsoftonline.com/test-tenant/oauth2/v2.0/token"

    @pytest.mark.parametrize(
        "var",
        [
            "CLIENT_ID",
            "CLIENT_SECRET",
            "SCOPE",
            "PLATFORM_API_TENANT",
            "PLATFORM_API_HOSTNAME",
            "PLATFORM_API_CLUSTER",
        ],
    )
    def test_missing_variable(self, env, monkeypatch, var):
        monkeypatch.delenv(var)

        with pytest.raises(ConfigError, match=var):
            load_settings()

    def test_missing_variable_satisfied_by_override(self, env, monkeypatch):
        monkeypatch.delenv("PLATFORM_API_CLUSTER")

        assert load_settings(cluster="prod").platform_api_cluster == "prod"

    def test_all_missing_reported(self, env, monkeypatch):
        monkeypatch.delenv("CLIENT_ID")
        monkeypatch.delenv("SCOPE")

        with pytest.raises(ConfigError) as exc_info:
            load_settings()

        assert "CLIENT_ID" in str(exc_info.value)
        assert "SCOPE" in str(exc_info.value)

    def test_invalid_timeout(self, env, monkeypatch):
        monkeypatch.setenv("PLATFORM_API_TIMEOUT", "-1")

        with pytest.raises(ConfigError, match="PLATFORM_API_TIMEOUT"):
            load_settings()

    @pytest.mark.parametrize(
        "template",
        [
            "https://login.example.com/{tenant}/{version}/token",
            "https://login.example.com/{0}/token",
            "https://login.example.com/{tenant/token",
        ],
    )
    def test_invalid_token_url_template(self, env, monkeypatch, template):
        monkeypatch.setenv("PLATFORM_API_TOKEN_URL", template)

        with pytest.raises(ConfigError, match="PLATFORM_API_TOKEN_URL"):
            load_settings()

    def test_dotenv_file(self, env, monkeypatch, tmp_path):
        monkeypatch.delenv("PLATFORM_API_CLUSTER")
        (tmp_path / ".env").write_text("PLATFORM_API_CLUSTER=from-dotenv\n")

        assert load_settings().platform_api_cluster == "from-dotenv"
