"""Configuration management for the namespace client."""

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from nsclient.errors import ConfigError
from nsclient.models import Credentials

DEFAULT_TOKEN_URL = "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token"


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OAuth client credentials
    client_id: str
    client_secret: str
    scope: str

    # Platform API
    platform_api_tenant: str
    platform_api_hostname: str
    platform_api_cluster: str
    platform_api_token_url: str = Field(default=DEFAULT_TOKEN_URL)
    platform_api_timeout: float = Field(default=30.0, gt=0)

    @field_validator("platform_api_token_url")
    @classmethod
    def _check_token_url(cls, v: str) -> str:
        try:
            v.format(tenant="tenant")
        except (KeyError, IndexError, AttributeError, ValueError) as e:
            raise ValueError(f"only the {{tenant}} placeholder is supported, got {v!r}") from e
        return v

    @property
    def credentials(self) -> Credentials:
        return Credentials(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=self.scope,
            tenant=self.platform_api_tenant,
        )

    @property
    def token_url(self) -> str:
        return self.platform_api_token_url.format(tenant=self.platform_api_tenant)


def load_settings(
    hostname: str | None = None,
    cluster: str | None = None,
    tenant: str | None = None,
) -> Settings:
    """Load settings, letting explicit CLI values win over the environment.

    Raises ConfigError naming every missing variable.
    """
    overrides = {
        "platform_api_hostname": hostname,
        "platform_api_cluster": cluster,
        "platform_api_tenant": tenant,
    }
    overrides = {k: v for k, v in overrides.items() if v}

    try:
        return Settings(**overrides)
    except ValidationError as e:
        missing = []
        invalid = []
        for err in e.errors():
            name = str(err["loc"][0]).upper() if err["loc"] else "?"
            if err["type"] == "missing":
                missing.append(name)
            else:
                invalid.append(f"{name}: {err['msg']}")
        parts = []
        if missing:
            parts.append(f"Could not get {', '.join(missing)} from environment")
        if invalid:
            parts.append("Invalid configuration: " + "; ".join(invalid))
        raise ConfigError("Environment Error: " + ". ".join(parts)) from e
