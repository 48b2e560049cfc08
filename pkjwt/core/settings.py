"""Application settings loaded from environment variables."""

from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

HELSEID_METADATA_URL = (
    "https://helseid-sts.utvikling.nhn.no/.well-known/openid-configuration"
)
HTTP_TIMEOUT_DEFAULT = 10.0
API_PORT_DEFAULT = 3123
WEBAPP_PORT_DEFAULT = 44123
API_NAME_DEFAULT = "norsk-helsenett:golang-sample-api"
RESOURCE_ENDPOINT_DEFAULT = f"http://localhost:{API_PORT_DEFAULT}/foo"


def _split_scopes(raw: str) -> list[str]:
    """Parse a comma- or space-separated scope list."""
    return [s for s in raw.replace(",", " ").split() if s]


class SigningKeyMissingError(RuntimeError):
    """Raised when a client is started without a signing key."""


class ProviderSettings(BaseSettings):
    """Identity provider discovery settings shared by all three programs."""

    model_config = SettingsConfigDict(env_prefix="OIDC_")

    metadata_url: str = HELSEID_METADATA_URL
    http_timeout: float = HTTP_TIMEOUT_DEFAULT


class LoggingSettings(BaseSettings):
    """Process-wide logging settings."""

    model_config = SettingsConfigDict(env_prefix="PKJWT_")

    log_level: str = "INFO"


class ApiSettings(BaseSettings):
    """Resource server settings."""

    model_config = SettingsConfigDict(env_prefix="API_")

    name: str = API_NAME_DEFAULT
    host: str = "127.0.0.1"
    port: int = API_PORT_DEFAULT

    def required_scope(self, operation: str) -> str:
        """Build a ``<api-name>/<operation>`` scope string."""
        return f"{self.name}/{operation}"


class ClientSettings(BaseSettings):
    """Settings common to clients that authenticate with private_key_jwt."""

    client_id: str = ""
    scopes: str = ""
    signing_jwk: SecretStr | None = None
    signing_jwk_file: Path | None = None
    resource_endpoint: str = RESOURCE_ENDPOINT_DEFAULT

    def get_scope_list(self) -> list[str]:
        """Return the configured scopes as a list."""
        return _split_scopes(self.scopes)

    def load_signing_jwk(self) -> str:
        """Return the private JWK JSON from the environment or a file."""
        if self.signing_jwk is not None:
            return self.signing_jwk.get_secret_value()
        if self.signing_jwk_file is not None:
            return self.signing_jwk_file.read_text(encoding="utf-8")
        raise SigningKeyMissingError(
            f"no signing key configured for client {self.client_id!r}"
        )


class WebAppSettings(ClientSettings):
    """Relying party (browser login) settings."""

    model_config = SettingsConfigDict(env_prefix="WEBAPP_")

    client_id: str = "golang-web-app"
    scopes: str = f"openid profile {API_NAME_DEFAULT}/foo"
    redirect_uri: str = f"http://localhost:{WEBAPP_PORT_DEFAULT}/callback"
    post_logout_redirect_uri: str = f"http://localhost:{WEBAPP_PORT_DEFAULT}"
    cookie_secure: bool = False
    host: str = "127.0.0.1"
    port: int = WEBAPP_PORT_DEFAULT


class M2MSettings(ClientSettings):
    """Machine-to-machine (client credentials) settings."""

    model_config = SettingsConfigDict(env_prefix="M2M_")

    client_id: str = "golang-m2m-app"
    scopes: str = f"{API_NAME_DEFAULT}/foo"


class DatabaseSettings(BaseSettings):
    """Session store connection settings."""

    model_config = SettingsConfigDict(env_prefix="WEBAPP_DB_")

    url: str = "sqlite+aiosqlite:///./pkjwt-sessions.db"
    echo: bool = False
