import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource
from typing_extensions import Self

from fedbroker.domain.auth.model.value import (
    PROVIDER_ID_PATTERN,
    ProviderKind,
    ResponseMode,
    TokenAuthMethod,
)
from fedbroker.util.redact import RedactingFilter

CONFIG_FILE_ENV = "FEDBROKER_CONFIG_FILE"
LOG_FILE_ENV = "FEDBROKER_LOG_FILE"

URI_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*$")


# =============================================================================
# Provider Configuration
# =============================================================================

# Family defaults; any of these may be overridden per provider
_PROVIDER_DEFAULTS: dict[ProviderKind, dict[str, Any]] = {
    ProviderKind.DISCORD: {
        "authorize_endpoint": "https://discord.com/oauth2/authorize",
        "token_endpoint": "https://discord.com/api/oauth2/token",
        "profile_endpoint": "https://discord.com/api/users/@me",
        "scopes": ["identify", "email"],
        "requires_pkce": False,
        "token_auth": TokenAuthMethod.CLIENT_SECRET_POST,
    },
    ProviderKind.X: {
        "authorize_endpoint": "https://twitter.com/i/oauth2/authorize",
        "token_endpoint": "https://api.twitter.com/2/oauth2/token",
        "profile_endpoint": "https://api.twitter.com/2/users/me",
        "scopes": ["tweet.read", "users.read"],
        "requires_pkce": True,
        "token_auth": TokenAuthMethod.CLIENT_SECRET_BASIC,
    },
}


class ProviderConfig(BaseModel):
    """OAuth2 client configuration for one provider.

    `kind` picks the provider family, which supplies endpoint, scope, PKCE and
    token-auth defaults. The `id` is taken from the key under `providers`.
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    kind: ProviderKind
    client_id: str = ""
    client_secret: str = Field(default="", repr=False)
    redirect_uri: str = ""
    authorize_endpoint: str
    token_endpoint: str
    profile_endpoint: str
    scopes: tuple[str, ...]
    requires_pkce: bool
    token_auth: TokenAuthMethod

    @model_validator(mode="before")
    @classmethod
    def apply_kind_defaults(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("kind") is not None:
            defaults = _PROVIDER_DEFAULTS[ProviderKind(data["kind"])]
            explicit = {k: v for k, v in data.items() if v is not None}
            return {**defaults, **explicit}
        return data

    @field_validator("scopes", mode="before")
    @classmethod
    def split_scope_string(cls, v: Any) -> Any:
        # Accept "identify email" as well as a list
        if isinstance(v, str):
            return tuple(v.split())
        return v

    @property
    def scope(self) -> str:
        """Scopes joined for the `scope` authorize parameter."""
        return " ".join(self.scopes)


class BrokerConfig(BaseModel):
    """How completed logins are handed back to the client."""

    response_mode: ResponseMode = ResponseMode.DEEP_LINK
    deep_link_scheme: str = "app-scheme"
    pkce_ttl_seconds: float = Field(default=600.0, gt=0)

    @field_validator("deep_link_scheme")
    @classmethod
    def validate_scheme(cls, v: str) -> str:
        if not URI_SCHEME_PATTERN.match(v):
            raise ValueError(f"Invalid URI scheme: {v!r}")
        return v


# =============================================================================
# Backend Configuration
# =============================================================================


class JwtConfig(BaseModel):
    """Signing settings for locally minted custom tokens."""

    secret: str = Field(default="", repr=False)  # Must be set when backend.kind == "local"
    algorithm: str = "HS256"
    issuer: str = "fedbroker"
    audience: str = "fedbroker"
    expire_minutes: int = 60  # 1 hour, matching Firebase custom tokens


class LocalBackendConfig(BaseModel):
    jwt: JwtConfig = JwtConfig()


class FirebaseConfig(BaseModel):
    credentials_file: str | None = None  # Service account JSON; None = application default
    project_id: str | None = None
    app_name: str = "fedbroker"


class BackendConfig(BaseModel):
    """Identity/credential backend selection."""

    kind: Literal["local", "firebase"] = "local"
    timeout_seconds: float = Field(default=10.0, gt=0)
    local: LocalBackendConfig = LocalBackendConfig()
    firebase: FirebaseConfig = FirebaseConfig()


class DatabaseConfig(BaseModel):
    """Database for the local backend's identity store."""

    url: str = "sqlite+aiosqlite:///~/.local/share/fedbroker/identities.db"
    echo: bool = False
    auto_create: bool = True  # Create tables on startup


# =============================================================================
# Application Configuration
# =============================================================================


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by FEDBROKER_CONFIG_FILE env var."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        yaml_data = self._load_yaml_config()
        field_value = yaml_data.get(field_name)
        return field_value, field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        config_file = os.environ.get(CONFIG_FILE_ENV)
        if config_file:
            path = Path(config_file).expanduser()
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class Server(BaseModel):
    name: str = "fedbroker"
    version: str = "0.1.0"
    description: str = "Identity-federation broker for OAuth2 providers"


class LoggingConfig(BaseModel):
    """Logging configuration (nested in Config, uses env_nested_delimiter)."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from FEDBROKER_LOG_FILE env var."""
        return os.environ.get(LOG_FILE_ENV)


class HttpConfig(BaseModel):
    """Timeouts for outbound provider requests, in seconds."""

    connect_timeout: float = 5.0
    read_timeout: float = 10.0
    write_timeout: float = 5.0
    pool_timeout: float = 5.0


class CorsConfig(BaseModel):
    allow_origins: list[str] = ["*"]


class Config(BaseSettings):
    server: Server = Server()
    logging: LoggingConfig = LoggingConfig()
    http: HttpConfig = HttpConfig()
    cors: CorsConfig = CorsConfig()
    broker: BrokerConfig = BrokerConfig()
    providers: dict[str, ProviderConfig] = {}
    backend: BackendConfig = BackendConfig()
    database: DatabaseConfig = DatabaseConfig()

    model_config = {
        "env_prefix": "FEDBROKER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # Allows FEDBROKER_BROKER__RESPONSE_MODE override
    }

    @model_validator(mode="after")
    def bind_provider_ids(self) -> Self:
        """Stamp each provider with its key, which becomes the uid namespace."""
        bound: dict[str, ProviderConfig] = {}
        for key, provider in self.providers.items():
            if not PROVIDER_ID_PATTERN.match(key):
                raise ValueError(f"Invalid provider id {key!r}: use [a-z0-9_-]")
            bound[key] = provider.model_copy(update={"id": key})
        self.providers = bound
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config.

        Priority (highest to lowest):
        1. init_settings - values passed to Config()
        2. env_settings - environment variables
        3. dotenv_settings - .env file
        4. yaml_settings - FEDBROKER_CONFIG_FILE yaml
        5. file_secret_settings - secrets from files
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Configure Python logging based on config.

    Every handler gets a RedactingFilter so secrets never reach log output.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(config.format, datefmt=config.date_format)

    handler: logging.Handler
    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(config.level)
    handler.setFormatter(formatter)
    handler.addFilter(RedactingFilter())
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
