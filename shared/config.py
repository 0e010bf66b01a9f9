"""
Shared configuration management for the Lenslearn services.
"""

from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_ALLOWED_LINK_DOMAINS = [
    "khanacademy.org",
    "youtube.com",
    "youtube-nocookie.com",
    "oercommons.org",
    "openstax.org",
    "wikimedia.org",
    "pbs.org",
    "nationalgeographic.com",
    "edutopia.org",
    "creativecommons.org",
]


def _split_csv(value):
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias="LENSLEARN_ENV")
    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", validation_alias="HOST")


class GatewayConfig(BaseConfig):
    """Content gateway settings."""

    port: int = Field(default=4000, validation_alias="PORT")

    # Cache
    cache_ttl_seconds: int = Field(default=3600, gt=0, validation_alias="CACHE_TTL_SECONDS")
    cache_max_entries: int = Field(default=1024, gt=0, validation_alias="CACHE_MAX_ENTRIES")
    cache_sweep_interval_seconds: float = Field(
        default=300.0, ge=0, validation_alias="CACHE_SWEEP_INTERVAL_SECONDS"
    )

    # Generation provider
    openai_api_key: Optional[str] = Field(default=None, validation_alias="OPENAI_API_KEY")
    provider_base_url: str = Field(default="https://api.openai.com/v1", validation_alias="PROVIDER_BASE_URL")
    provider_model: str = Field(default="gpt-4o-mini", validation_alias="PROVIDER_MODEL")
    provider_timeout_seconds: float = Field(default=30.0, gt=0, validation_alias="PROVIDER_TIMEOUT_SECONDS")

    # Content safety
    # Comma-separated in the environment
    allowed_link_domains: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_LINK_DOMAINS),
        validation_alias="ALLOWED_LINK_DOMAINS",
    )

    # HTTP surface
    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["*"], validation_alias="CORS_ORIGINS")
    static_dir: Optional[str] = Field(default=None, validation_alias="STATIC_DIR")

    @field_validator("allowed_link_domains", "cors_origins", mode="before")
    @classmethod
    def parse_csv(cls, value):
        return _split_csv(value)

    @field_validator("allowed_link_domains")
    @classmethod
    def lowercase_domains(cls, value: List[str]) -> List[str]:
        return [domain.lower() for domain in value]


class ProxyConfig(BaseConfig):
    """Reverse proxy settings."""

    port: int = Field(default=5000, validation_alias="PORT")
    target: Optional[str] = Field(default=None, validation_alias="TARGET")
    timeout_seconds: float = Field(default=60.0, gt=0, validation_alias="PROXY_TIMEOUT_SECONDS")
    connect_timeout_seconds: float = Field(default=10.0, gt=0, validation_alias="PROXY_CONNECT_TIMEOUT_SECONDS")


def get_gateway_config(**overrides) -> GatewayConfig:
    """Load gateway configuration from the environment."""
    return GatewayConfig(**overrides)


def get_proxy_config(**overrides) -> ProxyConfig:
    """Load proxy configuration from the environment."""
    return ProxyConfig(**overrides)
