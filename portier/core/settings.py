"""Client, store and logging settings loaded from environment variables."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BROKER = "https://broker.portier.io"
LEEWAY_DEFAULT = 3 * 60
NONCE_TTL_DEFAULT = 15 * 60
CACHE_MIN_TTL_DEFAULT = 60 * 60
HTTP_TIMEOUT_DEFAULT = 10.0


class ClientSettings(BaseSettings):
    """Relying-party configuration, fixed for the lifetime of a Client."""

    model_config = SettingsConfigDict(env_prefix="PORTIER_", frozen=True)

    broker: str = DEFAULT_BROKER
    redirect_uri: str = "http://localhost:8000/verify"
    leeway: int = LEEWAY_DEFAULT


class StoreSettings(BaseSettings):
    """Nonce and document cache settings."""

    model_config = SettingsConfigDict(env_prefix="PORTIER_STORE_")

    backend: Literal["memory", "redis", "sql"] = "memory"
    nonce_ttl: int = NONCE_TTL_DEFAULT
    cache_min_ttl: int = CACHE_MIN_TTL_DEFAULT
    http_timeout: float = HTTP_TIMEOUT_DEFAULT
    redis_url: str = "redis://localhost:6379/0"
    database_url: str = "sqlite+aiosqlite:///portier.db"


class LogSettings(BaseSettings):
    """structlog output settings."""

    model_config = SettingsConfigDict(env_prefix="PORTIER_LOG_")

    level: str = "info"
    json_output: bool = False
