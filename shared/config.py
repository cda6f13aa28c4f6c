"""
Shared configuration management for the update edge cache.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="UPDATER_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Origin
    host_url: str = Field(default="http://localhost:8080")
    origin_timeout_seconds: float = Field(default=10.0)

    # Cache store
    cache_backend: str = Field(default="redis")
    redis_url: str = Field(default="redis://localhost:6379/0")
    cache_namespace: str = Field(default="update")
    cache_chunk_size: int = Field(default=26214400)
    cache_max_value_size: Optional[int] = Field(default=None)

    # Freshness policy
    cache_timeout_ms: int = Field(default=300000)
    refresh_on_confirm: bool = Field(default=True)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
