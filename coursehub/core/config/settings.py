# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

Settings are loaded from environment variables with sensible defaults.
The Settings class aggregates all subsettings; a cached instance is provided
via get_settings() for dependency injection.

Example:
    >>> from coursehub.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> settings.gateway.url
    'http://localhost:1001/api'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewaySettings(BaseSettings):
    """API gateway in front of the LMS microservices.

    Every source collection is read through the gateway, which forwards to
    the owning service (users, courses, content, assessments, payments,
    reports, logs).

    Attributes:
        url: Base URL including the /api prefix.
        timeout: Per-request timeout in seconds.
        service_token: Token used when a call carries no user session.
    """

    model_config = SettingsConfigDict(
        env_prefix="GATEWAY_",
        extra="ignore",
    )

    url: str = "http://localhost:1001/api"
    timeout: float = 10.0
    service_token: SecretStr | None = None

    @property
    def base_url(self) -> str:
        """Gateway URL without trailing slash."""
        return self.url.rstrip("/")


class AggregationSettings(BaseSettings):
    """View assembly configuration.

    Attributes:
        max_concurrency: Maximum fetches in flight per batch (0 = unbounded).
        include_inactive_announcements: Count inactive announcements on the
            dashboard instead of only active ones.
    """

    model_config = SettingsConfigDict(
        env_prefix="AGGREGATION_",
        extra="ignore",
    )

    max_concurrency: int = Field(default=0, ge=0)
    include_inactive_announcements: bool = False


class ActivityLogSettings(BaseSettings):
    """Audit trail written to the activity-logs service after writes.

    Attributes:
        enabled: Whether successful writes are logged.
    """

    model_config = SettingsConfigDict(
        env_prefix="ACTIVITY_LOG_",
        extra="ignore",
    )

    enabled: bool = True


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        host: Host to bind to.
        port: Port to listen on.
        title: OpenAPI title.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 1010
    title: str = "CourseHub Views API"


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        gateway: API gateway settings.
        aggregation: View assembly settings.
        activity_log: Audit trail settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    aggregation: AggregationSettings = Field(default_factory=AggregationSettings)
    activity_log: ActivityLogSettings = Field(default_factory=ActivityLogSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production against a plain-HTTP gateway.
        """
        if self.environment == "production" and not self.gateway.url.startswith("https://"):
            raise ValueError(
                "Gateway URL must use HTTPS in production. "
                "Set GATEWAY_URL environment variable."
            )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing or reloading from a changed environment.
    """
    get_settings.cache_clear()
