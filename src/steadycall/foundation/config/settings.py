"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated defaults for retry policies, circuit breakers,
the HTTP transport, and logging. Supports .env files and nested configuration.

Example:
    >>> from steadycall.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.retry.max_retries
    3
    >>> settings.breaker.reset_timeout
    60.0

    # Or with environment variables:
    # STEADYCALL_RETRY_MAX_RETRIES=5
    # STEADYCALL_BREAKER_FAILURE_THRESHOLD=10
    # STEADYCALL_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import (
    Field,
    NonNegativeFloat,
    PositiveFloat,
    PositiveInt,
    computed_field,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({500, 502, 503, 504})
DEFAULT_RETRYABLE_ERROR_CODES: frozenset[str] = frozenset({
    "ECONNRESET", "ENOTFOUND", "ECONNREFUSED", "ETIMEDOUT", "ECONNABORTED", "ESOCKET", "EAI_AGAIN",
})


class RetrySettings(BaseSettings):
    """Default retry policy configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STEADYCALL_RETRY_",
        extra="ignore",
    )

    timeout: PositiveFloat = Field(default=10.0, description="Per-attempt deadline in seconds")
    max_retries: Annotated[int, Field(ge=0, le=20)] = 3
    base_delay: NonNegativeFloat = Field(default=1.0, description="Base delay in seconds")
    max_delay: NonNegativeFloat = Field(default=30.0, description="Maximum delay in seconds")
    multiplier: Annotated[float, Field(ge=1.0)] = 2.0
    jitter: bool = True
    retryable_status_codes: frozenset[int] = DEFAULT_RETRYABLE_STATUS_CODES
    # Set-valued env vars are JSON: STEADYCALL_RETRY_RETRYABLE_STATUS_CODES='[502, 503]'
    retryable_error_codes: frozenset[str] = DEFAULT_RETRYABLE_ERROR_CODES


class BreakerSettings(BaseSettings):
    """Default circuit breaker configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STEADYCALL_BREAKER_",
        extra="ignore",
    )

    failure_threshold: PositiveInt = Field(default=5, description="Consecutive failures before opening")
    reset_timeout: PositiveFloat = Field(default=60.0, description="Seconds before a probe is allowed")
    half_open_max_calls: PositiveInt = Field(default=1, description="Concurrent probes admitted in HALF_OPEN")


class HttpSettings(BaseSettings):
    """HTTP transport default configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STEADYCALL_HTTP_",
        extra="ignore",
    )

    base_url: str | None = Field(default=None, description="Prefix for relative request URLs")
    verify_ssl: bool = True
    follow_redirects: bool = True
    max_redirects: PositiveInt = Field(default=10)
    user_agent: str = "steadycall/1.0"
    accept: str = "application/json"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STEADYCALL_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v

    @field_validator("format", mode="before")
    @classmethod
    def _lower_format(cls, v: str) -> str:
        return v.lower() if isinstance(v, str) else v


class SteadycallSettings(BaseSettings):
    """Root settings for steadycall.

    Loads configuration from environment variables with STEADYCALL_ prefix.
    Supports nested configuration and .env files.

    Example environment variables:
        STEADYCALL_ENVIRONMENT=production
        STEADYCALL_RETRY_TIMEOUT=15
        STEADYCALL_BREAKER_RESET_TIMEOUT=120
        STEADYCALL_HTTP_USER_AGENT=warehouse/2.0
        STEADYCALL_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="STEADYCALL_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    environment: Literal["development", "staging", "production"] = "development"

    # Nested settings (loaded with STEADYCALL_RETRY_, STEADYCALL_BREAKER_, etc.)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    breaker: BreakerSettings = Field(default_factory=BreakerSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("environment", mode="before")
    @classmethod
    def _normalize_env(cls, v: str) -> str:
        """Normalize environment name to lowercase."""
        return v.lower() if isinstance(v, str) else v

    @computed_field
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> SteadycallSettings:
    """Get the global settings instance (cached).

    Returns:
        Cached SteadycallSettings instance
    """
    return SteadycallSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
