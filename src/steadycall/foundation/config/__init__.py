"""Configuration management using pydantic-settings.

Provides environment-based configuration with type safety and validation.
"""

from .settings import (
    DEFAULT_RETRYABLE_ERROR_CODES,
    DEFAULT_RETRYABLE_STATUS_CODES,
    BreakerSettings,
    HttpSettings,
    LoggingSettings,
    RetrySettings,
    SteadycallSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "BreakerSettings",
    "HttpSettings",
    "LoggingSettings",
    "RetrySettings",
    "SteadycallSettings",
    "DEFAULT_RETRYABLE_ERROR_CODES",
    "DEFAULT_RETRYABLE_STATUS_CODES",
    "clear_settings_cache",
    "get_settings",
]
