"""Tests for environment-driven configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from steadycall.foundation.config import (
    DEFAULT_RETRYABLE_STATUS_CODES,
    BreakerSettings,
    LoggingSettings,
    RetrySettings,
    clear_settings_cache,
    get_settings,
)
from steadycall.runtime.retry import RetryPolicy


def test_defaults() -> None:
    settings = get_settings()
    assert settings.environment == "development"
    assert not settings.is_production
    assert settings.retry.timeout == 10.0
    assert settings.retry.retryable_status_codes == DEFAULT_RETRYABLE_STATUS_CODES
    assert settings.breaker.failure_threshold == 5
    assert settings.http.user_agent == "steadycall/1.0"
    assert settings.logging.level == "INFO"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STEADYCALL_ENVIRONMENT", "Production")
    monkeypatch.setenv("STEADYCALL_RETRY_MAX_RETRIES", "5")
    monkeypatch.setenv("STEADYCALL_RETRY_RETRYABLE_STATUS_CODES", "[429, 503]")
    monkeypatch.setenv("STEADYCALL_BREAKER_RESET_TIMEOUT", "120")
    settings = get_settings()
    assert settings.is_production
    assert settings.retry.max_retries == 5
    assert settings.retry.retryable_status_codes == frozenset({429, 503})
    assert settings.breaker.reset_timeout == 120.0


def test_cache_is_cleared(monkeypatch: pytest.MonkeyPatch) -> None:
    first = get_settings()
    assert get_settings() is first
    monkeypatch.setenv("STEADYCALL_RETRY_TIMEOUT", "2.5")
    assert get_settings().retry.timeout == 10.0
    clear_settings_cache()
    assert get_settings().retry.timeout == 2.5


def test_logging_values_normalized() -> None:
    settings = LoggingSettings(level="debug", format="JSON")
    assert (settings.level, settings.format) == ("DEBUG", "json")
    with pytest.raises(ValidationError):
        LoggingSettings(format="xml")


def test_invalid_values_rejected() -> None:
    with pytest.raises(ValidationError):
        RetrySettings(max_retries=21)
    with pytest.raises(ValidationError):
        RetrySettings(multiplier=0.5)
    with pytest.raises(ValidationError):
        BreakerSettings(failure_threshold=0)


def test_policy_reads_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STEADYCALL_RETRY_BASE_DELAY", "0.25")
    monkeypatch.setenv("STEADYCALL_RETRY_JITTER", "false")
    policy = RetryPolicy.from_settings()
    assert policy.base_delay == 0.25
    assert policy.jitter is False
    assert policy.delay(3) == 1.0
