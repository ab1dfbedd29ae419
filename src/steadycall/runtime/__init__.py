"""Runtime - Retry, resilience, concurrency and observability.

Contains: retry policy and backoff, error classification, circuit breakers,
settled gathering, structured logging.
"""

from __future__ import annotations

__all__ = [
    # Retry
    "Backoff", "ExponentialBackoff", "ConstantBackoff", "backoff_delay",
    "Classification", "ErrorClassifier",
    "RetryPolicy", "RetryObserver", "NO_RETRY",
    # Resilience
    "CircuitBreaker", "CircuitState", "State", "BreakerRegistry",
    # Concurrency
    "Settled", "SettledStatus", "gather_settled",
    # Observability
    "BoundLogger", "get_logger", "configure_logging", "configure_logging_from_settings", "log_context",
]


def __getattr__(name: str):
    """Lazy imports to avoid circular dependencies."""
    if name in {"Backoff", "ExponentialBackoff", "ConstantBackoff", "backoff_delay",
                "Classification", "ErrorClassifier", "RetryPolicy", "RetryObserver", "NO_RETRY"}:
        from . import retry
        return getattr(retry, name)

    if name in {"CircuitBreaker", "CircuitState", "State", "BreakerRegistry"}:
        from . import resilience
        return getattr(resilience, name)

    if name in {"Settled", "SettledStatus", "gather_settled"}:
        from . import concurrency
        return getattr(concurrency, name)

    if name in {"BoundLogger", "get_logger", "configure_logging", "configure_logging_from_settings", "log_context"}:
        from . import observability
        return getattr(observability, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
