"""Steadycall - Resilient outbound HTTP: retries, backoff, circuit breakers.

Wraps each outbound request in a per-attempt deadline, classifies failures,
retries the transient ones with capped exponential backoff and jitter, and
optionally guards each destination with a circuit breaker.

Quick Start:
    >>> from steadycall import ResilientClient
    >>>
    >>> async with ResilientClient() as client:
    ...     response = await client.get("https://api.example.com/orders/42")
    ...     order = response.json()

Per-call overrides:
    >>> await client.post(
    ...     "https://hooks.example.com/shipped",
    ...     json_body={"order_id": 42},
    ...     max_retries=5,
    ...     timeout=2.0,
    ... )

Circuit breakers (one per destination):
    >>> from steadycall import BreakerRegistry
    >>> client = ResilientClient(breaker=BreakerRegistry(failure_threshold=5, reset_timeout=60.0))

Standalone breaker around any operation:
    >>> from steadycall import CircuitBreaker
    >>> breaker = CircuitBreaker("smtp.example.com")
    >>> await breaker.call(lambda: send_email(message))

Error handling:
    >>> from steadycall import HttpRequestError, CircuitOpenError
    >>> try:
    ...     await client.get(url)
    ... except CircuitOpenError as e:
    ...     schedule_later(e.retry_after)
    ... except HttpRequestError as e:
    ...     log.error("gave up", attempts=e.attempts, status=e.status_code)
"""

from __future__ import annotations

__version__ = "1.0.0"

# Client
from .client import ResilientClient, SleepFunc

# Config
from .foundation.config import SteadycallSettings, clear_settings_cache, get_settings

# Errors
from .foundation.errors import (
    AttemptRecord,
    CircuitOpenError,
    ClientError,
    FailureInfo,
    FailureKind,
    HttpRequestError,
    NetworkError,
    RequestTimeoutError,
    ServerError,
    SteadycallError,
    TransportError,
    TransportErrorCode,
)

# HTTP
from .http import HttpResponse, HttpxTransport, RequestDescriptor, Transport

# Concurrency
from .runtime.concurrency import Settled, SettledStatus, gather_settled

# Observability
from .runtime.observability import configure_logging, configure_logging_from_settings, get_logger, log_context

# Resilience
from .runtime.resilience import BreakerRegistry, CircuitBreaker, State

# Retry
from .runtime.retry import (
    NO_RETRY,
    Classification,
    ErrorClassifier,
    ExponentialBackoff,
    RetryObserver,
    RetryPolicy,
    backoff_delay,
)

__all__ = [
    "__version__",
    # Client
    "ResilientClient", "SleepFunc",
    # HTTP
    "RequestDescriptor", "HttpResponse", "Transport", "HttpxTransport",
    # Retry
    "RetryPolicy", "RetryObserver", "NO_RETRY", "ExponentialBackoff", "backoff_delay",
    "ErrorClassifier", "Classification",
    # Resilience
    "CircuitBreaker", "BreakerRegistry", "State",
    # Errors
    "SteadycallError", "TransportError", "TransportErrorCode", "HttpRequestError", "NetworkError",
    "RequestTimeoutError", "ServerError", "ClientError", "CircuitOpenError",
    "FailureKind", "FailureInfo", "AttemptRecord",
    # Concurrency
    "Settled", "SettledStatus", "gather_settled",
    # Config
    "SteadycallSettings", "get_settings", "clear_settings_cache",
    # Observability
    "configure_logging", "configure_logging_from_settings", "get_logger", "log_context",
]
