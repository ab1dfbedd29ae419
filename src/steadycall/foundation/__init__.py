"""Foundation - Core building blocks for steadycall.

Contains: error taxonomy, shared types, config.
"""

from __future__ import annotations

__all__ = [
    # Errors
    "FailureKind", "TransportErrorCode", "NETWORK_ERROR_CODES", "TIMEOUT_ERROR_CODES",
    "SteadycallError", "TransportError", "HttpRequestError", "NetworkError", "RequestTimeoutError",
    "ServerError", "ClientError", "CircuitOpenError", "FailureInfo",
    "AttemptRecord", "CircuitStateDict", "JsonDict",
    # Config
    "SteadycallSettings", "get_settings", "clear_settings_cache",
    "RetrySettings", "BreakerSettings", "HttpSettings", "LoggingSettings",
]


def __getattr__(name: str):
    """Lazy imports to avoid circular dependencies."""
    if name in ("SteadycallSettings", "get_settings", "clear_settings_cache",
                "RetrySettings", "BreakerSettings", "HttpSettings", "LoggingSettings"):
        from . import config
        return getattr(config, name)

    if name in __all__:
        from . import errors
        return getattr(errors, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
