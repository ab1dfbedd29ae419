"""Unified error handling for steadycall.

- FailureKind: Normalized classification of a failed attempt
- TransportErrorCode: Transport-level failure identifiers
- FailureInfo: Structured, serializable failure detail
- HttpRequestError and subclasses: Terminal errors carrying attempt history
- CircuitOpenError: Call rejected by an open circuit
"""

from .errors import (
    NETWORK_ERROR_CODES,
    TIMEOUT_ERROR_CODES,
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
from .types import AttemptOutcome, AttemptRecord, CircuitStateDict, JsonDict, JsonMapping, JsonValue

__all__ = [
    # Classification
    "FailureKind", "TransportErrorCode", "NETWORK_ERROR_CODES", "TIMEOUT_ERROR_CODES",
    # Errors
    "SteadycallError", "TransportError", "HttpRequestError", "NetworkError", "RequestTimeoutError",
    "ServerError", "ClientError", "CircuitOpenError", "FailureInfo",
    # Types
    "AttemptOutcome", "AttemptRecord", "CircuitStateDict", "JsonDict", "JsonMapping", "JsonValue",
]
