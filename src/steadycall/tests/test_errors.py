"""Tests for the error taxonomy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from steadycall.foundation.errors import (
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
)
from steadycall.http import RequestDescriptor


@pytest.mark.parametrize(("kind", "cls"), [
    (FailureKind.NETWORK_ERROR, NetworkError),
    (FailureKind.TIMEOUT, RequestTimeoutError),
    (FailureKind.RETRYABLE_STATUS, ServerError),
    (FailureKind.NON_RETRYABLE_STATUS, ClientError),
    (FailureKind.TRANSPORT_ERROR, HttpRequestError),
])
def test_create_picks_subclass_for_kind(kind: FailureKind, cls: type[HttpRequestError]) -> None:
    error = HttpRequestError.create("failed", kind)
    assert type(error) is cls
    assert isinstance(error, HttpRequestError)
    assert isinstance(error, SteadycallError)


def test_request_timeout_error_does_not_shadow_builtin() -> None:
    assert not issubclass(RequestTimeoutError, TimeoutError)


def test_flattened_accessors_and_destination() -> None:
    request = RequestDescriptor(method="POST", url="https://hooks.example.com:8443/orders")
    history = (AttemptRecord(1, 0.2, "retryable_status", status_code=503, delay=1.0),
               AttemptRecord(2, 0.1, "retryable_status", status_code=503))
    error = HttpRequestError.create("gave up", FailureKind.RETRYABLE_STATUS, attempts=2, status_code=503,
                                    request=request, history=history)
    assert error.message == "gave up"
    assert str(error) == "gave up"
    assert error.attempts == 2
    assert error.status_code == 503
    assert error.info.destination == "hooks.example.com:8443"
    assert error.request is request
    assert error.info.severity == "warning"
    assert not error.info.is_client_error


def test_to_dict_includes_history() -> None:
    history = (AttemptRecord(1, 0.0123456789, "network_error", error_code="ECONNRESET", delay=0.5),)
    error = HttpRequestError.create("x", FailureKind.NETWORK_ERROR, error_code="ECONNRESET",
                                    is_network_error=True, history=history)
    data = error.to_dict()
    assert data["kind"] == "network_error"
    assert data["is_network_error"] is True
    assert data["history"] == [{"attempt": 1, "elapsed": 0.012346, "outcome": "network_error",
                                "status_code": None, "error_code": "ECONNRESET", "delay": 0.5}]


def test_cause_reflects_chained_exception() -> None:
    cause = TransportError("reset by peer", "ECONNRESET")
    error = HttpRequestError.create("x", FailureKind.NETWORK_ERROR)
    try:
        raise error from cause
    except HttpRequestError as caught:
        assert caught.cause is cause


def test_failure_info_validation() -> None:
    with pytest.raises(ValidationError):
        FailureInfo(message="", kind=FailureKind.TIMEOUT)
    with pytest.raises(ValidationError):
        FailureInfo(message="x", status_code=99)
    with pytest.raises(ValidationError):
        FailureInfo(message="x", attempts=-1)
    assert FailureInfo(message=ValueError("from exception")).message == "from exception"


def test_client_error_severity() -> None:
    info = HttpRequestError.create("404", FailureKind.NON_RETRYABLE_STATUS, status_code=404).info
    assert info.is_client_error
    assert info.severity == "error"


def test_transport_error_timeout_code() -> None:
    assert TransportError("t", "ETIMEDOUT").is_timeout_code
    assert not TransportError("r", "ECONNRESET").is_timeout_code
    assert "ECONNRESET" in repr(TransportError("r", "ECONNRESET"))


def test_circuit_open_error_has_no_attempts() -> None:
    error = CircuitOpenError.create("api.example.com", retry_after=12.4, failure_count=5)
    assert error.attempts == 0
    assert error.history == ()
    assert "api.example.com" in str(error)
    assert "Retry in 12s" in str(error)
    assert error.to_dict()["failure_count"] == 5
    assert not isinstance(error, HttpRequestError)
