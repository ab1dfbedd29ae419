"""Standardized error taxonomy for outbound requests.

Provides failure kinds, transport error identifiers, and the terminal
exceptions raised once retry logic has concluded. Structured detail lives
in a Pydantic model (FailureInfo) wrapped by the raised exception, so
callers can log, serialize, or branch on it without string matching.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Annotated, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .types import AttemptRecord, JsonDict

if TYPE_CHECKING:
    from steadycall.http.models import RequestDescriptor


class FailureKind(StrEnum):
    """Normalized classification of a failed attempt."""
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    RETRYABLE_STATUS = "retryable_status"
    NON_RETRYABLE_STATUS = "non_retryable_status"
    TRANSPORT_ERROR = "transport_error"


class TransportErrorCode(StrEnum):
    """Transport-level failure identifiers.

    Values follow the errno-style names used by most HTTP stacks so that
    policies can be written as plain strings ("ECONNRESET") in config files.
    """
    CONNECTION_RESET = "ECONNRESET"
    DNS_FAILURE = "ENOTFOUND"
    CONNECTION_REFUSED = "ECONNREFUSED"
    CONNECT_TIMEOUT = "ETIMEDOUT"
    ABORTED = "ECONNABORTED"
    SOCKET_ERROR = "ESOCKET"
    DNS_TEMPORARY_FAILURE = "EAI_AGAIN"


# Connection-level failures that are safe to retry
NETWORK_ERROR_CODES: frozenset[str] = frozenset(c.value for c in TransportErrorCode)

# Codes that mean the deadline fired rather than the connection failing
TIMEOUT_ERROR_CODES: frozenset[str] = frozenset({
    TransportErrorCode.CONNECT_TIMEOUT.value,
    TransportErrorCode.ABORTED.value,
})


class FailureInfo(BaseModel):
    """Structured description of a terminal request failure.

    Attributes:
        message: Human-readable error message
        kind: Classification of the last failed attempt
        attempts: Number of attempts actually made
        status_code: HTTP status of the last response, if one was received
        error_code: Transport error identifier, if the transport failed
        is_timeout: Whether the last attempt hit its deadline
        is_network_error: Whether the last attempt failed at connection level
        destination: Host the request was addressed to
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        validate_default=True,
        extra="forbid",
        json_schema_extra={
            "title": "Request Failure",
            "examples": [{
                "message": "HTTP request failed after 3 attempts: 500 Internal Server Error",
                "kind": "retryable_status",
                "attempts": 3,
                "status_code": 500,
                "is_timeout": False,
                "is_network_error": False,
            }],
        },
    )

    message: Annotated[str, Field(min_length=1)]
    kind: FailureKind = FailureKind.TRANSPORT_ERROR
    attempts: Annotated[int, Field(ge=0)] = 1
    status_code: Annotated[int, Field(ge=100, le=999)] | None = None
    error_code: str | None = None
    is_timeout: bool = False
    is_network_error: bool = False
    destination: str | None = Field(default=None, repr=False)

    @field_validator("message", mode="before")
    @classmethod
    def _ensure_message(cls, v: str | Exception) -> str:
        """Accept Exception objects and extract message."""
        return str(v) if isinstance(v, Exception) else v

    @computed_field
    @property
    def is_client_error(self) -> bool:
        """Whether the last response was a 4xx."""
        return self.status_code is not None and 400 <= self.status_code < 500

    @computed_field
    @property
    def severity(self) -> str:
        """Severity hint for alerting: transient failures warn, the rest error."""
        if self.kind in (FailureKind.TIMEOUT, FailureKind.NETWORK_ERROR, FailureKind.RETRYABLE_STATUS):
            return "warning"
        return "error"

    def to_dict(self) -> JsonDict:
        return self.model_dump(mode="json")


class SteadycallError(Exception):
    """Base class for every error raised by steadycall."""


class TransportError(SteadycallError):
    """Raised by a transport when one attempt fails before a response arrives.

    Transports translate their native exceptions into this type so the
    classifier only has to understand one shape.
    """

    __slots__ = ("code",)

    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code
        super().__init__(message)

    @property
    def is_timeout_code(self) -> bool:
        return self.code in TIMEOUT_ERROR_CODES

    def __repr__(self) -> str:
        return f"TransportError({str(self)!r}, code={self.code!r})"


class HttpRequestError(SteadycallError):
    """Terminal error for a logical request, carrying full attempt history.

    Raised once, after the retry loop ends on exhaustion or a non-retryable
    failure. The underlying cause (TransportError, TimeoutError, or None for
    status failures) is chained as ``__cause__``.
    """

    kind_default: ClassVar[FailureKind] = FailureKind.TRANSPORT_ERROR

    def __init__(
        self,
        info: FailureInfo,
        *,
        request: RequestDescriptor | None = None,
        history: tuple[AttemptRecord, ...] = (),
    ) -> None:
        self.info = info
        self.request = request
        self.history = history
        super().__init__(info.message)

    @classmethod
    def create(
        cls,
        message: str,
        kind: FailureKind,
        *,
        attempts: int = 1,
        status_code: int | None = None,
        error_code: str | None = None,
        is_timeout: bool = False,
        is_network_error: bool = False,
        request: RequestDescriptor | None = None,
        history: tuple[AttemptRecord, ...] = (),
    ) -> HttpRequestError:
        """Build the taxonomy subclass matching ``kind``."""
        info = FailureInfo(
            message=message, kind=kind, attempts=attempts, status_code=status_code,
            error_code=error_code, is_timeout=is_timeout, is_network_error=is_network_error,
            destination=request.destination if request is not None else None,
        )
        return _ERRORS_BY_KIND.get(kind, HttpRequestError)(info, request=request, history=history)

    # Flattened accessors so callers don't need to reach into .info

    @property
    def message(self) -> str:
        return self.info.message

    @property
    def kind(self) -> FailureKind:
        return self.info.kind

    @property
    def attempts(self) -> int:
        return self.info.attempts

    @property
    def status_code(self) -> int | None:
        return self.info.status_code

    @property
    def error_code(self) -> str | None:
        return self.info.error_code

    @property
    def is_timeout(self) -> bool:
        return self.info.is_timeout

    @property
    def is_network_error(self) -> bool:
        return self.info.is_network_error

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__

    def to_dict(self) -> JsonDict:
        return {**self.info.to_dict(), "history": [r.to_dict() for r in self.history]}

    def __repr__(self) -> str:
        return (f"{type(self).__name__}({self.message!r}, attempts={self.attempts}, "
                f"status_code={self.status_code}, kind={self.kind.value})")


class NetworkError(HttpRequestError):
    """Connection-level failure (DNS, refused, reset)."""
    kind_default = FailureKind.NETWORK_ERROR


class RequestTimeoutError(HttpRequestError):
    """Attempt deadline exceeded."""
    kind_default = FailureKind.TIMEOUT


class ServerError(HttpRequestError):
    """Retryable status (typically 5xx) that outlived the retry budget."""
    kind_default = FailureKind.RETRYABLE_STATUS


class ClientError(HttpRequestError):
    """Non-retryable status (typically 4xx)."""
    kind_default = FailureKind.NON_RETRYABLE_STATUS


_ERRORS_BY_KIND: dict[FailureKind, type[HttpRequestError]] = {
    cls.kind_default: cls for cls in (NetworkError, RequestTimeoutError, ServerError, ClientError)
}


class CircuitOpenError(SteadycallError):
    """Raised when a breaker rejects a call without attempting it.

    No attempt was made, so ``attempts`` is always 0 and ``history`` empty.
    """

    __slots__ = ("destination", "retry_after", "failure_count")

    attempts: ClassVar[int] = 0
    history: ClassVar[tuple[AttemptRecord, ...]] = ()

    def __init__(self, destination: str, *, retry_after: float | None = None, failure_count: int = 0) -> None:
        self.destination = destination
        self.retry_after = retry_after
        self.failure_count = failure_count
        wait = f". Retry in {retry_after:.0f}s" if retry_after is not None else ""
        super().__init__(f"Circuit open for '{destination}' after {failure_count} failures{wait}")

    @classmethod
    def create(cls, destination: str, *, retry_after: float | None = None, failure_count: int = 0) -> Self:
        return cls(destination, retry_after=retry_after, failure_count=failure_count)

    def to_dict(self) -> JsonDict:
        return {
            "message": str(self), "destination": self.destination, "attempts": 0,
            "retry_after": self.retry_after, "failure_count": self.failure_count,
        }
