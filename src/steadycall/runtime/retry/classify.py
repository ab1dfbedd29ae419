"""Classification of failed attempts.

Turns whatever one attempt produced (a TransportError, a deadline
TimeoutError, or a completed non-2xx response) into a Classification the
retry loop can act on and the terminal error can carry.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from steadycall.foundation.config import DEFAULT_RETRYABLE_STATUS_CODES
from steadycall.foundation.errors import (
    NETWORK_ERROR_CODES,
    TIMEOUT_ERROR_CODES,
    FailureKind,
    TransportError,
)
from steadycall.http.models import HttpResponse

if TYPE_CHECKING:
    from .policy import RetryPolicy

AttemptFailure = TransportError | TimeoutError | HttpResponse


@dataclass(frozen=True, slots=True)
class Classification:
    """Normalized view of one failed attempt."""

    kind: FailureKind
    message: str
    is_timeout: bool = False
    is_network_error: bool = False
    status_code: int | None = None
    error_code: str | None = None

    @property
    def is_transient(self) -> bool:
        """Default retry rule: network failures, timeouts and retryable statuses."""
        return self.is_network_error or self.is_timeout or self.kind is FailureKind.RETRYABLE_STATUS


class ErrorClassifier:
    """Classifies attempt failures against configured code sets.

    Args:
        network_codes: Transport codes counted as connection-level failures
        retryable_status_codes: Statuses classified RETRYABLE_STATUS (4xx excluded)
    """

    __slots__ = ("network_codes", "retryable_status_codes")

    def __init__(
        self,
        network_codes: Iterable[str] = NETWORK_ERROR_CODES,
        retryable_status_codes: Iterable[int] = DEFAULT_RETRYABLE_STATUS_CODES,
    ) -> None:
        self.network_codes = frozenset(network_codes)
        self.retryable_status_codes = frozenset(retryable_status_codes)

    @classmethod
    def from_policy(cls, policy: RetryPolicy) -> ErrorClassifier:
        return cls(policy.retryable_error_codes, policy.retryable_status_codes)

    def classify(self, error: AttemptFailure, elapsed: float, timeout: float) -> Classification:
        """Classify one failed attempt.

        Args:
            error: What the attempt produced
            elapsed: Seconds the attempt took
            timeout: Deadline the attempt ran under
        """
        match error:
            case HttpResponse(status_code=status):
                retryable = status in self.retryable_status_codes and not 400 <= status < 500
                return Classification(
                    kind=FailureKind.RETRYABLE_STATUS if retryable else FailureKind.NON_RETRYABLE_STATUS,
                    message=f"{status} {error.reason}".strip(),
                    status_code=status,
                )
            case TransportError(code=code):
                is_timeout = code in TIMEOUT_ERROR_CODES or elapsed >= timeout
                is_network = code is not None and code in self.network_codes
                kind = (FailureKind.TIMEOUT if is_timeout
                        else FailureKind.NETWORK_ERROR if is_network
                        else FailureKind.TRANSPORT_ERROR)
                return Classification(kind=kind, message=str(error) or kind.value, is_timeout=is_timeout,
                                      is_network_error=is_network, error_code=code)
            case TimeoutError():
                return Classification(kind=FailureKind.TIMEOUT, message=f"Request timed out after {timeout:g}s",
                                      is_timeout=True)
        raise TypeError(f"Cannot classify {type(error).__name__}")
