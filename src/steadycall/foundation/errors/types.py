"""Type aliases and per-attempt records shared by the error and retry layers.

Kept free of internal imports so every other module can depend on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping, TypedDict, Union

# ═══════════════════════════════════════════════════════════════════════════════
# Type Aliases
# ═══════════════════════════════════════════════════════════════════════════════

# JSON type aliases - using Any for recursive types to avoid Pydantic resolution issues
JsonPrimitive = Union[str, int, float, bool, None]
JsonValue = Union[JsonPrimitive, list[Any], dict[str, Any]]  # Any for recursive slots
JsonDict = dict[str, Any]
JsonMapping = Mapping[str, Any]

AttemptOutcome = Literal[
    "success", "network_error", "timeout", "retryable_status", "non_retryable_status", "transport_error",
]


class CircuitStateDict(TypedDict):
    """Serialized circuit breaker state (see CircuitState.to_dict)."""
    destination: str
    state: str
    failure_count: int
    last_failure: float | None
    last_state_change: float
    half_open_inflight: int


# ═══════════════════════════════════════════════════════════════════════════════
# Attempt History
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class AttemptRecord:
    """Outcome of a single transport attempt within one logical call.

    Attributes:
        attempt: 1-based ordinal of the attempt
        elapsed: Wall-clock seconds spent on the attempt
        outcome: "success" or the failure kind value
        status_code: HTTP status if a response was received
        error_code: Transport error identifier (e.g. "ECONNRESET")
        delay: Backoff slept after this attempt (None if no retry followed)
    """

    attempt: int
    elapsed: float
    outcome: AttemptOutcome
    status_code: int | None = None
    error_code: str | None = None
    delay: float | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == "success"

    def to_dict(self) -> JsonDict:
        return {
            "attempt": self.attempt, "elapsed": round(self.elapsed, 6), "outcome": self.outcome,
            "status_code": self.status_code, "error_code": self.error_code, "delay": self.delay,
        }
