"""Retry policy configuration for outbound requests.

A RetryPolicy is an immutable value: the client holds a default one and each
call may derive a variant with ``with_overrides``. Durations are seconds.
"""

from __future__ import annotations

import inspect
import logging
import random
from typing import TYPE_CHECKING, Annotated, Any, Callable, Protocol, runtime_checkable

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeFloat,
    PositiveFloat,
    computed_field,
    field_serializer,
    field_validator,
)

from steadycall.foundation.config import DEFAULT_RETRYABLE_ERROR_CODES, DEFAULT_RETRYABLE_STATUS_CODES
from steadycall.foundation.errors import HttpRequestError

from .backoff import ExponentialBackoff, backoff_delay

if TYPE_CHECKING:
    from steadycall.foundation.config import RetrySettings

    from .classify import Classification


logger = logging.getLogger("steadycall.retry")


@runtime_checkable
class RetryObserver(Protocol):
    """Notified before each retry is scheduled."""

    def on_retry(self, attempt: int, error: HttpRequestError) -> None:
        """Called with the 1-based number of the failed attempt and its error."""
        ...


RetryHook = RetryObserver | Callable[[int, HttpRequestError], object]
RetryPredicate = Callable[[HttpRequestError], bool]


class RetryPolicy(BaseModel):
    """Configurable retry policy for a logical request.

    Attributes:
        timeout: Per-attempt deadline in seconds
        max_retries: Retries after the first attempt (0 = single attempt)
        base_delay: Delay after the first failure, in seconds
        max_delay: Upper bound for any single delay
        multiplier: Exponential growth factor (>= 1)
        jitter: Randomize delays into [50%, 100%] of the computed value
        retryable_status_codes: Statuses eligible for retry (4xx never are by default)
        retryable_error_codes: Transport codes treated as network failures
        should_retry: Predicate replacing the default retry rule entirely
        on_retry: Observer or callable notified before each retry
        rng: Random source for jitter (seed it for reproducible delays)

    Example:
        >>> policy = RetryPolicy(max_retries=5, base_delay=0.5)
        >>> policy.with_overrides(timeout=2.0).timeout
        2.0
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,  # For random.Random
        validate_default=True,
        extra="forbid",
        revalidate_instances="never",
        json_schema_extra={
            "title": "Retry Policy",
            "description": "Configuration for automatic retry behavior",
            "examples": [{
                "timeout": 10.0,
                "max_retries": 3,
                "retryable_status_codes": [500, 502, 503, 504],
            }],
        },
    )

    timeout: PositiveFloat = 10.0
    max_retries: Annotated[int, Field(ge=0, le=20)] = 3
    base_delay: NonNegativeFloat = 1.0
    max_delay: NonNegativeFloat = 30.0
    multiplier: Annotated[float, Field(ge=1.0)] = 2.0
    jitter: bool = True
    retryable_status_codes: frozenset[int] = DEFAULT_RETRYABLE_STATUS_CODES
    retryable_error_codes: frozenset[str] = DEFAULT_RETRYABLE_ERROR_CODES
    should_retry: Any = Field(default=None, exclude=True, repr=False)
    on_retry: Any = Field(default=None, exclude=True, repr=False)
    rng: random.Random | None = Field(default=None, exclude=True, repr=False)

    @field_validator("retryable_error_codes", mode="before")
    @classmethod
    def _normalize_error_codes(cls, v: Any) -> frozenset[str]:
        """Accept TransportErrorCode members or plain strings."""
        return frozenset(str(c) for c in v) if v is not None else frozenset()

    @field_validator("should_retry")
    @classmethod
    def _check_predicate(cls, v: Any) -> RetryPredicate | None:
        if v is not None and not callable(v):
            raise ValueError("should_retry must be callable")
        return v

    @field_validator("on_retry")
    @classmethod
    def _check_hook(cls, v: Any) -> RetryHook | None:
        if v is None:
            return v
        if inspect.isclass(v):
            raise ValueError(f"on_retry must be an instance or a function, got the class {v.__name__}")
        if not (isinstance(v, RetryObserver) or callable(v)):
            raise ValueError("on_retry must be a RetryObserver or a callable(attempt, error)")
        return v

    @field_serializer("retryable_status_codes", "retryable_error_codes")
    def _serialize_codes(self, v: frozenset[Any]) -> list[Any]:
        return sorted(v)

    @computed_field
    @property
    def is_disabled(self) -> bool:
        """Whether retries are effectively disabled."""
        return self.max_retries == 0

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    @property
    def backoff(self) -> ExponentialBackoff:
        return ExponentialBackoff(base=self.base_delay, max_delay=self.max_delay,
                                  multiplier=self.multiplier, jitter=self.jitter, rng=self.rng)

    # ─────────────────────────────────────────────────────────────────
    # Construction
    # ─────────────────────────────────────────────────────────────────

    @classmethod
    def from_settings(cls, settings: RetrySettings | None = None, **overrides: Any) -> RetryPolicy:
        """Build from RetrySettings (defaults to the cached global settings)."""
        if settings is None:
            from steadycall.foundation.config import get_settings
            settings = get_settings().retry
        return cls(**{**settings.model_dump(), **overrides})

    def with_overrides(self, **overrides: Any) -> RetryPolicy:
        """Validated copy with ``overrides`` applied. Unknown names raise ValidationError."""
        if not overrides:
            return self
        current = {name: getattr(self, name) for name in type(self).model_fields}
        return type(self)(**{**current, **overrides})

    # ─────────────────────────────────────────────────────────────────
    # Decisions
    # ─────────────────────────────────────────────────────────────────

    def delay(self, attempt: int, rng: random.Random | None = None) -> float:
        """Backoff delay after failed ``attempt`` (1-based)."""
        return backoff_delay(attempt, self, rng)

    def is_retryable(self, classification: Classification, error: HttpRequestError) -> bool:
        """Whether a failure may be retried, budget aside.

        ``should_retry`` replaces the default rule when given.
        """
        if self.should_retry is not None:
            return bool(self.should_retry(error))
        return classification.is_transient

    async def notify_retry(self, attempt: int, error: HttpRequestError) -> None:
        """Invoke ``on_retry``, awaiting it if it is async. Hook failures are logged and never abort the retry."""
        hook = self.on_retry
        if hook is None:
            return
        try:
            result = hook.on_retry(attempt, error) if isinstance(hook, RetryObserver) else hook(attempt, error)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.warning("on_retry hook raised for attempt %d; continuing", attempt, exc_info=True)


# Singleton for single-attempt calls
NO_RETRY = RetryPolicy(max_retries=0)
