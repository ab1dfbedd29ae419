"""Per-destination circuit breaker.

Implements the circuit breaker pattern as a standalone state machine that
wraps one logical call (all of its retries) at a time.

State Machine:
    CLOSED → consecutive failures reach threshold → OPEN
    OPEN → reset_timeout elapses since last failure → HALF_OPEN (next call is the probe)
    HALF_OPEN → success → CLOSED
    HALF_OPEN → failure → OPEN

One instance guards one destination. Use BreakerRegistry to hold several.
"""

from __future__ import annotations

import inspect
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, TypeVar

from steadycall.foundation.errors import CircuitOpenError, CircuitStateDict

if TYPE_CHECKING:
    from steadycall.foundation.config import BreakerSettings

T = TypeVar("T")

logger = logging.getLogger("steadycall.breaker")


class State(IntEnum):
    """Circuit breaker states."""
    CLOSED, OPEN, HALF_OPEN = 0, 1, 2  # Normal → Failing fast → Testing recovery


@dataclass(slots=True)
class CircuitState:
    """Per-circuit state tracking."""
    state: State = State.CLOSED
    failure_count: int = 0
    last_failure: float | None = None
    last_state_change: float = 0.0
    half_open_inflight: int = 0

    @property
    def is_open(self) -> bool:
        """Check if circuit is in OPEN state (fail-fast mode)."""
        return self.state == State.OPEN

    @property
    def is_closed(self) -> bool:
        """Check if circuit is in CLOSED state (normal operation)."""
        return self.state == State.CLOSED

    @property
    def is_half_open(self) -> bool:
        """Check if circuit is in HALF_OPEN state (testing recovery)."""
        return self.state == State.HALF_OPEN

    def to_dict(self, destination: str) -> CircuitStateDict:
        return {
            "destination": destination, "state": self.state.name, "failure_count": self.failure_count,
            "last_failure": self.last_failure, "last_state_change": self.last_state_change,
            "half_open_inflight": self.half_open_inflight,
        }


def _every_exception(exc: BaseException) -> bool:
    return isinstance(exc, Exception)


@dataclass(slots=True)
class CircuitBreaker:
    """Circuit breaker for one destination.

    Counts one outcome per logical call. Consecutive failures open the
    circuit; while open, calls are rejected with CircuitOpenError without
    running. Cancellation is never counted as a failure.

    Args:
        destination: Name of the guarded destination (used in errors and logs)
        failure_threshold: Consecutive failures before opening (default: 5)
        reset_timeout: Seconds after the last failure before a probe is allowed (default: 60)
        half_open_max_calls: Concurrent probes admitted while HALF_OPEN (default: 1)
        clock: Monotonic time source in seconds
        is_failure: Decides whether an exception counts against the circuit

    Example (wrapping a call):
        >>> breaker = CircuitBreaker("hooks.example.com", failure_threshold=3)
        >>> response = await breaker.call(lambda: client.execute(request, policy))

    Example (manual):
        >>> if breaker.allow():
        ...     try:
        ...         result = call_service()
        ...         breaker.record_success()
        ...     except Exception:
        ...         breaker.record_failure()
        ...         raise

    Example (monitoring):
        >>> breaker.state          # Current State enum
        >>> breaker.failure_count  # Consecutive failures
        >>> breaker.retry_after    # Seconds until a probe is allowed
    """

    destination: str = "default"
    failure_threshold: int = 5
    reset_timeout: float = 60.0
    half_open_max_calls: int = 1
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    is_failure: Callable[[BaseException], bool] = field(default=_every_exception, repr=False)
    _circuit: CircuitState = field(init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise ValueError(f"failure_threshold must be >= 1, got {self.failure_threshold}")
        if self.reset_timeout < 0:
            raise ValueError(f"reset_timeout must be >= 0, got {self.reset_timeout}")
        if self.half_open_max_calls < 1:
            raise ValueError(f"half_open_max_calls must be >= 1, got {self.half_open_max_calls}")
        self._circuit = CircuitState(last_state_change=self.clock())

    @classmethod
    def from_settings(cls, destination: str = "default", settings: BreakerSettings | None = None,
                      **kwargs: object) -> CircuitBreaker:
        """Build from BreakerSettings (defaults to the cached global settings)."""
        if settings is None:
            from steadycall.foundation.config import get_settings
            settings = get_settings().breaker
        return cls(destination, **{**settings.model_dump(), **kwargs})  # type: ignore[arg-type]

    # ─────────────────────────────────────────────────────────────────
    # Transitions (callers hold the lock)
    # ─────────────────────────────────────────────────────────────────

    def _transition(self, to: State, now: float) -> None:
        c = self._circuit
        if c.state == to:
            return
        prev, c.state, c.last_state_change = c.state, to, now
        if to != State.HALF_OPEN:
            c.half_open_inflight = 0
        if to == State.OPEN:
            logger.warning("Circuit '%s' %s -> OPEN after %d failures",
                           self.destination, prev.name, c.failure_count)
        else:
            logger.info("Circuit '%s' %s -> %s", self.destination, prev.name, to.name)

    def _remaining(self, now: float) -> float:
        last = self._circuit.last_failure
        return 0.0 if last is None else max(0.0, self.reset_timeout - (now - last))

    def _acquire(self) -> bool:
        """Admit a call or raise CircuitOpenError. Returns True if the call holds a probe slot."""
        with self._lock:
            c, now = self._circuit, self.clock()
            if c.state == State.OPEN:
                if c.last_failure is not None and now - c.last_failure <= self.reset_timeout:
                    raise CircuitOpenError(self.destination, retry_after=self._remaining(now),
                                           failure_count=c.failure_count)
                self._transition(State.HALF_OPEN, now)
            if c.state == State.HALF_OPEN:
                if c.half_open_inflight >= self.half_open_max_calls:
                    raise CircuitOpenError(self.destination, retry_after=0.0, failure_count=c.failure_count)
                c.half_open_inflight += 1
                return True
            return False

    def _release(self, probe: bool) -> None:
        if probe:
            with self._lock:
                if self._circuit.state == State.HALF_OPEN:
                    self._circuit.half_open_inflight = max(0, self._circuit.half_open_inflight - 1)

    def _on_success(self) -> None:
        with self._lock:
            self._circuit.failure_count = 0
            self._transition(State.CLOSED, self.clock())

    def _on_failure(self) -> None:
        with self._lock:
            c, now = self._circuit, self.clock()
            c.failure_count += 1
            c.last_failure = now
            if c.state == State.HALF_OPEN or c.failure_count >= self.failure_threshold:
                self._transition(State.OPEN, now)

    # ─────────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────────

    async def call(self, operation: Callable[[], Awaitable[T] | T]) -> T:
        """Run ``operation`` through the breaker and record its outcome.

        Raises:
            CircuitOpenError: Circuit is open, or the probe slot is taken
        """
        probe = self._acquire()
        try:
            result = operation()
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            if self.is_failure(e):
                self._on_failure()
            else:
                self._release(probe)
            raise
        except BaseException:
            # Cancellation and interpreter exits release the slot without a verdict
            self._release(probe)
            raise
        self._on_success()
        return result  # type: ignore[return-value]

    def allow(self) -> bool:
        """Check whether a call may proceed, reserving a probe slot in HALF_OPEN.

        Pair every True with record_success(), record_failure() or release().
        """
        try:
            self._acquire()
        except CircuitOpenError:
            return False
        return True

    def release(self) -> None:
        """Give back a probe slot reserved by allow() without recording an outcome."""
        self._release(True)

    def record_success(self) -> None:
        """Record a successful call: close the circuit and clear the failure count."""
        self._on_success()

    def record_failure(self) -> None:
        """Record a failed call."""
        self._on_failure()

    def reset(self) -> None:
        """Manually reset circuit to closed state."""
        with self._lock:
            self._circuit.failure_count = 0
            self._circuit.last_failure = None
            self._transition(State.CLOSED, self.clock())

    # ─────────────────────────────────────────────────────────────────
    # Observability Properties
    # ─────────────────────────────────────────────────────────────────

    @property
    def state(self) -> State:
        """Current circuit state. OPEN stays OPEN until a call arrives after reset_timeout."""
        return self._circuit.state

    @property
    def failure_count(self) -> int:
        return self._circuit.failure_count

    @property
    def last_failure(self) -> float | None:
        """Clock reading of the most recent failure, None if none recorded."""
        return self._circuit.last_failure

    @property
    def is_open(self) -> bool:
        """Check if circuit is open (fail-fast mode)."""
        return self.state == State.OPEN

    @property
    def is_closed(self) -> bool:
        """Check if circuit is closed (normal operation)."""
        return self.state == State.CLOSED

    @property
    def retry_after(self) -> float | None:
        """Seconds until a probe is allowed, or None if not open."""
        with self._lock:
            if self._circuit.state != State.OPEN:
                return None
            return self._remaining(self.clock())

    def stats(self) -> CircuitStateDict:
        """Snapshot of circuit state for monitoring."""
        with self._lock:
            return self._circuit.to_dict(self.destination)
