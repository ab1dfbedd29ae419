"""Breakers keyed by destination.

A BreakerRegistry is owned by whatever integration talks to several
destinations; it is never process-global. Each destination gets its own
CircuitBreaker built with the registry's thresholds, so one failing host
cannot open the circuit for another.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING

from steadycall.foundation.errors import CircuitStateDict

from .breaker import CircuitBreaker, _every_exception

if TYPE_CHECKING:
    from steadycall.foundation.config import BreakerSettings
    from steadycall.http.models import RequestDescriptor


class BreakerRegistry:
    """Lazily creates one CircuitBreaker per destination.

    Example:
        >>> registry = BreakerRegistry(failure_threshold=5, reset_timeout=60.0)
        >>> breaker = registry.for_request(request)
        >>> await breaker.call(lambda: client.execute(request, policy))
        >>> registry.stats()["hooks.example.com"]["state"]
        'CLOSED'
    """

    __slots__ = ("failure_threshold", "reset_timeout", "half_open_max_calls", "clock", "is_failure",
                 "_breakers", "_lock")

    def __init__(
        self,
        *,
        failure_threshold: int = 5,
        reset_timeout: float = 60.0,
        half_open_max_calls: int = 1,
        clock: Callable[[], float] = time.monotonic,
        is_failure: Callable[[BaseException], bool] = _every_exception,
    ) -> None:
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.half_open_max_calls = half_open_max_calls
        self.clock = clock
        self.is_failure = is_failure
        self._breakers: dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: BreakerSettings | None = None, **kwargs: object) -> BreakerRegistry:
        if settings is None:
            from steadycall.foundation.config import get_settings
            settings = get_settings().breaker
        return cls(**{**settings.model_dump(), **kwargs})  # type: ignore[arg-type]

    def get(self, destination: str) -> CircuitBreaker:
        """Breaker for ``destination``, created on first use."""
        with self._lock:
            if (breaker := self._breakers.get(destination)) is None:
                breaker = self._breakers[destination] = CircuitBreaker(
                    destination,
                    failure_threshold=self.failure_threshold,
                    reset_timeout=self.reset_timeout,
                    half_open_max_calls=self.half_open_max_calls,
                    clock=self.clock,
                    is_failure=self.is_failure,
                )
            return breaker

    def for_request(self, request: RequestDescriptor) -> CircuitBreaker:
        return self.get(request.destination)

    def for_url(self, url: str) -> CircuitBreaker:
        from steadycall.http.models import RequestDescriptor
        return self.get(RequestDescriptor(url=url).destination)

    def stats(self) -> dict[str, CircuitStateDict]:
        """State of every breaker created so far."""
        with self._lock:
            breakers = list(self._breakers.values())
        return {b.destination: b.stats() for b in breakers}

    def reset(self, destination: str | None = None) -> None:
        """Close one breaker, or all of them when ``destination`` is None."""
        with self._lock:
            targets = (list(self._breakers.values()) if destination is None
                       else [b for d, b in self._breakers.items() if d == destination])
        for b in targets:
            b.reset()

    def __contains__(self, destination: object) -> bool:
        return destination in self._breakers

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._breakers))

    def __len__(self) -> int:
        return len(self._breakers)
