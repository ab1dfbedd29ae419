"""Backoff strategies for retry policies.

Provides pluggable delay calculation for retry attempts:
- ExponentialBackoff: Exponential growth, capped, with optional equal jitter
- ConstantBackoff: Fixed delay
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .policy import RetryPolicy


@runtime_checkable
class Backoff(Protocol):
    """Protocol for backoff delay calculation.

    Attempt numbers are 1-based: ``delay(1)`` is the wait after the first
    failed attempt.
    """

    def delay(self, attempt: int) -> float:
        """Calculate delay in seconds after the given failed attempt.

        Args:
            attempt: 1-based number of the attempt that just failed

        Returns:
            Delay in seconds before next attempt
        """
        ...


def _check_attempt(attempt: int) -> None:
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Exponential backoff with optional jitter.

    Delay = min(base * multiplier ^ (attempt - 1), max_delay), then with
    jitter scaled uniformly into [50%, 100%] of that value. Jitter never
    pushes a delay above max_delay.

    Attributes:
        base: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay cap in seconds (default: 30.0)
        multiplier: Exponential growth factor, >= 1 (default: 2.0)
        jitter: Randomize into the upper half of the computed delay (default: True)
        rng: Random source; pass a seeded random.Random for reproducible delays
    """

    base: float = 1.0
    max_delay: float = 30.0
    multiplier: float = 2.0
    jitter: bool = True
    rng: random.Random | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.base < 0 or self.max_delay < 0:
            raise ValueError("base and max_delay must be non-negative")
        if self.multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {self.multiplier}")

    def raw_delay(self, attempt: int) -> float:
        """Capped delay before jitter."""
        _check_attempt(attempt)
        if self.base == 0:
            return 0.0
        try:
            d = self.base * (self.multiplier ** (attempt - 1))
        except OverflowError:
            return self.max_delay
        return self.max_delay if math.isinf(d) else min(d, self.max_delay)

    def delay(self, attempt: int) -> float:
        d = self.raw_delay(attempt)
        if not self.jitter:
            return d
        return d * (0.5 + (self.rng or random).random() * 0.5)


@dataclass(frozen=True, slots=True)
class ConstantBackoff:
    """Fixed delay between retries.

    Simple strategy for rate-limited APIs with known cooldown.
    """

    delay_seconds: float = 1.0

    def delay(self, attempt: int) -> float:
        _check_attempt(attempt)
        return self.delay_seconds


def backoff_delay(attempt: int, policy: RetryPolicy, rng: random.Random | None = None) -> float:
    """Delay in seconds to wait after failed ``attempt`` under ``policy``.

    ``rng`` overrides the policy's own random source.
    """
    return ExponentialBackoff(
        base=policy.base_delay,
        max_delay=policy.max_delay,
        multiplier=policy.multiplier,
        jitter=policy.jitter,
        rng=rng if rng is not None else policy.rng,
    ).delay(attempt)
