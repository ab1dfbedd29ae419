"""Settled gathering for batches of logical calls.

Provides the allSettled pattern: run many awaitables, wait for every one,
and report each outcome in input order without raising.

Example:
    >>> results = await gather_settled(deliver(a), deliver(b), limit=10)
    >>> failed = [r.error for r in results if r.is_rejected]
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class SettledStatus(StrEnum):
    """Status of a settled operation."""
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


@dataclass(slots=True, frozen=True)
class Settled(Generic[T]):
    """Result of a settled operation (success or failure).

    Attributes:
        status: 'fulfilled' or 'rejected'
        value: Result value if fulfilled
        error: Exception if rejected
    """

    status: SettledStatus
    value: T | None = None
    error: BaseException | None = None

    @property
    def is_fulfilled(self) -> bool:
        return self.status == SettledStatus.FULFILLED

    @property
    def is_rejected(self) -> bool:
        return self.status == SettledStatus.REJECTED

    def unwrap(self) -> T:
        """Get value or raise stored error."""
        if self.is_rejected:
            raise self.error or RuntimeError("Rejected with no error")
        return self.value  # type: ignore[return-value]

    def unwrap_or(self, default: T) -> T:
        """Get value or return default."""
        return self.value if self.is_fulfilled else default  # type: ignore[return-value]


def _fulfilled(value: T) -> Settled[T]:
    return Settled(SettledStatus.FULFILLED, value=value)


def _rejected(error: BaseException) -> Settled[T]:
    return Settled(SettledStatus.REJECTED, error=error)


async def gather_settled(*coros: Awaitable[T], limit: int | None = None) -> list[Settled[T]]:
    """Gather all results, never raising for individual failures.

    Args:
        *coros: Awaitables to execute
        limit: Maximum number running at once (None = unbounded)

    Returns:
        List of Settled results in the same order as ``coros``

    Cancelling the caller cancels every pending operation and propagates.
    """
    if limit is not None and limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    if limit is None:
        runners: list[Awaitable[T]] = list(coros)
    else:
        sem = asyncio.Semaphore(limit)

        async def bounded(aw: Awaitable[T]) -> T:
            async with sem:
                return await aw

        runners = [bounded(c) for c in coros]

    results = await asyncio.gather(*runners, return_exceptions=True)
    return [_rejected(r) if isinstance(r, BaseException) else _fulfilled(r) for r in results]
