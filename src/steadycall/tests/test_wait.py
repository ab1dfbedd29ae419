"""Tests for settled gathering."""

from __future__ import annotations

import asyncio

import pytest

from steadycall.runtime.concurrency import SettledStatus, gather_settled


@pytest.mark.asyncio
async def test_results_keep_input_order() -> None:
    async def value(v: int, delay: float) -> int:
        await asyncio.sleep(delay)
        return v

    async def fail() -> int:
        raise ValueError("bad")

    results = await gather_settled(value(1, 0.02), fail(), value(3, 0))
    assert [r.status for r in results] == [SettledStatus.FULFILLED, SettledStatus.REJECTED,
                                           SettledStatus.FULFILLED]
    assert results[0].unwrap() == 1
    assert results[2].value == 3
    assert isinstance(results[1].error, ValueError)
    assert results[1].unwrap_or(-1) == -1
    with pytest.raises(ValueError):
        results[1].unwrap()


@pytest.mark.asyncio
async def test_limit_bounds_concurrency() -> None:
    running = peak = 0

    async def work(i: int) -> int:
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return i

    results = await gather_settled(*(work(i) for i in range(6)), limit=2)
    assert peak == 2
    assert [r.unwrap() for r in results] == list(range(6))


@pytest.mark.asyncio
async def test_invalid_limit() -> None:
    with pytest.raises(ValueError):
        await gather_settled(limit=0)


@pytest.mark.asyncio
async def test_empty() -> None:
    assert await gather_settled() == []
