"""Test doubles for code built on steadycall.

Provides:
- ScriptedTransport: in-memory Transport replaying a script of outcomes
- MockResponse: simulated HTTP response with optional delay
- RecordingSleep: sleep replacement that records delays instead of waiting
- FakeClock: manually advanced clock for circuit breaker tests
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Union

import orjson

from steadycall.http.models import HttpResponse, RequestDescriptor

# ═════════════════════════════════════════════════════════════════════════════
# Scripted responses
# ═════════════════════════════════════════════════════════════════════════════


@dataclass
class MockResponse:
    """Simulated HTTP response.

    ``data`` may be text, bytes, or a JSON-serializable dict/list. ``delay``
    seconds elapse before the response is returned, which lets a script
    exceed the client's per-attempt deadline.
    """
    status: int = 200
    data: str | bytes | dict[str, object] | list[object] | None = None
    headers: dict[str, str] = field(default_factory=dict)
    delay: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def content(self) -> bytes:
        match self.data:
            case None: return b""
            case bytes(): return self.data
            case str(): return self.data.encode()
            case _: return orjson.dumps(self.data)

    def to_response(self, request: RequestDescriptor) -> HttpResponse:
        headers = dict(self.headers)
        if isinstance(self.data, (dict, list)):
            headers.setdefault("content-type", "application/json")
        return HttpResponse(status_code=self.status, headers=headers, content=self.content(),
                            url=request.url, elapsed=self.delay)


Step = Union[int, MockResponse, BaseException, Callable[[RequestDescriptor], "Step"]]


def _normalize(step: Step) -> MockResponse | BaseException | Callable[[RequestDescriptor], Step]:
    return MockResponse(status=step) if isinstance(step, int) else step


class ScriptedTransport:
    """Transport that replays a fixed script, one step per attempt.

    Each step is a status code, a MockResponse, an exception instance to
    raise (typically TransportError), or a callable receiving the request
    and returning another step. When the script runs out, ``default`` is
    used; with no default the transport raises RuntimeError.

    Example:
        >>> transport = ScriptedTransport(
        ...     TransportError("reset", "ECONNRESET"),
        ...     503,
        ...     MockResponse(200, {"ok": True}),
        ... )
        >>> client = ResilientClient(transport, sleep=RecordingSleep())
        >>> response = await client.get("https://api.example.com/items")
        >>> assert transport.call_count == 3
    """

    __slots__ = ("steps", "default", "requests", "timeouts", "closed")

    def __init__(self, *steps: Step, default: Step | None = None) -> None:
        self.steps: deque[Step] = deque(steps)
        self.default = default
        self.requests: list[RequestDescriptor] = []
        self.timeouts: list[float] = []
        self.closed = False

    @classmethod
    def always(cls, step: Step) -> ScriptedTransport:
        """Transport that answers every attempt with ``step``."""
        return cls(default=step)

    def extend(self, steps: Iterable[Step]) -> None:
        self.steps.extend(steps)

    def _next(self) -> Step:
        if self.steps:
            return self.steps.popleft()
        if self.default is None:
            raise RuntimeError(f"ScriptedTransport exhausted after {self.call_count} calls")
        return self.default

    async def send(self, request: RequestDescriptor, *, timeout: float) -> HttpResponse:
        self.requests.append(request)
        self.timeouts.append(timeout)
        step = _normalize(self._next())
        while callable(step):
            step = _normalize(step(request))
        if isinstance(step, BaseException):
            raise step
        if step.delay:
            await asyncio.sleep(step.delay)
        return step.to_response(request)

    async def aclose(self) -> None:
        self.closed = True

    # ─────────────────────────────────────────────────────────────────
    # Assertions
    # ─────────────────────────────────────────────────────────────────

    @property
    def call_count(self) -> int:
        return len(self.requests)

    @property
    def last_request(self) -> RequestDescriptor | None:
        return self.requests[-1] if self.requests else None

    def assert_called(self, times: int | None = None) -> None:
        """Assert transport was called (optionally exact times)."""
        if times is None:
            assert self.requests, "Expected at least one request, got none"
        else:
            assert self.call_count == times, f"Expected {times} requests, got {self.call_count}"

    def assert_not_called(self) -> None:
        assert not self.requests, f"Expected no requests, got {self.call_count}"


# ═════════════════════════════════════════════════════════════════════════════
# Time control
# ═════════════════════════════════════════════════════════════════════════════


@dataclass
class RecordingSleep:
    """Drop-in for asyncio.sleep that records requested delays.

    Set ``advance`` to a FakeClock to move it forward by each delay.
    """
    delays: list[float] = field(default_factory=list)
    advance: FakeClock | None = None

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self.advance is not None:
            self.advance.advance(seconds)
        await asyncio.sleep(0)

    @property
    def total(self) -> float:
        return sum(self.delays)


@dataclass
class FakeClock:
    """Monotonic clock advanced by hand."""
    now: float = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now
