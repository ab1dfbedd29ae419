"""Resilient HTTP client: per-attempt deadlines, classified retries, optional breaker.

Quick Start:
    >>> from steadycall import ResilientClient, BreakerRegistry
    >>>
    >>> async with ResilientClient(base_url="https://hooks.example.com",
    ...                            breaker=BreakerRegistry()) as client:
    ...     response = await client.post("/orders", json_body={"id": 42}, max_retries=5)
    ...     response.json()
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

from steadycall.foundation.config import get_settings
from steadycall.foundation.errors import AttemptRecord, HttpRequestError, TransportError
from steadycall.http import HttpMethod, HttpResponse, HttpxTransport, RequestDescriptor, Transport
from steadycall.runtime.concurrency import Settled, gather_settled
from steadycall.runtime.observability import BoundLogger, get_logger, log_context
from steadycall.runtime.resilience import BreakerRegistry, CircuitBreaker
from steadycall.runtime.retry import ErrorClassifier, RetryPolicy

if TYPE_CHECKING:
    from steadycall.foundation.config import SteadycallSettings
    from steadycall.runtime.retry import Classification


class SleepFunc(Protocol):
    """Protocol for injectable sleep function."""

    async def __call__(self, seconds: float) -> None: ...


PolicyOverrides = RetryPolicy | Mapping[str, Any]


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ResilientClient:
    """HTTP client that retries transient failures and can sit behind circuit breakers.

    Args:
        transport: Performs single attempts (default: HttpxTransport from settings)
        policy: Default retry policy (default: RetryPolicy from settings)
        base_url: Prefix for relative request URLs
        headers: Default headers, merged under per-request headers
        breaker: A CircuitBreaker guarding every call, or a BreakerRegistry
            picking one per destination
        sleep: Awaitable sleep used between attempts (default: asyncio.sleep)
        settings: Settings to draw defaults from (default: get_settings())
        logger: Structured logger (default: get_logger("steadycall.client"))
    """

    __slots__ = ("transport", "policy", "base_url", "headers", "breaker", "_sleep", "_log")

    def __init__(
        self,
        transport: Transport | None = None,
        policy: RetryPolicy | None = None,
        *,
        base_url: str | None = None,
        headers: Mapping[str, str] | None = None,
        breaker: CircuitBreaker | BreakerRegistry | None = None,
        sleep: SleepFunc | None = None,
        settings: SteadycallSettings | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.transport: Transport = transport or HttpxTransport.from_settings(settings.http)
        self.policy = policy or RetryPolicy.from_settings(settings.retry)
        self.base_url = base_url or settings.http.base_url
        self.headers = {"User-Agent": settings.http.user_agent, "Accept": settings.http.accept, **(headers or {})}
        self.breaker = breaker
        self._sleep: SleepFunc = sleep or asyncio.sleep
        self._log = logger or get_logger("steadycall.client")

    # ─────────────────────────────────────────────────────────────────
    # Retry loop
    # ─────────────────────────────────────────────────────────────────

    def prepare(self, request: RequestDescriptor) -> RequestDescriptor:
        """Resolve the URL against base_url and merge default headers."""
        return request.resolve(self.base_url, self.headers)

    async def execute(self, request: RequestDescriptor, policy: RetryPolicy | None = None) -> HttpResponse:
        """Run one logical request under ``policy``, retrying transient failures.

        Returns the first 2xx response. Raises the HttpRequestError subclass
        matching the last failure once retries are exhausted or the failure is
        not retryable. Cancellation propagates as asyncio.CancelledError.
        """
        policy = policy or self.policy
        request = self.prepare(request)
        classifier = ErrorClassifier.from_policy(policy)
        timeout = request.timeout or policy.timeout
        history: list[AttemptRecord] = []

        with log_context(request_id=new_request_id()):
            log = self._log.bind(method=request.method, destination=request.destination)
            log.debug("request started", url=request.url, max_attempts=policy.max_attempts, timeout=timeout)

            for attempt in range(1, policy.max_attempts + 1):
                start = time.perf_counter()
                try:
                    outcome: HttpResponse | TransportError | TimeoutError = await asyncio.wait_for(
                        self.transport.send(request, timeout=timeout), timeout)
                except (TransportError, TimeoutError) as e:
                    outcome = e
                elapsed = time.perf_counter() - start

                if isinstance(outcome, HttpResponse) and outcome.is_success:
                    history.append(AttemptRecord(attempt, elapsed, "success", status_code=outcome.status_code))
                    log.info("request succeeded", attempt=attempt, status_code=outcome.status_code,
                             elapsed=round(elapsed, 4))
                    return outcome.with_attempts(attempt)

                c = classifier.classify(outcome, elapsed, timeout)
                cause = outcome if isinstance(outcome, BaseException) else None
                record = AttemptRecord(attempt, elapsed, c.kind.value, status_code=c.status_code,
                                       error_code=c.error_code)
                error = self._error(request, c, attempt, (*history, record), cause)

                if attempt == policy.max_attempts or not policy.is_retryable(c, error):
                    history.append(record)
                    log.error("request failed", attempt=attempt, kind=c.kind.value, status_code=c.status_code,
                              error_code=c.error_code, exhausted=attempt == policy.max_attempts)
                    raise error from cause

                await policy.notify_retry(attempt, error)
                delay = policy.delay(attempt)
                history.append(AttemptRecord(attempt, elapsed, c.kind.value, status_code=c.status_code,
                                             error_code=c.error_code, delay=delay))
                log.warning("attempt failed, retrying", attempt=attempt, kind=c.kind.value,
                            status_code=c.status_code, error_code=c.error_code, delay=round(delay, 4))
                await self._sleep(delay)

        raise AssertionError("unreachable: retry loop exited without a result")

    @staticmethod
    def _error(
        request: RequestDescriptor,
        c: Classification,
        attempt: int,
        history: tuple[AttemptRecord, ...],
        cause: BaseException | None,
    ) -> HttpRequestError:
        noun = "attempt" if attempt == 1 else "attempts"
        error = HttpRequestError.create(
            f"{request.method} {request.url} failed after {attempt} {noun}: {c.message}",
            c.kind, attempts=attempt, status_code=c.status_code, error_code=c.error_code,
            is_timeout=c.is_timeout, is_network_error=c.is_network_error, request=request, history=history,
        )
        error.__cause__ = cause
        return error

    # ─────────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────────

    def _breaker_for(self, request: RequestDescriptor) -> CircuitBreaker | None:
        if isinstance(self.breaker, BreakerRegistry):
            return self.breaker.for_request(request)
        return self.breaker

    def _policy_for(self, overrides: PolicyOverrides | None, policy_overrides: dict[str, Any]) -> RetryPolicy:
        if isinstance(overrides, RetryPolicy):
            return overrides.with_overrides(**policy_overrides)
        return self.policy.with_overrides(**{**(overrides or {}), **policy_overrides})

    async def request(
        self,
        request: RequestDescriptor,
        overrides: PolicyOverrides | None = None,
        **policy_overrides: Any,
    ) -> HttpResponse:
        """Execute ``request`` with the default policy plus overrides, through the breaker if any.

        Raises:
            HttpRequestError: Terminal failure after retries
            CircuitOpenError: The destination's circuit is open
        """
        policy = self._policy_for(overrides, policy_overrides)
        request = self.prepare(request)
        if (breaker := self._breaker_for(request)) is None:
            return await self.execute(request, policy)
        return await breaker.call(lambda: self.execute(request, policy))

    async def send(
        self,
        method: HttpMethod,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        body: str | bytes | None = None,
        json_body: Any = None,
        timeout: float | None = None,
        **policy_overrides: Any,
    ) -> HttpResponse:
        """Build a RequestDescriptor and run it through request()."""
        descriptor = RequestDescriptor(
            method=method, url=url, headers=dict(headers or {}), query_params=dict(params or {}),
            body=body, json_body=json_body, timeout=timeout,
        )
        return await self.request(descriptor, **policy_overrides)

    async def get(self, url: str, **kwargs: Any) -> HttpResponse:
        return await self.send("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> HttpResponse:
        return await self.send("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> HttpResponse:
        return await self.send("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> HttpResponse:
        return await self.send("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> HttpResponse:
        return await self.send("DELETE", url, **kwargs)

    async def request_many(
        self,
        requests: Iterable[RequestDescriptor],
        overrides: PolicyOverrides | None = None,
        *,
        limit: int | None = None,
        **policy_overrides: Any,
    ) -> list[Settled[HttpResponse]]:
        """Run many logical requests concurrently; one Settled per request, in input order."""
        return await gather_settled(
            *(self.request(r, overrides, **policy_overrides) for r in requests), limit=limit)

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"ResilientClient(base_url={self.base_url!r}, policy={self.policy!r})"
