"""Transports perform exactly one HTTP exchange per call.

A transport returns an HttpResponse for any completed exchange (including
4xx/5xx) and raises TransportError when no response arrives. Retrying,
classification and deadlines above the transport's own are the client's job.
"""

from __future__ import annotations

import socket
import time
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

from steadycall.foundation.errors import TransportError, TransportErrorCode

from .models import HttpResponse, RequestDescriptor

if TYPE_CHECKING:
    from steadycall.foundation.config import HttpSettings


@runtime_checkable
class Transport(Protocol):
    """Capability to perform one HTTP request with a deadline."""

    async def send(self, request: RequestDescriptor, *, timeout: float) -> HttpResponse:
        """Send ``request`` once. Raise TransportError if no response is received."""
        ...

    async def aclose(self) -> None: ...


# ─────────────────────────────────────────────────────────────────────────────
# httpx exception mapping
# ─────────────────────────────────────────────────────────────────────────────

# Substrings seen in resolver/socket messages when no errno survives the wrapping
_MESSAGE_CODES: tuple[tuple[str, TransportErrorCode], ...] = (
    ("temporary failure in name resolution", TransportErrorCode.DNS_TEMPORARY_FAILURE),
    ("name or service not known", TransportErrorCode.DNS_FAILURE),
    ("nodename nor servname", TransportErrorCode.DNS_FAILURE),
    ("no address associated", TransportErrorCode.DNS_FAILURE),
    ("getaddrinfo", TransportErrorCode.DNS_FAILURE),
    ("connection refused", TransportErrorCode.CONNECTION_REFUSED),
    ("connection reset", TransportErrorCode.CONNECTION_RESET),
    ("server disconnected", TransportErrorCode.CONNECTION_RESET),
    ("broken pipe", TransportErrorCode.CONNECTION_RESET),
)


def _causes(exc: BaseException) -> list[BaseException]:
    """The exception followed by its __cause__/__context__ chain."""
    seen: list[BaseException] = []
    cur: BaseException | None = exc
    while cur is not None and cur not in seen:
        seen.append(cur)
        cur = cur.__cause__ or cur.__context__
    return seen


def _socket_code(exc: BaseException) -> TransportErrorCode | None:
    for cause in _causes(exc):
        match cause:
            case socket.gaierror():
                return (TransportErrorCode.DNS_TEMPORARY_FAILURE if cause.errno == socket.EAI_AGAIN
                        else TransportErrorCode.DNS_FAILURE)
            case ConnectionRefusedError():
                return TransportErrorCode.CONNECTION_REFUSED
            case ConnectionResetError() | BrokenPipeError() | ConnectionAbortedError():
                return TransportErrorCode.CONNECTION_RESET
    text = " ".join(str(c) for c in _causes(exc)).lower()
    return next((code for pattern, code in _MESSAGE_CODES if pattern in text), None)


def transport_error_from_httpx(exc: httpx.HTTPError) -> TransportError:
    """Translate an httpx exception into a TransportError with an errno-style code."""
    match exc:
        case httpx.ConnectTimeout():
            code: TransportErrorCode | None = TransportErrorCode.CONNECT_TIMEOUT
        case httpx.TimeoutException():
            code = TransportErrorCode.ABORTED
        case httpx.ConnectError():
            code = _socket_code(exc) or TransportErrorCode.SOCKET_ERROR
        case httpx.ReadError() | httpx.WriteError() | httpx.CloseError() | httpx.RemoteProtocolError():
            code = _socket_code(exc) or TransportErrorCode.SOCKET_ERROR
        case _:
            code = None
    message = str(exc) or type(exc).__name__
    error = TransportError(message, code.value if code else None)
    error.__cause__ = exc
    return error


# ─────────────────────────────────────────────────────────────────────────────
# Default transport
# ─────────────────────────────────────────────────────────────────────────────

class HttpxTransport:
    """Transport over a lazily created ``httpx.AsyncClient``.

    Pass ``client`` to reuse an existing AsyncClient (its lifecycle then stays
    with the caller), e.g. one built on ``httpx.MockTransport`` in tests.
    """

    __slots__ = ("_client", "_owns_client", "verify_ssl", "follow_redirects", "max_redirects")

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        verify_ssl: bool = True,
        follow_redirects: bool = True,
        max_redirects: int = 10,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self.verify_ssl = verify_ssl
        self.follow_redirects = follow_redirects
        self.max_redirects = max_redirects

    @classmethod
    def from_settings(cls, settings: HttpSettings | None = None) -> HttpxTransport:
        if settings is None:
            from steadycall.foundation.config import get_settings
            settings = get_settings().http
        return cls(verify_ssl=settings.verify_ssl, follow_redirects=settings.follow_redirects,
                   max_redirects=settings.max_redirects)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=self.verify_ssl,
                follow_redirects=self.follow_redirects,
                max_redirects=self.max_redirects,
            )
        return self._client

    async def send(self, request: RequestDescriptor, *, timeout: float) -> HttpResponse:
        if not request.is_absolute:
            raise ValueError(f"Request URL must be absolute, got {request.url!r}")
        start = time.perf_counter()
        try:
            response = await self._get_client().request(
                method=request.method,
                url=request.url,
                headers=request.wire_headers(),
                params=request.query_params or None,
                content=request.content(),
                timeout=timeout,
            )
        except httpx.HTTPError as e:
            raise transport_error_from_httpx(e) from e
        return HttpResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content,
            url=str(response.url),
            elapsed=time.perf_counter() - start,
        )

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def __repr__(self) -> str:
        return f"HttpxTransport(verify_ssl={self.verify_ssl}, follow_redirects={self.follow_redirects})"
