"""Tests for the httpx transport and its exception mapping."""

from __future__ import annotations

import socket

import httpx
import orjson
import pytest

from steadycall import ResilientClient
from steadycall.foundation.config import HttpSettings
from steadycall.foundation.errors import FailureKind, HttpRequestError, NetworkError, TransportError
from steadycall.http import HttpxTransport, RequestDescriptor, transport_error_from_httpx
from steadycall.runtime.retry import RetryPolicy
from steadycall.testing import RecordingSleep


def _transport(handler) -> HttpxTransport:
    return HttpxTransport(httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_send_builds_request_and_response() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["content_type"] = request.headers.get("content-type")
        seen["body"] = orjson.loads(request.content)
        return httpx.Response(201, json={"id": 9}, headers={"X-Trace": "abc"})

    transport = _transport(handler)
    response = await transport.send(
        RequestDescriptor(method="POST", url="https://api.example.com/items", query_params={"dry": "1"},
                          json_body={"name": "widget"}),
        timeout=5.0,
    )
    assert seen == {"method": "POST", "url": "https://api.example.com/items?dry=1",
                    "content_type": "application/json", "body": {"name": "widget"}}
    assert response.status_code == 201
    assert response.json() == {"id": 9}
    assert response.header("x-trace") == "abc"
    assert response.elapsed >= 0


@pytest.mark.asyncio
async def test_non_2xx_is_returned_not_raised() -> None:
    transport = _transport(lambda request: httpx.Response(503, text="busy"))
    response = await transport.send(RequestDescriptor(url="https://api.example.com/"), timeout=1.0)
    assert response.status_code == 503
    assert response.is_server_error
    assert response.text == "busy"


@pytest.mark.asyncio
async def test_relative_url_rejected() -> None:
    transport = _transport(lambda request: httpx.Response(200))
    with pytest.raises(ValueError, match="absolute"):
        await transport.send(RequestDescriptor(url="/items"), timeout=1.0)


@pytest.mark.asyncio
async def test_httpx_errors_become_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

    with pytest.raises(TransportError) as exc_info:
        await _transport(handler).send(RequestDescriptor(url="https://api.example.com/"), timeout=1.0)
    assert exc_info.value.code == "ECONNREFUSED"
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


def _request() -> httpx.Request:
    return httpx.Request("GET", "https://api.example.com/")


def _chained(exc: httpx.HTTPError, cause: BaseException) -> httpx.HTTPError:
    exc.__cause__ = cause
    return exc


@pytest.mark.parametrize(("exc", "code"), [
    (httpx.ConnectTimeout("connect timed out"), "ETIMEDOUT"),
    (httpx.ReadTimeout("read timed out"), "ECONNABORTED"),
    (httpx.PoolTimeout("pool exhausted"), "ECONNABORTED"),
    (_chained(httpx.ConnectError("dns"), socket.gaierror(socket.EAI_NONAME, "Name or service not known")),
     "ENOTFOUND"),
    (_chained(httpx.ConnectError("dns"), socket.gaierror(socket.EAI_AGAIN, "Temporary failure")), "EAI_AGAIN"),
    (_chained(httpx.ConnectError("refused"), ConnectionRefusedError(111, "refused")), "ECONNREFUSED"),
    (httpx.ConnectError("[Errno -2] Name or service not known"), "ENOTFOUND"),
    (httpx.ConnectError("something odd"), "ESOCKET"),
    (httpx.ReadError("[Errno 104] Connection reset by peer"), "ECONNRESET"),
    (_chained(httpx.WriteError("write"), BrokenPipeError(32, "Broken pipe")), "ECONNRESET"),
    (httpx.RemoteProtocolError("Server disconnected without sending a response."), "ECONNRESET"),
    (httpx.ReadError("unexpected eof"), "ESOCKET"),
])
def test_exception_mapping(exc: httpx.HTTPError, code: str) -> None:
    error = transport_error_from_httpx(exc)
    assert error.code == code
    assert error.__cause__ is exc


def test_unmapped_httpx_errors_have_no_code() -> None:
    assert transport_error_from_httpx(httpx.TooManyRedirects("loop", request=_request())).code is None
    assert transport_error_from_httpx(httpx.UnsupportedProtocol("ftp")).code is None


@pytest.mark.asyncio
async def test_client_retries_over_httpx(sleep: RecordingSleep) -> None:
    attempts = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise httpx.ConnectError("Connection refused", request=request)
        if attempts == 2:
            return httpx.Response(502)
        return httpx.Response(200, json={"ok": True})

    client = ResilientClient(_transport(handler), RetryPolicy(jitter=False), sleep=sleep)
    response = await client.get("https://api.example.com/health")
    assert response.attempts == 3
    assert response.json() == {"ok": True}
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_client_surfaces_network_error_over_httpx(sleep: RecordingSleep) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    client = ResilientClient(_transport(handler), RetryPolicy(max_retries=1, jitter=False), sleep=sleep)
    with pytest.raises(NetworkError) as exc_info:
        await client.get("https://api.example.com/health")
    assert exc_info.value.error_code == "ECONNREFUSED"
    assert exc_info.value.attempts == 2


@pytest.mark.asyncio
async def test_nonstandard_status_surfaces_as_request_error(sleep: RecordingSleep) -> None:
    client = ResilientClient(_transport(lambda request: httpx.Response(600)), RetryPolicy(jitter=False), sleep=sleep)
    with pytest.raises(HttpRequestError) as exc_info:
        await client.get("https://api.example.com/health")
    assert exc_info.value.status_code == 600
    assert exc_info.value.kind is FailureKind.NON_RETRYABLE_STATUS
    assert exc_info.value.attempts == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_owned_client_closed_borrowed_client_not() -> None:
    borrowed = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    await HttpxTransport(borrowed).aclose()
    assert not borrowed.is_closed
    await borrowed.aclose()

    owned = HttpxTransport()
    owned._get_client()
    await owned.aclose()
    assert owned._client is None


def test_from_settings() -> None:
    transport = HttpxTransport.from_settings(HttpSettings(verify_ssl=False, max_redirects=3))
    assert transport.verify_ssl is False
    assert transport.max_redirects == 3
