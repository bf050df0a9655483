"""Tests for StandaloneClient and RequestBuilder against mock transports."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import httpx
import pytest

from wsclient.client import JSON, StandaloneClient
from wsclient.foundation.config import HttpSettings
from wsclient.foundation.errors import (
    ClientClosedError,
    ErrorCode,
    InvalidRequestError,
    RequestFailedError,
    RequestTimeoutError,
    ResponseTooLargeError,
    RuntimeTerminatedError,
)
from wsclient.runtime import Runtime

TextTransport = Callable[..., httpx.MockTransport]


def _recording(seen: list[httpx.Request], response: httpx.Response | None = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return response if response is not None else httpx.Response(200, text="ok")
    return httpx.MockTransport(handler)


def _raising(exc_type: type[httpx.TransportError], message: str) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_type(message, request=request)
    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_get_returns_status_text_and_body(
    runtime: Runtime, http_settings: HttpSettings, hello_transport: httpx.MockTransport,
) -> None:
    async with StandaloneClient(runtime, settings=http_settings, transport=hello_transport) as client:
        response = await client.url("http://example.test/").get()

    assert response.status == 200
    assert response.status_text == "OK"
    assert response.body(str) == "hello"
    assert response.is_success
    assert response.uri == "http://example.test/"


@pytest.mark.asyncio
async def test_get_sends_no_body(runtime: Runtime, http_settings: HttpSettings) -> None:
    seen: list[httpx.Request] = []
    async with StandaloneClient(runtime, settings=http_settings, transport=_recording(seen)) as client:
        await client.url("http://example.test/path").get()

    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert seen[0].content == b""


@pytest.mark.asyncio
async def test_builder_is_immutable_and_sends_headers_and_query(runtime: Runtime, http_settings: HttpSettings) -> None:
    seen: list[httpx.Request] = []
    async with StandaloneClient(runtime, settings=http_settings, transport=_recording(seen)) as client:
        base = client.url("http://example.test/items")
        tuned = base.with_headers(Accept="application/json").with_query_string(page="2")

        assert base.headers == () and base.query == ()
        await tuned.get()

    request = seen[0]
    assert request.headers["Accept"] == "application/json"
    assert request.url.params["page"] == "2"


@pytest.mark.asyncio
async def test_post_string_body_sets_content_type(runtime: Runtime, http_settings: HttpSettings) -> None:
    seen: list[httpx.Request] = []
    async with StandaloneClient(runtime, settings=http_settings, transport=_recording(seen)) as client:
        await client.url("http://example.test/items").post("payload")

    assert seen[0].method == "POST"
    assert seen[0].content == b"payload"
    assert seen[0].headers["Content-Type"] == "text/plain; charset=utf-8"


@pytest.mark.asyncio
async def test_invalid_builder_values_are_rejected(
    runtime: Runtime, http_settings: HttpSettings, hello_transport: httpx.MockTransport,
) -> None:
    async with StandaloneClient(runtime, settings=http_settings, transport=hello_transport) as client:
        builder = client.url("http://example.test/")
        with pytest.raises(ValueError):
            builder.with_method("FETCH")
        with pytest.raises(ValueError):
            builder.with_request_timeout(0)


@pytest.mark.asyncio
async def test_request_timeout_reaches_transport(runtime: Runtime, http_settings: HttpSettings) -> None:
    seen: list[httpx.Request] = []
    async with StandaloneClient(runtime, settings=http_settings, transport=_recording(seen)) as client:
        await client.url("http://example.test/").with_request_timeout(1.5).get()

    assert seen[0].extensions["timeout"]["read"] == 1.5


@pytest.mark.asyncio
async def test_user_agent_from_settings(runtime: Runtime) -> None:
    seen: list[httpx.Request] = []
    settings = HttpSettings(user_agent="wsclient-tests/1.0")
    async with StandaloneClient(runtime, settings=settings, transport=_recording(seen)) as client:
        await client.url("http://example.test/").get()

    assert seen[0].headers["User-Agent"] == "wsclient-tests/1.0"


@pytest.mark.asyncio
async def test_json_body(runtime: Runtime, http_settings: HttpSettings) -> None:
    transport = _recording([], httpx.Response(200, json={"name": "widget", "count": 3}))
    async with StandaloneClient(runtime, settings=http_settings, transport=transport) as client:
        response = await client.url("http://example.test/item").get()

    assert response.body(JSON) == {"name": "widget", "count": 3}


# ─────────────────────────────────────────────────────────────────────────────
# Status text
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_reason_phrase_from_wire_is_kept(runtime: Runtime, http_settings: HttpSettings) -> None:
    transport = _recording([], httpx.Response(200, content=b"", extensions={"reason_phrase": b"Fine"}))
    async with StandaloneClient(runtime, settings=http_settings, transport=transport) as client:
        response = await client.url("http://example.test/").get()

    assert response.status_text == "Fine"


@pytest.mark.asyncio
async def test_empty_reason_phrase_falls_back_to_standard(runtime: Runtime, http_settings: HttpSettings) -> None:
    transport = _recording([], httpx.Response(404, content=b"", extensions={"reason_phrase": b""}))
    async with StandaloneClient(runtime, settings=http_settings, transport=transport) as client:
        response = await client.url("http://example.test/missing").get()

    assert response.status == 404
    assert response.status_text == "Not Found"
    assert not response.is_success


# ─────────────────────────────────────────────────────────────────────────────
# Failures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_connect_error_becomes_request_failed(runtime: Runtime, http_settings: HttpSettings) -> None:
    transport = _raising(httpx.ConnectError, "connection refused")
    async with StandaloneClient(runtime, settings=http_settings, transport=transport) as client:
        with pytest.raises(RequestFailedError) as exc_info:
            await client.url("http://unreachable.test/").get()

    assert exc_info.value.info.code == ErrorCode.NETWORK_ERROR
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_read_timeout_becomes_request_timeout(runtime: Runtime, http_settings: HttpSettings) -> None:
    transport = _raising(httpx.ReadTimeout, "timed out")
    async with StandaloneClient(runtime, settings=http_settings, transport=transport) as client:
        with pytest.raises(RequestTimeoutError):
            await client.url("http://slow.test/").get()


@pytest.mark.asyncio
async def test_unparseable_url_becomes_invalid_request(
    runtime: Runtime, http_settings: HttpSettings, hello_transport: httpx.MockTransport,
) -> None:
    async with StandaloneClient(runtime, settings=http_settings, transport=hello_transport) as client:
        with pytest.raises(InvalidRequestError):
            await client.url("http://example.com:notaport/").get()


@pytest.mark.asyncio
async def test_body_above_limit_is_rejected(runtime: Runtime, text_transport: TextTransport) -> None:
    settings = HttpSettings(max_response_size=10)
    async with StandaloneClient(runtime, settings=settings, transport=text_transport("x" * 64)) as client:
        with pytest.raises(ResponseTooLargeError):
            await client.url("http://example.test/big").get()


@pytest.mark.asyncio
async def test_closed_client_refuses_requests(
    runtime: Runtime, http_settings: HttpSettings, hello_transport: httpx.MockTransport,
) -> None:
    client = StandaloneClient(runtime, settings=http_settings, transport=hello_transport)
    await client.close()
    await client.close()

    assert client.is_closed
    with pytest.raises(ClientClosedError):
        await client.url("http://example.test/").get()


@pytest.mark.asyncio
async def test_terminated_runtime_refuses_requests(
    runtime: Runtime, http_settings: HttpSettings, hello_transport: httpx.MockTransport,
) -> None:
    client = StandaloneClient(runtime, settings=http_settings, transport=hello_transport)
    await runtime.terminate()

    with pytest.raises(RuntimeTerminatedError):
        await client.url("http://example.test/").get()
    with pytest.raises(RuntimeTerminatedError):
        StandaloneClient(runtime, settings=http_settings, transport=hello_transport)
    await client.close()


# ─────────────────────────────────────────────────────────────────────────────
# Streaming and concurrency
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_stream_yields_body_chunks(runtime: Runtime, text_transport: TextTransport) -> None:
    async with StandaloneClient(runtime, settings=HttpSettings(), transport=text_transport("streamed body")) as client:
        async with client.url("http://example.test/").stream() as streamed:
            assert streamed.status == 200
            assert streamed.header("content-type") == "text/plain; charset=utf-8"
            chunks = [chunk async for chunk in streamed.body_stream()]

    assert b"".join(chunks) == b"streamed body"


@pytest.mark.asyncio
async def test_concurrent_requests_share_one_client(runtime: Runtime, http_settings: HttpSettings) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.01)
        return httpx.Response(200, text=request.url.path)

    async with StandaloneClient(runtime, settings=http_settings, transport=httpx.MockTransport(handler)) as client:
        responses = await asyncio.gather(*(client.url(f"http://example.test/{i}").get() for i in range(5)))

    assert [r.body(str) for r in responses] == [f"/{i}" for i in range(5)]


@pytest.mark.parametrize(("client_follows", "request_follows", "status", "body"), [
    (False, True, 200, "moved here"),
    (True, False, 302, ""),
])
@pytest.mark.asyncio
async def test_per_request_redirect_policy_overrides_settings(
    runtime: Runtime, client_follows: bool, request_follows: bool, status: int, body: str,
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(302, headers={"Location": "http://example.test/new"})
        return httpx.Response(200, text="moved here")

    settings = HttpSettings(follow_redirects=client_follows)
    async with StandaloneClient(runtime, settings=settings, transport=httpx.MockTransport(handler)) as client:
        response = await client.url("http://example.test/old").with_follow_redirects(request_follows).get()

    assert response.status == status
    assert response.body(str) == body
