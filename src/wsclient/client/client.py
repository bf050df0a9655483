"""Standalone HTTP client bound to a Runtime.

A thin, shareable layer over ``httpx.AsyncClient``:
- Defaults from ambient settings (``WSCLIENT_HTTP_*``)
- Bodies read through the runtime's Materializer (size limits, shutdown checks)
- httpx failures translated into the WsClientError hierarchy
- Idempotent close; use after close raises ClientClosedError

Example:
    >>> runtime = Runtime.start()
    >>> async with StandaloneClient(runtime) as client:
    ...     response = await client.url("http://example.com").get()
    ...     print(response.status_text, response.body(str))
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import TYPE_CHECKING

import httpx

from wsclient.foundation.config import HttpSettings, get_settings
from wsclient.foundation.errors import (
    BodyDecodeError,
    ClientClosedError,
    InvalidRequestError,
    RequestFailedError,
    RequestTimeoutError,
)
from wsclient.runtime import Materializer, Runtime
from wsclient.runtime.observability import get_logger

from .request import RequestBuilder
from .response import StandaloneResponse, StreamedResponse

if TYPE_CHECKING:
    from types import TracebackType

_log = get_logger("wsclient.client")


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    """Re-raise httpx failures as WsClientError subclasses, chaining the original."""
    try:
        yield
    except httpx.TimeoutException as e:
        raise RequestTimeoutError.from_exc(operation, e) from e
    except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
        raise InvalidRequestError.from_exc(operation, e) from e
    except httpx.DecodingError as e:
        raise BodyDecodeError.from_exc(operation, e) from e
    except httpx.HTTPError as e:
        raise RequestFailedError.from_exc(operation, e) from e


def _status_text(response: httpx.Response) -> str:
    """Reason phrase from the wire, or the standard phrase when the server sent none."""
    return response.reason_phrase or httpx.codes.get_reason_phrase(response.status_code)


class StandaloneClient:
    """Reusable HTTP client, safe to share between concurrent requests.

    Args:
        runtime: Active runtime the client is bound to
        materializer: Streaming handle for reading bodies (default: one for ``runtime``)
        settings: HTTP defaults (default: ``get_settings().http``)
        transport: Optional httpx async transport (e.g. ``httpx.MockTransport``)

    Raises:
        RuntimeTerminatedError: If ``runtime`` is no longer active
        pydantic.ValidationError: If ambient HTTP settings are malformed
    """

    __slots__ = ("_runtime", "_materializer", "_settings", "_http", "_closed", "_log")

    def __init__(
        self,
        runtime: Runtime,
        materializer: Materializer | None = None,
        *,
        settings: HttpSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        runtime.ensure_active()
        self._runtime = runtime
        self._materializer = materializer or Materializer.for_runtime(runtime)
        self._settings = settings or get_settings().http
        self._http = self._build_http_client(self._settings, transport)
        self._closed = False
        self._log = _log.bind(client=hex(id(self)))

    @staticmethod
    def _build_http_client(settings: HttpSettings, transport: httpx.AsyncBaseTransport | None) -> httpx.AsyncClient:
        kwargs: dict[str, object] = {
            "follow_redirects": settings.follow_redirects,
            "max_redirects": settings.max_redirects,
            "verify": settings.verify_ssl,
            "limits": httpx.Limits(
                max_connections=settings.max_connections,
                max_keepalive_connections=settings.max_keepalive_connections,
            ),
            "transport": transport,
        }
        if settings.timeout is not None:
            kwargs["timeout"] = settings.timeout
        if settings.user_agent:
            kwargs["headers"] = {"User-Agent": settings.user_agent}
        return httpx.AsyncClient(**kwargs)  # type: ignore[arg-type]

    @property
    def runtime(self) -> Runtime:
        return self._runtime

    @property
    def materializer(self) -> Materializer:
        return self._materializer

    @property
    def is_closed(self) -> bool:
        return self._closed

    def url(self, url: str) -> RequestBuilder:
        """Start building a request against ``url``."""
        return RequestBuilder(client=self, url=url)

    def _ensure_open(self) -> None:
        if self._closed:
            raise ClientClosedError("Client has been closed", operation="request")
        self._runtime.ensure_active()

    def _request_kwargs(self, request: RequestBuilder) -> dict[str, object]:
        kwargs: dict[str, object] = {
            "method": request.method,
            "url": request.url,
            "headers": list(request.headers) or None,
            "params": list(request.query) or None,
            "content": request.body,
        }
        if request.timeout is not None:
            kwargs["timeout"] = request.timeout
        if request.follow_redirects is not None:
            kwargs["follow_redirects"] = request.follow_redirects
        return kwargs

    # ─────────────────────────────────────────────────────────────────
    # Execution
    # ─────────────────────────────────────────────────────────────────

    async def execute(self, request: RequestBuilder) -> StandaloneResponse:
        """Submit ``request`` and read the whole body.

        Raises:
            ClientClosedError: If the client was closed
            RuntimeTerminatedError: If the runtime is no longer active
            RequestFailedError: Connection, DNS or protocol failure
            RequestTimeoutError: Transport timeout
            InvalidRequestError: URL httpx cannot parse or scheme it cannot serve
            ResponseTooLargeError: Body above ``max_response_size``
        """
        self._ensure_open()
        log = self._log.bind(method=request.method, url=request.url)
        log.debug("request submitted")
        start = time.perf_counter()
        with _translate_errors("request"):
            async with self._http.stream(**self._request_kwargs(request)) as raw:  # type: ignore[arg-type]
                body = await self._materializer.collect(
                    raw.aiter_bytes(self._materializer.chunk_size),
                    limit=self._settings.max_response_size_bytes,
                )
        elapsed_ms = (time.perf_counter() - start) * 1000
        log.debug("response received", status=raw.status_code, bytes=len(body), elapsed_ms=round(elapsed_ms, 2))
        return StandaloneResponse(
            status=raw.status_code,
            status_text=_status_text(raw),
            headers=dict(raw.headers),
            uri=str(raw.url),
            body_bytes=body,
            elapsed_ms=elapsed_ms,
        )

    @asynccontextmanager
    async def stream(self, request: RequestBuilder) -> AsyncIterator[StreamedResponse]:
        """Submit ``request``; the body is read while iterating ``body_stream()``."""
        self._ensure_open()
        self._log.debug("stream opened", method=request.method, url=request.url)
        with _translate_errors("stream"):
            async with self._http.stream(**self._request_kwargs(request)) as raw:  # type: ignore[arg-type]
                yield StreamedResponse(
                    status=raw.status_code,
                    status_text=_status_text(raw),
                    headers=dict(raw.headers),
                    uri=str(raw.url),
                    _chunks=self._materializer.iterate(
                        raw.aiter_bytes(self._materializer.chunk_size),
                        limit=self._settings.max_response_size_bytes,
                    ),
                )

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    async def close(self) -> None:
        """Release pooled connections. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._http.aclose()
        self._log.debug("client closed")

    async def __aenter__(self) -> StandaloneClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"StandaloneClient(closed={self._closed}, runtime={self._runtime!r})"
