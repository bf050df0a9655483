"""Immutable request descriptors.

A RequestBuilder is created from a client with ``client.url(...)``. Every
``with_*`` call returns a new builder; the verbs submit it.

Example:
    >>> response = await client.url("https://api.example.com/items") \\
    ...     .with_query_string(page="2") \\
    ...     .with_headers(Accept="application/json") \\
    ...     .get()
"""

from __future__ import annotations

import dataclasses
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from .client import StandaloneClient
    from .response import StandaloneResponse, StreamedResponse

HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]
ALL_METHODS: frozenset[str] = frozenset(["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"])


@dataclass(slots=True, frozen=True)
class RequestBuilder:
    """Request descriptor bound to the client that will submit it.

    Attributes:
        url: Target URL (parsed by httpx on submission)
        method: HTTP method, GET unless changed
        headers: Extra request headers
        query: Query string parameters
        body: Request body
        timeout: Per-request timeout in seconds (None = client default)
        follow_redirects: Override the client's redirect policy
    """

    client: StandaloneClient = field(repr=False)
    url: str
    method: str = "GET"
    headers: tuple[tuple[str, str], ...] = ()
    query: tuple[tuple[str, str], ...] = ()
    body: bytes | None = field(default=None, repr=False)
    timeout: float | None = None
    follow_redirects: bool | None = None

    def with_headers(self, *pairs: tuple[str, str], **headers: str) -> RequestBuilder:
        """Add headers; existing ones are kept (repeated names are sent twice)."""
        return dataclasses.replace(self, headers=self.headers + pairs + tuple(headers.items()))

    def with_query_string(self, *pairs: tuple[str, str], **params: str) -> RequestBuilder:
        return dataclasses.replace(self, query=self.query + pairs + tuple(params.items()))

    def with_method(self, method: str) -> RequestBuilder:
        verb = method.upper()
        if verb not in ALL_METHODS:
            raise ValueError(f"Unsupported method '{method}'. Allowed: {', '.join(sorted(ALL_METHODS))}")
        return dataclasses.replace(self, method=verb)

    def with_body(self, body: str | bytes, *, content_type: str | None = None) -> RequestBuilder:
        """Set the request body (str is encoded as UTF-8)."""
        raw = body.encode() if isinstance(body, str) else body
        built = dataclasses.replace(self, body=raw)
        if content_type is None and isinstance(body, str):
            content_type = "text/plain; charset=utf-8"
        return built.with_headers(("Content-Type", content_type)) if content_type else built

    def with_request_timeout(self, seconds: float) -> RequestBuilder:
        if seconds <= 0:
            raise ValueError("timeout must be > 0")
        return dataclasses.replace(self, timeout=seconds)

    def with_follow_redirects(self, follow: bool) -> RequestBuilder:
        return dataclasses.replace(self, follow_redirects=follow)

    # ─────────────────────────────────────────────────────────────────
    # Submission
    # ─────────────────────────────────────────────────────────────────

    async def execute(self, method: str | None = None) -> StandaloneResponse:
        """Submit the request, optionally overriding the method."""
        request = self.with_method(method) if method else self
        return await self.client.execute(request)

    async def get(self) -> StandaloneResponse:
        return await self.execute("GET")

    async def post(self, body: str | bytes | None = None) -> StandaloneResponse:
        return await (self.with_body(body) if body is not None else self).execute("POST")

    async def put(self, body: str | bytes | None = None) -> StandaloneResponse:
        return await (self.with_body(body) if body is not None else self).execute("PUT")

    async def patch(self, body: str | bytes | None = None) -> StandaloneResponse:
        return await (self.with_body(body) if body is not None else self).execute("PATCH")

    async def delete(self) -> StandaloneResponse:
        return await self.execute("DELETE")

    async def head(self) -> StandaloneResponse:
        return await self.execute("HEAD")

    async def options(self) -> StandaloneResponse:
        return await self.execute("OPTIONS")

    def stream(self) -> AbstractAsyncContextManager[StreamedResponse]:
        """Submit the request and expose the body as a chunk stream.

        Example:
            >>> async with client.url(url).stream() as streamed:
            ...     async for chunk in streamed.body_stream():
            ...         sink.write(chunk)
        """
        return self.client.stream(self)


__all__ = ["ALL_METHODS", "HttpMethod", "RequestBuilder"]
