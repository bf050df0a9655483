"""wsclient - Standalone asynchronous HTTP client on an explicit runtime.

A small client library built on httpx and asyncio, with an explicit runtime
handle instead of hidden global state:

Quick Start:
    >>> import asyncio
    >>> from wsclient import Runtime, StandaloneClient
    >>>
    >>> async def main():
    ...     async with Runtime.start() as runtime:
    ...         async with StandaloneClient(runtime) as client:
    ...             response = await client.url("http://example.com").get()
    ...             print(response.status_text)
    ...             print(response.body(str))
    >>> asyncio.run(main())

Continuation Style:
    >>> from wsclient import and_then
    >>> pending = runtime.spawn(call(client, url))
    >>> done = and_then(and_then(pending, lambda _: client.close()),
    ...                 lambda _: runtime.terminate())

Command Line:
    $ python -m wsclient          # GET $WSCLIENT_URL (default http://cn.bing.com)
"""

from __future__ import annotations

__version__ = "0.1.0"

# Client
from .client import (
    BYTES,
    JSON,
    STRING,
    BodyReadable,
    RequestBuilder,
    StandaloneClient,
    StandaloneResponse,
    StreamedResponse,
)

# Configuration
from .foundation.config import WsClientSettings, clear_settings_cache, get_settings

# Errors
from .foundation.errors import (
    BodyDecodeError,
    ClientClosedError,
    ErrorCode,
    ErrorInfo,
    InvalidRequestError,
    RequestFailedError,
    RequestTimeoutError,
    ResponseTooLargeError,
    RuntimeTerminatedError,
    WsClientError,
    classify_exception,
)

# Pipeline
from .pipeline import call, run

# Runtime
from .runtime import Materializer, Runtime, Settled, and_then, on_complete, settle

# Logging
from .runtime.observability import configure_logging, get_logger

__all__ = [
    "__version__",
    # Client
    "BYTES",
    "JSON",
    "STRING",
    "BodyReadable",
    "RequestBuilder",
    "StandaloneClient",
    "StandaloneResponse",
    "StreamedResponse",
    # Configuration
    "WsClientSettings",
    "clear_settings_cache",
    "get_settings",
    # Errors
    "BodyDecodeError",
    "ClientClosedError",
    "ErrorCode",
    "ErrorInfo",
    "InvalidRequestError",
    "RequestFailedError",
    "RequestTimeoutError",
    "ResponseTooLargeError",
    "RuntimeTerminatedError",
    "WsClientError",
    "classify_exception",
    # Pipeline
    "call",
    "run",
    # Runtime
    "Materializer",
    "Runtime",
    "Settled",
    "and_then",
    "on_complete",
    "settle",
    # Logging
    "configure_logging",
    "get_logger",
]
