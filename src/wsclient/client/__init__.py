"""Standalone HTTP client, request builders, responses and body readables."""

from .client import StandaloneClient
from .readables import BYTES, JSON, STRING, BodyReadable, charset_from_content_type, resolve_readable
from .request import ALL_METHODS, HttpMethod, RequestBuilder
from .response import StandaloneResponse, StreamedResponse

__all__ = [
    "ALL_METHODS",
    "BYTES",
    "BodyReadable",
    "HttpMethod",
    "JSON",
    "RequestBuilder",
    "STRING",
    "StandaloneClient",
    "StandaloneResponse",
    "StreamedResponse",
    "charset_from_content_type",
    "resolve_readable",
]
