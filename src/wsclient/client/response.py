"""Response models.

StandaloneResponse is immutable once built: status line, headers, the final
URI and the fully materialized body bytes. Typed bodies are decoded lazily on
each ``body()`` call. StreamedResponse carries the same status line and
headers but exposes the body as an async chunk stream.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Annotated, Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, computed_field

from .readables import JSON, BodyReadable, charset_from_content_type, resolve_readable

T = TypeVar("T")


def _header(headers: dict[str, str], key: str) -> str | None:
    """Case-insensitive header lookup."""
    key_lower = key.lower()
    return next((v for k, v in headers.items() if k.lower() == key_lower), None)


class StandaloneResponse(BaseModel):
    """HTTP response with a fully read body."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        revalidate_instances="never",
    )

    status: Annotated[int, Field(ge=100, le=599)]
    status_text: str
    headers: dict[str, str] = Field(default_factory=dict, repr=False)
    uri: str
    body_bytes: bytes = Field(default=b"", repr=False)
    elapsed_ms: NonNegativeFloat = 0.0

    def header(self, key: str) -> str | None:
        return _header(self.headers, key)

    @computed_field
    @property
    def content_type(self) -> str | None:
        """Content-Type header including parameters."""
        return self.header("content-type")

    @computed_field
    @property
    def charset(self) -> str | None:
        return charset_from_content_type(self.content_type)

    @computed_field
    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300

    def body(self, readable: type[T] | BodyReadable[T] = str) -> T:  # type: ignore[assignment]
        """Decode the body as ``readable`` (``str``, ``bytes`` or a BodyReadable).

        Raises:
            BodyDecodeError: If the bytes are not valid for the requested type
        """
        return resolve_readable(readable)(self.body_bytes, self.charset)

    @property
    def text(self) -> str:
        return self.body(str)

    def parse_json(self) -> Any:
        return self.body(JSON)

    def __hash__(self) -> int:
        return hash((self.status, self.uri, self.body_bytes))


@dataclass(slots=True)
class StreamedResponse:
    """Status line and headers of a response whose body has not been read yet.

    Only valid inside the ``stream()`` context that produced it.
    """

    status: int
    status_text: str
    headers: dict[str, str]
    uri: str
    _chunks: AsyncIterator[bytes] = field(repr=False)

    def header(self, key: str) -> str | None:
        return _header(self.headers, key)

    def body_stream(self) -> AsyncIterator[bytes]:
        """Iterate over body chunks as they arrive."""
        return self._chunks
