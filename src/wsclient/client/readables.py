"""Body readables: how a response body is materialized as a typed value.

``response.body(str)`` decodes text using the Content-Type charset (UTF-8 when
absent), ``response.body(bytes)`` returns the raw bytes and
``response.body(JSON)`` parses the body with orjson. Custom readables are plain
``BodyReadable`` instances wrapping a function of (bytes, charset).

Example:
    >>> CSV = BodyReadable("csv", lambda raw, charset: raw.decode(charset or "utf-8").splitlines())
    >>> rows = response.body(CSV)
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

import orjson

from wsclient.foundation.errors import BodyDecodeError, ErrorCode, ErrorInfo

T = TypeVar("T")

DEFAULT_CHARSET = "utf-8"


@dataclass(slots=True, frozen=True)
class BodyReadable(Generic[T]):
    """Named decoder from raw body bytes (plus optional charset) to ``T``."""

    name: str
    read: Callable[[bytes, str | None], T]

    def __call__(self, raw: bytes, charset: str | None = None) -> T:
        try:
            return self.read(raw, charset)
        except BodyDecodeError:
            raise
        except (UnicodeDecodeError, LookupError, ValueError) as e:
            raise BodyDecodeError(ErrorInfo.from_exception(
                f"decode:{self.name}", e, code=ErrorCode.DECODE_ERROR,
            )) from e


def _read_text(raw: bytes, charset: str | None) -> str:
    encoding = charset or DEFAULT_CHARSET
    codecs.lookup(encoding)  # LookupError for unknown charsets
    return raw.decode(encoding)


def _read_bytes(raw: bytes, charset: str | None) -> bytes:
    return raw


def _read_json(raw: bytes, charset: str | None) -> Any:
    # orjson only accepts UTF-8; transcode anything else first
    if charset and codecs.lookup(charset).name != "utf-8":
        raw = raw.decode(charset).encode()
    return orjson.loads(raw)


STRING: BodyReadable[str] = BodyReadable("string", _read_text)
BYTES: BodyReadable[bytes] = BodyReadable("bytes", _read_bytes)
JSON: BodyReadable[Any] = BodyReadable("json", _read_json)

_BY_TYPE: dict[type, BodyReadable[Any]] = {str: STRING, bytes: BYTES}


def resolve_readable(readable: type[T] | BodyReadable[T]) -> BodyReadable[T]:
    """Map ``str``/``bytes`` to their readables; pass BodyReadable through."""
    if isinstance(readable, BodyReadable):
        return readable
    try:
        return _BY_TYPE[readable]
    except KeyError:
        raise TypeError(f"No body readable for {readable!r}; pass a BodyReadable") from None


def charset_from_content_type(content_type: str | None) -> str | None:
    """Extract the charset parameter from a Content-Type header value."""
    if not content_type:
        return None
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset":
            return value.strip().strip('"').strip("'") or None
    return None
