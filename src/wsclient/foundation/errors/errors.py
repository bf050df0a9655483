"""Standardized error handling for the client and runtime.

Provides error codes, a structured error record and an exception hierarchy.
Uses Pydantic for validation and serialization of the error record.
"""

from __future__ import annotations

import traceback
from enum import StrEnum
from functools import lru_cache
from typing import Annotated, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class ErrorCode(StrEnum):
    """Standard error codes for client and runtime failures."""
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    DECODE_ERROR = "DECODE_ERROR"
    RESPONSE_TOO_LARGE = "RESPONSE_TOO_LARGE"
    CLIENT_CLOSED = "CLIENT_CLOSED"
    RUNTIME_TERMINATED = "RUNTIME_TERMINATED"
    INVALID_REQUEST = "INVALID_REQUEST"
    UNKNOWN = "UNKNOWN"


# Checked in order, first hit wins
_PATTERN_CODES: dict[str, ErrorCode] = {
    "timeout": ErrorCode.TIMEOUT,
    "decode": ErrorCode.DECODE_ERROR,
    "unicode": ErrorCode.DECODE_ERROR,
    "json": ErrorCode.DECODE_ERROR,
    "connect": ErrorCode.NETWORK_ERROR,
    "network": ErrorCode.NETWORK_ERROR,
    "protocol": ErrorCode.NETWORK_ERROR,
    "url": ErrorCode.INVALID_REQUEST,
    "closed": ErrorCode.CLIENT_CLOSED,
}
_PATTERN_KEYS = tuple(_PATTERN_CODES.keys())


@lru_cache(maxsize=256)
def _classify_cached(exc_key: str) -> ErrorCode:
    haystack = exc_key.lower()
    for pattern in _PATTERN_KEYS:
        if pattern in haystack:
            return _PATTERN_CODES[pattern]
    return ErrorCode.UNKNOWN


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map exception to error code via pattern matching on name/message."""
    if isinstance(exc, WsClientError):
        return exc.info.code
    return _classify_cached(f"{type(exc).__name__} {exc}")


class ErrorInfo(BaseModel):
    """Structured description of a failure.

    Attributes:
        operation: What was being done (e.g. "request", "decode")
        message: Human-readable error message
        code: Machine-readable error code
        recoverable: Whether a retry might succeed
        details: Optional detailed information (e.g. stack trace)
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        validate_default=True,
        json_schema_extra={
            "title": "Client Error",
            "examples": [{
                "operation": "request",
                "message": "Connection refused",
                "code": "NETWORK_ERROR",
                "recoverable": True,
            }],
        },
    )

    operation: Annotated[str, Field(min_length=1)]
    message: Annotated[str, Field(min_length=1)]
    code: ErrorCode = ErrorCode.UNKNOWN
    recoverable: bool = False
    details: str | None = Field(default=None, repr=False)

    @field_validator("message", mode="before")
    @classmethod
    def _ensure_message(cls, v: str | BaseException) -> str:
        """Accept exception objects and fall back to the type name for empty messages."""
        if isinstance(v, BaseException):
            return str(v) or type(v).__name__
        return v

    @computed_field
    @property
    def is_retryable(self) -> bool:
        """Whether this error is typically retryable (timeouts, network)."""
        return self.code in _RETRYABLE_CODES

    @classmethod
    def from_exception(
        cls,
        operation: str,
        exc: BaseException,
        *,
        code: ErrorCode | None = None,
        include_trace: bool = False,
    ) -> Self:
        """Create from exception with auto-classification."""
        resolved = code or classify_exception(exc)
        return cls(
            operation=operation,
            message=exc,
            code=resolved,
            recoverable=resolved in _RETRYABLE_CODES,
            details="".join(traceback.format_exception(exc)) if include_trace else None,
        )

    def render(self) -> str:
        return f"[{self.code}] {self.operation}: {self.message}"

    __str__ = render


_RETRYABLE_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.TIMEOUT,
    ErrorCode.NETWORK_ERROR,
})


class WsClientError(Exception):
    """Base exception wrapping an ErrorInfo."""

    __slots__ = ("info",)

    code: ClassVar[ErrorCode] = ErrorCode.UNKNOWN

    def __init__(self, info: ErrorInfo | str, *, operation: str = "client") -> None:
        if isinstance(info, str):
            info = ErrorInfo(operation=operation, message=info, code=self.code,
                             recoverable=self.code in _RETRYABLE_CODES)
        self.info = info
        super().__init__(info.message)

    @classmethod
    def from_exc(cls, operation: str, exc: BaseException) -> Self:
        """Wrap a lower-level exception, keeping this class's error code."""
        return cls(ErrorInfo.from_exception(operation, exc, code=cls.code))


class RequestFailedError(WsClientError):
    """The request could not be completed (connection refused, DNS, protocol)."""
    code = ErrorCode.NETWORK_ERROR


class RequestTimeoutError(WsClientError):
    """The transport gave up waiting for the server."""
    code = ErrorCode.TIMEOUT


class BodyDecodeError(WsClientError):
    """The response body could not be decoded as the requested type."""
    code = ErrorCode.DECODE_ERROR


class ResponseTooLargeError(WsClientError):
    code = ErrorCode.RESPONSE_TOO_LARGE


class ClientClosedError(WsClientError):
    code = ErrorCode.CLIENT_CLOSED


class RuntimeTerminatedError(WsClientError):
    code = ErrorCode.RUNTIME_TERMINATED


class InvalidRequestError(WsClientError):
    code = ErrorCode.INVALID_REQUEST
