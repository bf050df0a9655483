"""Error codes, structured error info and the client exception hierarchy."""

from .errors import (
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

__all__ = [
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
]
