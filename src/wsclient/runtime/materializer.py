"""Streaming handle layered on the Runtime.

A Materializer turns async byte streams into values. It shares the lifetime
of the Runtime it was built from and has no teardown of its own: once the
runtime starts terminating, every new materialization is refused.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass

from wsclient.foundation.errors import ErrorCode, ErrorInfo, ResponseTooLargeError
from wsclient.runtime.system import Runtime


@dataclass(slots=True, frozen=True)
class Materializer:
    """Collects or relays chunked bodies on behalf of a Runtime.

    Attributes:
        runtime: Owning runtime
        chunk_size: Preferred chunk size for readers feeding this materializer
    """

    runtime: Runtime
    chunk_size: int = 8192

    @classmethod
    def for_runtime(cls, runtime: Runtime) -> Materializer:
        return cls(runtime=runtime, chunk_size=runtime.settings.chunk_size)

    async def collect(self, chunks: AsyncIterable[bytes], *, limit: int | None = None) -> bytes:
        """Drain a byte stream into one bytes value.

        Raises:
            RuntimeTerminatedError: If the runtime is no longer active
            ResponseTooLargeError: If more than ``limit`` bytes arrive
        """
        buf = bytearray()
        async for chunk in self.iterate(chunks, limit=limit):
            buf += chunk
        return bytes(buf)

    async def iterate(self, chunks: AsyncIterable[bytes], *, limit: int | None = None) -> AsyncIterator[bytes]:
        """Relay chunks, enforcing ``limit`` on the running total."""
        self.runtime.ensure_active()
        total = 0
        async for chunk in chunks:
            total += len(chunk)
            if limit is not None and total > limit:
                raise ResponseTooLargeError(ErrorInfo(
                    operation="materialize",
                    message=f"Body exceeded max size: {total} bytes (max: {limit})",
                    code=ErrorCode.RESPONSE_TOO_LARGE,
                ))
            yield chunk
