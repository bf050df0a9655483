"""Continuations on pending results.

A pending result is an ``asyncio.Future`` (or Task): pending until it resolves
exactly once, with a value or with a failure. This module chains side effects
onto such results without blocking:

    - settle: Await a result and capture its outcome as a Settled
    - and_then: Run a callback after resolution, keep the original outcome
    - on_complete: Fire-and-forget callback after resolution

Chained ``and_then`` calls run strictly in order: each continuation waits for
the previous link, including awaiting any coroutine the callback returned.

Example:
    >>> pending = runtime.spawn(call(client, url))
    >>> done = and_then(and_then(pending, lambda _: client.close()),
    ...                 lambda _: runtime.terminate())
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import StrEnum
from typing import Callable, Generic, TypeVar

from wsclient.runtime.observability import get_logger

T = TypeVar("T")

_log = get_logger("wsclient.future")


class SettledStatus(StrEnum):
    """Status of a settled operation."""
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


@dataclass(slots=True, frozen=True)
class Settled(Generic[T]):
    """Outcome of a resolved pending result.

    Attributes:
        status: 'fulfilled' or 'rejected'
        value: Result value if fulfilled
        error: Exception if rejected
    """

    status: SettledStatus
    value: T | None = None
    error: BaseException | None = None

    @property
    def is_fulfilled(self) -> bool:
        return self.status == SettledStatus.FULFILLED

    @property
    def is_rejected(self) -> bool:
        return self.status == SettledStatus.REJECTED

    def unwrap(self) -> T:
        """Get value or raise stored error."""
        if self.is_rejected:
            raise self.error or RuntimeError("Rejected with no error")
        return self.value  # type: ignore[return-value]


def fulfilled(value: T) -> Settled[T]:
    return Settled(SettledStatus.FULFILLED, value=value)


def rejected(error: BaseException) -> Settled[T]:
    return Settled(SettledStatus.REJECTED, error=error)


async def settle(pending: Awaitable[T]) -> Settled[T]:
    """Wait for a pending result and capture its outcome. Never raises, except on cancellation."""
    try:
        return fulfilled(await pending)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        return rejected(e)


Continuation = Callable[[Settled[T]], object]


def and_then(pending: Awaitable[T], callback: Continuation[T]) -> asyncio.Task[T]:
    """Attach a side-effecting continuation that runs whatever the outcome.

    The returned task resolves with the same value or failure as ``pending``,
    but only after ``callback`` (and any awaitable it returned) has finished.
    A failing callback is logged; it never replaces the original outcome.
    Cancellation counts as an outcome too: the callback sees it as a rejected
    Settled holding the CancelledError, and the task then ends cancelled.

    Args:
        pending: Future, task or coroutine to wait for
        callback: Receives the Settled outcome; may return an awaitable

    Returns:
        Task mirroring ``pending``'s outcome
    """
    source = asyncio.ensure_future(pending)

    async def chained() -> T:
        try:
            outcome = await settle(source)
        except asyncio.CancelledError as e:
            outcome = rejected(e)
        try:
            ret = callback(outcome)
            if inspect.isawaitable(ret):
                await ret
        except Exception as e:
            _log.exception("continuation failed", e, callback=getattr(callback, "__qualname__", repr(callback)))
        return outcome.unwrap()

    return asyncio.ensure_future(chained())


def on_complete(pending: asyncio.Future[T], callback: Callable[[Settled[T]], None]) -> None:
    """Register a plain callback run once ``pending`` resolves (registration order is kept)."""

    def _done(fut: asyncio.Future[T]) -> None:
        if fut.cancelled():
            return
        exc = fut.exception()
        callback(rejected(exc) if exc is not None else fulfilled(fut.result()))

    pending.add_done_callback(_done)
