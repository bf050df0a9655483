"""Runtime substrate: event loop ownership, worker threads, streaming and continuations.

Example:
    >>> from wsclient.runtime import Materializer, Runtime, and_then
    >>> runtime = Runtime.start()
    >>> materializer = Materializer.for_runtime(runtime)
"""

from __future__ import annotations

from .concurrency import Settled, SettledStatus, and_then, on_complete, settle
from .materializer import Materializer
from .system import Runtime, WorkerPool

__all__ = [
    "Materializer",
    "Runtime",
    "Settled",
    "SettledStatus",
    "WorkerPool",
    "and_then",
    "on_complete",
    "settle",
]
