"""Runtime handle: event loop, worker threads and orderly shutdown.

The Runtime owns the concurrency substrate every client call runs on:

    - The running asyncio event loop, where all continuations execute
    - A bounded WorkerPool installed as the loop's default executor, so
      blocking helpers (name resolution, ``run_blocking``) use runtime threads
    - Termination callbacks, run once after the pool has shut down

Example:
    >>> runtime = Runtime.start()
    >>> runtime.register_on_termination(lambda: print("bye"))
    >>> ...
    >>> await runtime.terminate()   # pool shut down, then "bye"

    >>> async with Runtime.start() as runtime:
    ...     result = await runtime.run_blocking(read_config, path)
"""

from __future__ import annotations

import asyncio
import functools
import threading
from collections.abc import Coroutine
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, ParamSpec, TypeVar

from wsclient.foundation.config import DEFAULT_WORKERS, RuntimeSettings, get_settings
from wsclient.foundation.errors import RuntimeTerminatedError
from wsclient.runtime.observability import get_logger

if TYPE_CHECKING:
    from types import TracebackType

T = TypeVar("T")
P = ParamSpec("P")

_log = get_logger("wsclient.runtime")


@dataclass(slots=True)
class WorkerPool:
    """Bounded thread pool owned by a Runtime.

    Wraps ThreadPoolExecutor with an async interface for blocking calls.
    """

    max_workers: int = DEFAULT_WORKERS
    thread_name_prefix: str = "wsclient-"
    _executor: ThreadPoolExecutor | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

    @property
    def executor(self) -> ThreadPoolExecutor:
        """Get or create the underlying executor."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix=self.thread_name_prefix,
            )
        return self._executor

    async def run(self, func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
        """Run a sync function on a pool thread."""
        loop = asyncio.get_running_loop()
        if kwargs:
            func = functools.partial(func, **kwargs)
        return await loop.run_in_executor(self.executor, func, *args)

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)


class Runtime:
    """Process-wide asynchronous execution substrate.

    Created once with ``Runtime.start()`` inside a running event loop and torn
    down exactly once with ``terminate()``. Termination callbacks run after the
    worker pool has stopped, in the order they were registered.
    """

    __slots__ = ("_settings", "_loop", "_pool", "_callbacks", "_terminating", "_terminated", "_tasks")

    def __init__(self, settings: RuntimeSettings | None = None) -> None:
        self._settings = settings or get_settings().runtime
        self._loop = asyncio.get_running_loop()
        self._pool = WorkerPool(
            max_workers=self._settings.max_workers,
            thread_name_prefix=self._settings.thread_name_prefix,
        )
        self._callbacks: list[Callable[[], object]] = []
        self._terminating: asyncio.Future[None] | None = None
        self._terminated = asyncio.Event()
        self._tasks: set[asyncio.Task[object]] = set()

    @classmethod
    def start(cls, settings: RuntimeSettings | None = None) -> Runtime:
        """Create the runtime on the running loop and install its worker pool.

        Raises:
            RuntimeError: If no event loop is running
        """
        runtime = cls(settings)
        runtime._loop.set_default_executor(runtime._pool.executor)
        _log.debug("runtime started", workers=runtime._pool.max_workers)
        return runtime

    @property
    def settings(self) -> RuntimeSettings:
        return self._settings

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    @property
    def is_terminated(self) -> bool:
        return self._terminated.is_set()

    @property
    def is_active(self) -> bool:
        """True until terminate() has been called."""
        return self._terminating is None

    def ensure_active(self) -> None:
        """Raise if the runtime is shutting down or gone."""
        if not self.is_active:
            raise RuntimeTerminatedError("Runtime has been terminated", operation="runtime")

    def register_on_termination(self, callback: Callable[[], object]) -> None:
        """Run ``callback`` once, after the runtime finishes shutting down."""
        self.ensure_active()
        self._callbacks.append(callback)

    def spawn(self, coro: Coroutine[object, object, T], *, name: str | None = None) -> asyncio.Task[T]:
        """Schedule a coroutine on the runtime's loop and return its pending result."""
        self.ensure_active()
        task = self._loop.create_task(coro, name=name)
        self._tasks.add(task)  # type: ignore[arg-type]
        task.add_done_callback(self._tasks.discard)
        return task

    async def run_blocking(self, func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
        """Run a blocking function on one of the runtime's worker threads."""
        self.ensure_active()
        return await self._pool.run(func, *args, **kwargs)

    async def terminate(self) -> None:
        """Shut down the worker pool, then run termination callbacks.

        Idempotent: later or concurrent calls wait for the same shutdown.
        If joining the pool fails, the runtime is still marked terminated and
        the callbacks still run; the error reaches the first caller only.
        """
        if self._terminating is None:
            self._terminating = self._loop.create_future()
            try:
                await self._shutdown()
            finally:
                self._terminating.set_result(None)
        else:
            await asyncio.shield(self._terminating)
        await self._terminated.wait()

    async def _shutdown(self) -> None:
        _log.debug("runtime terminating", pending_tasks=len(self._tasks))
        try:
            await self._join_pool()
        finally:
            self._terminated.set()
            self._run_callbacks()
        _log.debug("runtime terminated")

    def _run_callbacks(self) -> None:
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                _log.exception("termination callback failed", e)

    async def _join_pool(self) -> None:
        """Wait for pool threads without blocking the loop or borrowing a pool thread."""
        done = self._loop.create_future()

        def join() -> None:
            try:
                self._pool.shutdown(wait=True)
            finally:
                self._loop.call_soon_threadsafe(done.set_result, None)

        threading.Thread(target=join, name=f"{self._pool.thread_name_prefix}shutdown", daemon=True).start()
        await done

    async def when_terminated(self) -> None:
        """Wait until terminate() has completed."""
        await self._terminated.wait()

    async def __aenter__(self) -> Runtime:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.terminate()

    def __repr__(self) -> str:
        state = "terminated" if self.is_terminated else "active" if self.is_active else "terminating"
        return f"Runtime(workers={self._pool.max_workers}, state={state})"
