"""Tests for the runtime handle, worker pool and materializer."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import AsyncIterator

import pytest

from wsclient.foundation.config import RuntimeSettings
from wsclient.foundation.errors import ResponseTooLargeError, RuntimeTerminatedError
from wsclient.runtime import Materializer, Runtime, WorkerPool


async def _chunks(*parts: bytes) -> AsyncIterator[bytes]:
    for part in parts:
        await asyncio.sleep(0)
        yield part


def test_start_requires_running_loop() -> None:
    with pytest.raises(RuntimeError):
        Runtime.start(RuntimeSettings(max_workers=1))


def test_worker_pool_rejects_zero_workers() -> None:
    with pytest.raises(ValueError):
        WorkerPool(max_workers=0)


@pytest.mark.asyncio
async def test_terminate_runs_callbacks_once_in_order(runtime: Runtime) -> None:
    events: list[str] = []
    runtime.register_on_termination(lambda: events.append("first"))
    runtime.register_on_termination(lambda: events.append("second"))

    await runtime.terminate()
    await runtime.terminate()

    assert events == ["first", "second"]
    assert runtime.is_terminated
    assert not runtime.is_active


@pytest.mark.asyncio
async def test_concurrent_terminate_shuts_down_once(runtime: Runtime) -> None:
    calls: list[int] = []
    runtime.register_on_termination(lambda: calls.append(1))

    await asyncio.gather(runtime.terminate(), runtime.terminate(), runtime.terminate())

    assert calls == [1]


@pytest.mark.asyncio
async def test_callback_failure_does_not_stop_later_callbacks(runtime: Runtime) -> None:
    events: list[str] = []

    def broken() -> None:
        raise RuntimeError("hook failed")

    runtime.register_on_termination(broken)
    runtime.register_on_termination(lambda: events.append("after"))
    await runtime.terminate()

    assert events == ["after"]


@pytest.mark.asyncio
async def test_terminated_runtime_refuses_work(runtime: Runtime) -> None:
    await runtime.terminate()

    with pytest.raises(RuntimeTerminatedError):
        runtime.register_on_termination(lambda: None)
    with pytest.raises(RuntimeTerminatedError):
        await runtime.run_blocking(lambda: None)

    coro = asyncio.sleep(0)
    with pytest.raises(RuntimeTerminatedError):
        runtime.spawn(coro)
    coro.close()


@pytest.mark.asyncio
async def test_when_terminated_waits(runtime: Runtime) -> None:
    waiter = asyncio.ensure_future(runtime.when_terminated())
    await asyncio.sleep(0.01)
    assert not waiter.done()

    await runtime.terminate()
    await asyncio.wait_for(waiter, timeout=1.0)


@pytest.mark.asyncio
async def test_blocking_work_runs_on_runtime_threads(runtime: Runtime) -> None:
    name = await runtime.run_blocking(lambda: threading.current_thread().name)
    default_name = await asyncio.get_running_loop().run_in_executor(None, lambda: threading.current_thread().name)

    assert name.startswith("wsclient-test-")
    assert default_name.startswith("wsclient-test-")


@pytest.mark.asyncio
async def test_spawn_returns_pending_result(runtime: Runtime) -> None:
    async def work() -> int:
        await asyncio.sleep(0.01)
        return 42

    task = runtime.spawn(work(), name="work")
    assert not task.done()
    assert await task == 42


@pytest.mark.asyncio
async def test_async_with_terminates(runtime_settings: RuntimeSettings) -> None:
    async with Runtime.start(runtime_settings) as rt:
        assert rt.is_active
    assert rt.is_terminated


# ─────────────────────────────────────────────────────────────────────────────
# Materializer
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_materializer_collects_chunks(runtime: Runtime) -> None:
    materializer = Materializer.for_runtime(runtime)

    assert materializer.chunk_size == runtime.settings.chunk_size
    assert await materializer.collect(_chunks(b"he", b"ll", b"o")) == b"hello"


@pytest.mark.asyncio
async def test_materializer_enforces_limit(runtime: Runtime) -> None:
    materializer = Materializer(runtime)

    with pytest.raises(ResponseTooLargeError):
        await materializer.collect(_chunks(b"abc", b"def"), limit=4)


@pytest.mark.asyncio
async def test_materializer_refuses_after_termination(runtime: Runtime) -> None:
    materializer = Materializer(runtime)
    await runtime.terminate()

    with pytest.raises(RuntimeTerminatedError):
        await materializer.collect(_chunks(b"late"))


class _FailingJoinRuntime(Runtime):
    async def _join_pool(self) -> None:
        await asyncio.sleep(0.01)
        raise OSError("can't start new thread")


@pytest.mark.asyncio
async def test_failed_pool_join_still_finishes_termination(runtime_settings: RuntimeSettings) -> None:
    rt = _FailingJoinRuntime.start(runtime_settings)
    events: list[str] = []
    rt.register_on_termination(lambda: events.append("hook"))

    first, second = await asyncio.wait_for(
        asyncio.gather(rt.terminate(), rt.terminate(), return_exceptions=True), timeout=1.0,
    )

    assert isinstance(first, OSError)
    assert second is None
    assert rt.is_terminated
    assert events == ["hook"]
    await asyncio.wait_for(rt.when_terminated(), timeout=1.0)
