"""Shared fixtures: isolated settings, silent logs, a live runtime and mock transports."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterator

import httpx
import pytest
import pytest_asyncio

from wsclient.foundation.config import HttpSettings, RuntimeSettings, clear_settings_cache
from wsclient.runtime import Runtime
from wsclient.runtime.observability import configure_logging


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Fresh settings and no log output for every test."""
    monkeypatch.delenv("WSCLIENT_URL", raising=False)
    clear_settings_cache()
    configure_logging(format="none")
    yield
    clear_settings_cache()


@pytest.fixture
def runtime_settings() -> RuntimeSettings:
    return RuntimeSettings(max_workers=2, thread_name_prefix="wsclient-test-")


@pytest.fixture
def http_settings() -> HttpSettings:
    return HttpSettings()


@pytest_asyncio.fixture
async def runtime(runtime_settings: RuntimeSettings) -> AsyncIterator[Runtime]:
    rt = Runtime.start(runtime_settings)
    yield rt
    await rt.terminate()


@pytest.fixture
def text_transport() -> Callable[..., httpx.MockTransport]:
    """Factory for transports answering every request with a fixed text body."""

    def make(body: str = "hello", status: int = 200, **headers: str) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, text=body, headers=headers or None)
        return httpx.MockTransport(handler)

    return make


@pytest.fixture
def hello_transport(text_transport: Callable[..., httpx.MockTransport]) -> httpx.MockTransport:
    return text_transport()
