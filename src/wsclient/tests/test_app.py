"""End-to-end tests for the process entry point."""

from __future__ import annotations

import functools

import httpx
import pytest

from wsclient import app
from wsclient.client import StandaloneClient


@pytest.fixture
def use_transport(monkeypatch: pytest.MonkeyPatch):
    """Route every client built by the entry point through ``transport``."""

    def install(transport: httpx.MockTransport) -> None:
        monkeypatch.setattr(app, "StandaloneClient", functools.partial(StandaloneClient, transport=transport))

    return install


@pytest.fixture(autouse=True)
def app_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WSCLIENT_URL", "http://example.test/")
    monkeypatch.setenv("WSCLIENT_LOG_FORMAT", "console")
    monkeypatch.setenv("WSCLIENT_RUNTIME_MAX_WORKERS", "2")


def test_main_prints_response_and_exits_zero(use_transport, hello_transport, capsys) -> None:
    use_transport(hello_transport)

    assert app.main([]) == 0
    assert capsys.readouterr().out.splitlines() == ["Got a response OK", "Its body is: hello"]


def test_main_requests_configured_url(use_transport, capsys) -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, text="ok")

    use_transport(httpx.MockTransport(handler))
    app.main(["--ignored", "argument"])

    assert seen == ["http://example.test/"]
    assert capsys.readouterr().out.splitlines() == ["Got a response OK", "Its body is: ok"]


def test_main_logs_failure_and_still_exits_zero(use_transport, capsys) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    use_transport(httpx.MockTransport(refuse))

    assert app.main([]) == 0
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "request failed" in captured.err
