"""Process entry point.

Bootstraps the runtime, registers the exit hook, builds a client from ambient
settings, runs the pipeline and returns the exit status set by the hook.
Command-line arguments are accepted and ignored.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from wsclient.client import StandaloneClient
from wsclient.foundation.config import WsClientSettings, get_settings
from wsclient.pipeline import run
from wsclient.runtime import Runtime, settle
from wsclient.runtime.observability import configure_logging, get_logger, log_context, timed

EXIT_OK = 0

_log = get_logger("wsclient.app")


@timed(_log, event="program finished")
async def _main(settings: WsClientSettings) -> int:
    runtime = Runtime.start(settings.runtime)
    exit_status: asyncio.Future[int] = runtime.loop.create_future()
    runtime.register_on_termination(lambda: exit_status.set_result(EXIT_OK))

    # tasks spawned below inherit the url in their log context
    with log_context(url=settings.url):
        client = StandaloneClient(runtime, settings=settings.http)
        done = run(runtime, client, settings.url)

        status = await exit_status
        outcome = await settle(done)
        if outcome.is_rejected:
            _log.exception("request failed", outcome.error)
    return status


def main(argv: Sequence[str] | None = None) -> int:
    settings = get_settings()
    configure_logging(format=settings.logging.format, level=settings.log_level)
    return asyncio.run(_main(settings))
