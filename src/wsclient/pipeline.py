"""The example request pipeline.

``call`` issues one GET and prints the status text and body. ``run`` schedules
it on the runtime and attaches the cleanup chain: close the client, then
terminate the runtime. Both cleanup steps run exactly once whatever the
outcome, and termination only starts once the client is closed.
"""

from __future__ import annotations

import asyncio
from typing import TextIO

from wsclient.client import StandaloneClient
from wsclient.runtime import Runtime, and_then


async def call(client: StandaloneClient, url: str, *, out: TextIO | None = None) -> None:
    """GET ``url`` and print two lines: the status text, then the body as text.

    Nothing is printed when the request or the body decoding fails; the
    error propagates to the caller instead.
    """
    response = await client.url(url).get()
    status_text = response.status_text
    body = response.body(str)
    print(f"Got a response {status_text}", file=out)
    print(f"Its body is: {body}", file=out)


def run(runtime: Runtime, client: StandaloneClient, url: str, *, out: TextIO | None = None) -> asyncio.Task[None]:
    """Schedule ``call`` and chain the cleanup continuations.

    Returns:
        Task resolving with the outcome of ``call`` once the runtime has terminated
    """
    pending = runtime.spawn(call(client, url, out=out), name="wsclient-call")
    closed = and_then(pending, lambda _: client.close())
    return and_then(closed, lambda _: runtime.terminate())
