import gzip
import zlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Tuple

import brotli
import h11
import httpx
from httpx import ASGITransport, AsyncClient

from asgi_encoding.types import ASGIApp, Message, Scope

from .types import Encoding


@asynccontextmanager
async def get_test_client(
    middleware: ASGIApp,
) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=middleware),
        base_url="http://test",
    ) as client:
        yield client


async def get_raw(
    client: AsyncClient,
    path: str,
    headers: Optional[Dict[str, str]] = None,
) -> Tuple[httpx.Response, bytes]:
    """Fetch a response without letting httpx decode the body."""
    async with client.stream("GET", path, headers=headers) as response:
        raw = b"".join([chunk async for chunk in response.aiter_raw()])
    return response, raw


def decompress(encoding: Encoding, data: bytes) -> bytes:
    if encoding == "gzip":
        return gzip.decompress(data)
    if encoding == "deflate":
        return zlib.decompress(data)
    return brotli.decompress(data)


def http_scope(
    path: str = "/",
    headers: Optional[List[Tuple[bytes, bytes]]] = None,
    method: str = "GET",
) -> Scope:
    return {
        "type": "http",
        "method": method,
        "path": path,
        "headers": headers or [],
    }


async def receive() -> Message:
    return {"type": "http.disconnect"}


class MockSend:
    def __init__(self) -> None:
        self.messages: List[Message] = []

    async def __call__(self, message: Message) -> None:
        self.messages.append(message)

    @property
    def start(self) -> Message:
        return self.messages[0]

    @property
    def headers(self) -> Dict[bytes, bytes]:
        return dict(self.start["headers"])

    @property
    def body(self) -> bytes:
        return b"".join(
            m.get("body", b"")
            for m in self.messages
            if m["type"] == "http.response.body"
        )


def plain_text_app(
    *chunks: bytes, headers=None, status: int = 200
) -> ASGIApp:
    """A bare ASGI app that streams ``chunks`` as the response body."""

    async def app(scope, receive, send) -> None:
        await send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": headers
                or [
                    (b"content-type", b"text/plain"),
                    (b"content-length", str(len(b"".join(chunks))).encode()),
                ],
            }
        )
        for i, chunk in enumerate(chunks):
            await send(
                {
                    "type": "http.response.body",
                    "body": chunk,
                    "more_body": i < len(chunks) - 1,
                }
            )
        if not chunks:
            await send({"type": "http.response.body", "body": b""})

    return app


def assert_valid_http11(method: str, messages: List[Message]) -> None:
    """Replay ASGI response messages through an h11 server connection.

    h11 raises LocalProtocolError when the framing is wrong, e.g. a body
    on a 204, a 304 or a HEAD response.
    """
    conn = h11.Connection(h11.SERVER)
    conn.receive_data(
        f"{method} / HTTP/1.1\r\nHost: test\r\n"
        "Accept-Encoding: gzip\r\n\r\n".encode()
    )
    assert isinstance(conn.next_event(), h11.Request)
    assert isinstance(conn.next_event(), h11.EndOfMessage)

    start, *bodies = messages
    conn.send(
        h11.Response(status_code=start["status"], headers=start["headers"])
    )
    for message in bodies:
        if message.get("body"):
            conn.send(h11.Data(data=message["body"]))
    conn.send(h11.EndOfMessage())
