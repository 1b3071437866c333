from typing import AsyncGenerator, get_args

import pytest
import pytest_asyncio
from httpx import AsyncClient
from pytest import FixtureRequest
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import (
    PlainTextResponse,
    Response,
    StreamingResponse,
)
from starlette.routing import Route

from asgi_encoding.config import CompressionConfig, SkipWhen
from asgi_encoding.middleware import CompressionMiddleware
from asgi_encoding.types import ASGIApp

from .types import Encoding
from .utils import get_test_client


async def generator(bytes: bytes, count: int) -> AsyncGenerator[bytes, None]:
    for _ in range(count):
        yield bytes


def get_starlette_app() -> ASGIApp:
    def homepage(_: Request) -> PlainTextResponse:
        return PlainTextResponse("x" * 4000)

    def empty_response(_: Request) -> Response:
        return Response(b"", media_type="text/plain")

    def vary_response(_: Request) -> PlainTextResponse:
        return PlainTextResponse("x" * 4000, headers={"Vary": "Accept"})

    def vary_encoding_response(_: Request) -> PlainTextResponse:
        return PlainTextResponse(
            "x" * 4000, headers={"Vary": "Accept, accept-encoding"}
        )

    def streaming_response(_: Request) -> StreamingResponse:
        streaming = generator(bytes=b"x" * 400, count=10)
        return StreamingResponse(streaming, status_code=200)

    def streaming_response_with_content_encoding(
        _: Request,
    ) -> StreamingResponse:
        streaming = generator(bytes=b"x" * 400, count=10)
        return StreamingResponse(
            streaming,
            status_code=200,
            headers={"Content-Encoding": "text"},
        )

    def server_sent_events(_: Request) -> StreamingResponse:
        async def events() -> AsyncGenerator[bytes, None]:
            for i in range(10):
                yield f"id: {i}\nevent: message\ndata: {'x' * 400}\n\n".encode()

        return StreamingResponse(events(), media_type="text/event-stream")

    def error_response(_: Request) -> PlainTextResponse:
        return PlainTextResponse("e" * 1000, status_code=400)

    return Starlette(
        routes=[
            Route("/", endpoint=homepage),
            Route("/skip/this", endpoint=homepage),
            Route("/empty", endpoint=empty_response),
            Route("/vary", endpoint=vary_response),
            Route("/vary_encoding", endpoint=vary_encoding_response),
            Route("/streaming_response", endpoint=streaming_response),
            Route(
                "/streaming_response_with_content_encoding",
                endpoint=streaming_response_with_content_encoding,
            ),
            Route("/server_sent_events", endpoint=server_sent_events),
            Route("/error", endpoint=error_response),
        ]
    )


@pytest.fixture(params=get_args(Encoding))
def encoding(request: FixtureRequest) -> Encoding:
    return request.param


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    config = CompressionConfig(
        skip=SkipWhen(lambda scope: scope["path"].startswith("/skip")),
    )
    middleware = CompressionMiddleware(app=get_starlette_app(), config=config)

    async with get_test_client(middleware) as client:
        yield client
