import logging

from .base import CompressorAllocationError
from .config import DEFAULT_CONFIG, CompressionConfig
from .negotiation import IDENTITY, select_encoding
from .types import ASGIApp, Headers, Receive, Scope, Send

logger = logging.getLogger(__name__)

INTERNAL_ERROR_BODY = b"Internal Server Error"


async def send_internal_error(send: Send) -> None:
    await send(
        {
            "type": "http.response.start",
            "status": 500,
            "headers": [
                (b"content-type", b"text/plain; charset=utf-8"),
                (b"content-length", str(len(INTERNAL_ERROR_BODY)).encode()),
            ],
        }
    )
    await send({"type": "http.response.body", "body": INTERNAL_ERROR_BODY})


class CompressionMiddleware:
    """
    ASGI middleware for response compression.

    Negotiates gzip, deflate or brotli with the client's Accept-Encoding
    header and compresses the response body while it streams out. Requests
    that are skipped, or that negotiate identity, reach the application
    untouched.
    """

    def __init__(
        self,
        app: ASGIApp,
        config: CompressionConfig = DEFAULT_CONFIG,
    ) -> None:
        """
        Initialize the compression middleware.

        Args:
            app: The ASGI application.
            config: Shared, immutable compression settings.
        """
        self.app = app
        self.config = config

    async def __call__(
        self, scope: Scope, receive: Receive, send: Send
    ) -> None:
        """ASGI application interface."""
        if scope["type"] != "http" or not self.config.enabled:
            await self.app(scope, receive, send)
            return

        if scope.get("method") == "HEAD":
            # HEAD responses carry no body to compress
            await self.app(scope, receive, send)
            return

        if self.config.should_skip(scope):
            logger.debug("Compression skipped for %s", scope.get("path"))
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        encoding = select_encoding(
            headers.get_joined("Accept-Encoding"), self.config.encodings
        )
        if encoding == IDENTITY:
            await self.app(scope, receive, send)
            return

        algorithm = self.config.algorithm_for(encoding)
        try:
            responder = algorithm.install(
                self.app,
                self.config.level,
                self.config.excluded_content_types,
            )
        except CompressorAllocationError:
            # Nothing has been sent yet, so the client still gets a clean 500.
            logger.exception("Failed to set up %s compression", encoding)
            await send_internal_error(send)
            return

        logger.debug("Compressing %s with %s", scope.get("path"), encoding)
        await responder(scope, receive, send)
