import logging
import typing
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, IntEnum

from .types import ASGIApp, Headers, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_CONTENT_TYPES = ("text/event-stream",)

# Responses that must not carry a body.
BODYLESS_STATUS_CODES = frozenset({204, 304})


class ContentEncoding(str, Enum):
    GZIP = "gzip"
    DEFLATE = "deflate"
    BROTLI = "br"
    IDENTITY = "identity"


class CompressionLevel(IntEnum):
    """Algorithm-independent compression presets."""

    DISABLED = -1
    DEFAULT = 0
    BEST_SPEED = 1
    BEST_COMPRESSION = 2


class CompressorAllocationError(RuntimeError):
    """The compressor state for a response could not be created."""

    def __init__(self, encoding: ContentEncoding) -> None:
        super().__init__(f"could not allocate a {encoding.value} compressor")
        self.encoding = encoding


async def unattached_send(message: Message) -> typing.NoReturn:
    raise RuntimeError("send awaitable not set")  # pragma: no cover


class CompressionResponder(ABC):
    """Wraps ``send`` and compresses the response body as it streams out.

    The start message is held back until the first body message so that the
    headers can be rewritten before anything reaches the client.
    """

    content_encoding: ContentEncoding
    compressor: typing.Any

    def __init__(
        self,
        app: ASGIApp,
        excluded_content_types: typing.Tuple[str, ...] = (
            DEFAULT_EXCLUDED_CONTENT_TYPES
        ),
    ) -> None:
        self.app = app
        self.excluded_content_types = excluded_content_types
        self._send: Send = unattached_send
        self._initial_message: Message = {}
        self._started = False
        self._passthrough = False

    async def __call__(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        self._send = send
        try:
            await self.app(scope, receive, self.send_with_compression)
        finally:
            self.release()

    def release(self) -> None:
        """Drop the compressor state, whichever way the response ended."""
        self.compressor = None

    async def send_with_compression(self, message: Message) -> None:
        message_type = message["type"]
        if message_type == "http.response.start":
            self._initial_message = message
            headers = Headers(raw=message.get("headers", []))
            status = message.get("status", 200)

            if status < 200 or status in BODYLESS_STATUS_CODES:
                logger.debug("Status %d has no body, not compressing", status)
                self._passthrough = True
            elif "content-encoding" in headers:
                logger.debug(
                    "Response already has Content-Encoding %r, not compressing",
                    headers["content-encoding"],
                )
                self._passthrough = True
            elif (
                headers.get("content-type", "")
                .lower()
                .startswith(self.excluded_content_types)
            ):
                logger.debug(
                    "Content-Type %r is excluded from compression",
                    headers["content-type"],
                )
                self._passthrough = True

        elif message_type != "http.response.body" or self._passthrough:
            if not self._started:
                # Anything other than a body before the first body (e.g. a
                # pathsend) cannot be compressed, so the response goes out as is.
                self._started = True
                self._passthrough = True
                await self._send(self._initial_message)
            await self._send(message)

        elif not self._started:
            self._started = True
            body = message.get("body", b"")
            more_body = message.get("more_body", False)

            headers = Headers(raw=self._initial_message.get("headers", []))
            headers["Content-Encoding"] = self.content_encoding.value
            # The compressed length is only known once the stream is finished.
            if "Content-Length" in headers:
                del headers["Content-Length"]
            headers.add_vary_header("Accept-Encoding")

            message["body"] = self.apply_compression(body, more_body=more_body)
            self._initial_message["headers"] = headers.encode()

            await self._send(self._initial_message)
            await self._send(message)

        else:
            body = message.get("body", b"")
            more_body = message.get("more_body", False)

            message["body"] = self.apply_compression(body, more_body=more_body)
            await self._send(message)

    @abstractmethod
    def apply_compression(self, body: bytes, *, more_body: bool) -> bytes:
        """Compress one chunk of the response body.

        When more_body is False the compressor must be finished, so the
        returned bytes end with the algorithm's trailer.
        """
        raise NotImplementedError


@dataclass(frozen=True)
class CompressionAlgorithm(ABC):
    """Base class for compression algorithms.

    Instances are immutable settings; every response gets a fresh responder
    with its own compressor state.
    """

    type: ContentEncoding

    # Errors raised by the compression library when its state cannot be set up.
    allocation_errors: typing.ClassVar[
        typing.Tuple[typing.Type[BaseException], ...]
    ] = (MemoryError,)
    preset_levels: typing.ClassVar[typing.Mapping[CompressionLevel, int]] = {}

    def resolve_level(self, preset: CompressionLevel) -> int:
        """Native level of this algorithm for ``preset``."""
        try:
            return self.preset_levels[preset]
        except KeyError:
            raise ValueError(
                f"{self.type.value} has no native level for {preset!r}"
            ) from None

    @abstractmethod
    def create_responder(
        self,
        app: ASGIApp,
        level: int,
        excluded_content_types: typing.Tuple[str, ...],
    ) -> CompressionResponder:
        """Create a responder for this compression algorithm."""
        raise NotImplementedError

    def install(
        self,
        app: ASGIApp,
        preset: CompressionLevel = CompressionLevel.DEFAULT,
        excluded_content_types: typing.Tuple[str, ...] = (
            DEFAULT_EXCLUDED_CONTENT_TYPES
        ),
    ) -> CompressionResponder:
        try:
            return self.create_responder(
                app, self.resolve_level(preset), excluded_content_types
            )
        except self.allocation_errors as exc:
            raise CompressorAllocationError(self.type) from exc
