import typing
import zlib
from dataclasses import dataclass
from typing import Optional

from .base import (
    DEFAULT_EXCLUDED_CONTENT_TYPES,
    CompressionAlgorithm,
    CompressionLevel,
    CompressionResponder,
    ContentEncoding,
)
from .gzip import ZLIB_PRESET_LEVELS, validate_zlib_level
from .types import ASGIApp


class DeflateResponder(CompressionResponder):
    """Responder that applies deflate compression.

    HTTP's "deflate" coding is the zlib format (RFC 1950), so the stream
    carries the zlib header and Adler-32 trailer rather than raw deflate.
    """

    content_encoding = ContentEncoding.DEFLATE

    def __init__(
        self,
        app: ASGIApp,
        level: int = zlib.Z_DEFAULT_COMPRESSION,
        excluded_content_types: typing.Tuple[str, ...] = (
            DEFAULT_EXCLUDED_CONTENT_TYPES
        ),
    ) -> None:
        super().__init__(app, excluded_content_types)
        self.compressor = zlib.compressobj(level, zlib.DEFLATED, zlib.MAX_WBITS)

    def apply_compression(self, body: bytes, *, more_body: bool) -> bytes:
        compressed = self.compressor.compress(body)
        if not more_body:
            compressed += self.compressor.flush(zlib.Z_FINISH)
        return compressed


@dataclass(frozen=True)
class DeflateAlgorithm(CompressionAlgorithm):
    """Deflate (zlib) compression algorithm."""

    type: ContentEncoding = ContentEncoding.DEFLATE
    level: Optional[int] = None

    allocation_errors = (MemoryError, zlib.error)
    preset_levels = ZLIB_PRESET_LEVELS

    def __post_init__(self) -> None:
        validate_zlib_level(self.level)

    def resolve_level(self, preset: CompressionLevel) -> int:
        if self.level is not None:
            return self.level
        return super().resolve_level(preset)

    def create_responder(
        self,
        app: ASGIApp,
        level: int,
        excluded_content_types: typing.Tuple[str, ...],
    ) -> DeflateResponder:
        return DeflateResponder(
            app=app,
            level=level,
            excluded_content_types=excluded_content_types,
        )
