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
from .types import ASGIApp

ZLIB_PRESET_LEVELS = {
    CompressionLevel.DEFAULT: zlib.Z_DEFAULT_COMPRESSION,
    CompressionLevel.BEST_SPEED: zlib.Z_BEST_SPEED,
    CompressionLevel.BEST_COMPRESSION: zlib.Z_BEST_COMPRESSION,
}


def validate_zlib_level(level: Optional[int]) -> None:
    if level is not None and not -1 <= level <= 9:
        raise ValueError(f"zlib compression level must be -1..9, got {level}")


class GZipResponder(CompressionResponder):
    """Responder that applies gzip compression."""

    content_encoding = ContentEncoding.GZIP

    def __init__(
        self,
        app: ASGIApp,
        compresslevel: int = zlib.Z_DEFAULT_COMPRESSION,
        excluded_content_types: typing.Tuple[str, ...] = (
            DEFAULT_EXCLUDED_CONTENT_TYPES
        ),
    ) -> None:
        super().__init__(app, excluded_content_types)

        # 16 + MAX_WBITS: gzip header and CRC32/ISIZE trailer
        self.compressor = zlib.compressobj(
            compresslevel, zlib.DEFLATED, 16 + zlib.MAX_WBITS
        )

    def apply_compression(self, body: bytes, *, more_body: bool) -> bytes:
        compressed = self.compressor.compress(body)
        if not more_body:
            compressed += self.compressor.flush(zlib.Z_FINISH)
        return compressed


@dataclass(frozen=True)
class GzipAlgorithm(CompressionAlgorithm):
    """Gzip compression algorithm."""

    type: ContentEncoding = ContentEncoding.GZIP
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
    ) -> GZipResponder:
        return GZipResponder(
            app=app,
            compresslevel=level,
            excluded_content_types=excluded_content_types,
        )
