import typing
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import brotli

from .base import (
    DEFAULT_EXCLUDED_CONTENT_TYPES,
    CompressionAlgorithm,
    CompressionLevel,
    CompressionResponder,
    ContentEncoding,
)
from .types import ASGIApp

# Quality 11 (the library default) is far too slow for on-the-fly responses.
BROTLI_PRESET_LEVELS = {
    CompressionLevel.DEFAULT: 4,
    CompressionLevel.BEST_SPEED: 0,
    CompressionLevel.BEST_COMPRESSION: 11,
}


class BrotliMode(Enum):
    TEXT = "text"
    FONT = "font"
    GENERIC = "generic"

    def to_brotli_mode(self) -> int:
        if self == BrotliMode.TEXT:
            return brotli.MODE_TEXT
        elif self == BrotliMode.FONT:
            return brotli.MODE_FONT
        elif self == BrotliMode.GENERIC:
            return brotli.MODE_GENERIC
        else:
            assert False, f"Expected code to be unreachable, but got: {self}"


class BrotliResponder(CompressionResponder):
    """Responder that applies brotli compression."""

    content_encoding = ContentEncoding.BROTLI

    def __init__(
        self,
        app: ASGIApp,
        quality: int = 4,
        mode: BrotliMode = BrotliMode.TEXT,
        lgwin: int = 22,
        lgblock: int = 0,
        excluded_content_types: typing.Tuple[str, ...] = (
            DEFAULT_EXCLUDED_CONTENT_TYPES
        ),
    ) -> None:
        super().__init__(app, excluded_content_types)

        self.compressor = brotli.Compressor(
            quality=quality,
            mode=mode.to_brotli_mode(),
            lgwin=lgwin,
            lgblock=lgblock,
        )

    def apply_compression(self, body: bytes, *, more_body: bool) -> bytes:
        compressed = self.compressor.process(body)
        if not more_body:
            compressed += self.compressor.finish()
        return compressed


@dataclass(frozen=True)
class BrotliAlgorithm(CompressionAlgorithm):
    """Brotli compression algorithm."""

    type: ContentEncoding = ContentEncoding.BROTLI
    quality: Optional[int] = None
    mode: BrotliMode = BrotliMode.TEXT
    lgwin: int = 22
    lgblock: int = 0

    allocation_errors = (MemoryError, brotli.error)
    preset_levels = BROTLI_PRESET_LEVELS

    def __post_init__(self) -> None:
        if self.quality is not None and not 0 <= self.quality <= 11:
            raise ValueError(
                f"brotli quality must be 0..11, got {self.quality}"
            )
        if not 10 <= self.lgwin <= 24:
            raise ValueError(f"brotli lgwin must be 10..24, got {self.lgwin}")
        if self.lgblock != 0 and not 16 <= self.lgblock <= 24:
            raise ValueError(
                f"brotli lgblock must be 0 or 16..24, got {self.lgblock}"
            )

    def resolve_level(self, preset: CompressionLevel) -> int:
        if self.quality is not None:
            return self.quality
        return super().resolve_level(preset)

    def create_responder(
        self,
        app: ASGIApp,
        level: int,
        excluded_content_types: typing.Tuple[str, ...],
    ) -> BrotliResponder:
        return BrotliResponder(
            app=app,
            quality=level,
            mode=self.mode,
            lgwin=self.lgwin,
            lgblock=self.lgblock,
            excluded_content_types=excluded_content_types,
        )
