from .base import (
    CompressionAlgorithm,
    CompressionLevel,
    CompressorAllocationError,
    ContentEncoding,
)
from .brotli import BrotliAlgorithm, BrotliMode
from .config import DEFAULT_CONFIG, CompressionConfig, SkipPredicate, SkipWhen
from .deflate import DeflateAlgorithm
from .gzip import GzipAlgorithm
from .middleware import CompressionMiddleware
from .negotiation import EncodingPreference, parse_accept_encoding, select_encoding

__all__ = [
    "CompressionMiddleware",
    "CompressionConfig",
    "DEFAULT_CONFIG",
    "SkipPredicate",
    "SkipWhen",
    "CompressionAlgorithm",
    "CompressionLevel",
    "CompressorAllocationError",
    "ContentEncoding",
    "GzipAlgorithm",
    "DeflateAlgorithm",
    "BrotliAlgorithm",
    "BrotliMode",
    "EncodingPreference",
    "parse_accept_encoding",
    "select_encoding",
]
