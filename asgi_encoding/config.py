from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, Tuple, runtime_checkable

from .base import (
    DEFAULT_EXCLUDED_CONTENT_TYPES,
    CompressionAlgorithm,
    CompressionLevel,
    ContentEncoding,
)
from .brotli import BrotliAlgorithm
from .deflate import DeflateAlgorithm
from .gzip import GzipAlgorithm
from .types import Scope


@runtime_checkable
class SkipPredicate(Protocol):
    """Decides, per request, whether compression is bypassed entirely."""

    def can_skip(self, scope: Scope) -> bool: ...


@dataclass(frozen=True)
class SkipWhen:
    """Adapts a plain ``scope -> bool`` function to :class:`SkipPredicate`."""

    func: Callable[[Scope], bool]

    def can_skip(self, scope: Scope) -> bool:
        return bool(self.func(scope))


def default_algorithms() -> Tuple[CompressionAlgorithm, ...]:
    # Also the tie-break order when a client weights encodings equally.
    return (GzipAlgorithm(), DeflateAlgorithm(), BrotliAlgorithm())


@dataclass(frozen=True)
class CompressionConfig:
    """Settings shared read-only by every request.

    Args:
        skip: Predicate consulted once per request; when it returns True the
            middleware does nothing. No predicate means always compress.
        algorithms: Supported algorithms in server priority order.
        level: Preset applied to algorithms without an explicit native level.
            ``CompressionLevel.DISABLED`` turns compression off.
        excluded_content_types: Content-Type prefixes that are never
            compressed.
    """

    skip: Optional[SkipPredicate] = None
    algorithms: Tuple[CompressionAlgorithm, ...] = field(
        default_factory=default_algorithms
    )
    level: CompressionLevel = CompressionLevel.DEFAULT
    excluded_content_types: Tuple[str, ...] = DEFAULT_EXCLUDED_CONTENT_TYPES

    def __post_init__(self) -> None:
        if self.skip is not None and not isinstance(self.skip, SkipPredicate):
            raise TypeError(
                "skip must provide can_skip(scope); wrap plain functions "
                "in SkipWhen"
            )

        algorithms = tuple(self.algorithms)
        if not algorithms:
            raise ValueError("at least one compression algorithm is required")
        encodings = [algorithm.type for algorithm in algorithms]
        if ContentEncoding.IDENTITY in encodings:
            raise ValueError("identity is implicit and cannot be configured")
        if len(set(encodings)) != len(encodings):
            raise ValueError(f"duplicate compression algorithms: {encodings}")

        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "algorithms", algorithms)
        object.__setattr__(self, "level", CompressionLevel(self.level))
        object.__setattr__(
            self,
            "excluded_content_types",
            tuple(t.lower() for t in self.excluded_content_types),
        )

    @property
    def encodings(self) -> Tuple[str, ...]:
        return tuple(algorithm.type.value for algorithm in self.algorithms)

    @property
    def enabled(self) -> bool:
        return self.level is not CompressionLevel.DISABLED

    def should_skip(self, scope: Scope) -> bool:
        return self.skip is not None and self.skip.can_skip(scope)

    def algorithm_for(self, encoding: str) -> CompressionAlgorithm:
        for algorithm in self.algorithms:
            if algorithm.type.value == encoding:
                return algorithm
        raise KeyError(encoding)


DEFAULT_CONFIG = CompressionConfig()
