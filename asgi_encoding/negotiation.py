"""Accept-Encoding parsing and encoding selection.

Selection rules:

* an absent or blank header means the client asked for nothing, so the
  response stays uncompressed;
* a supported encoding takes the quality of its own entry, otherwise the
  quality of ``*`` when the client sent one;
* ``q=0`` rejects an encoding;
* the highest quality wins and ties go to the server's priority order,
  i.e. the order of ``supported``.
"""

import functools
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

IDENTITY = "identity"
WILDCARD = "*"


@dataclass(frozen=True)
class EncodingPreference:
    token: str
    quality: float = 1.0


def _parse_quality(params: List[str]) -> float:
    for param in params:
        name, sep, value = param.partition("=")
        if not sep or name.strip().lower() != "q":
            continue
        try:
            quality = float(value.strip())
        except ValueError:
            return 1.0
        if not math.isfinite(quality) or not 0.0 <= quality <= 1.0:
            return 1.0
        return quality
    return 1.0


def parse_accept_encoding(header: str) -> List[EncodingPreference]:
    """Parse an Accept-Encoding value into preferences, in header order.

    Malformed q-values never fail the request: they count as 1.0.
    A token listed twice keeps its first entry.
    """
    preferences: List[EncodingPreference] = []
    seen = set()
    for part in header.split(","):
        token, *params = part.split(";")
        token = token.strip().lower()
        if not token or token in seen:
            continue
        seen.add(token)
        preferences.append(EncodingPreference(token, _parse_quality(params)))
    return preferences


@functools.lru_cache(maxsize=1024)
def select_encoding(header: Optional[str], supported: Tuple[str, ...]) -> str:
    """Pick the best encoding from ``supported`` or return ``"identity"``."""
    if header is None or not header.strip():
        return IDENTITY

    qualities: Dict[str, float] = {
        pref.token: pref.quality for pref in parse_accept_encoding(header)
    }
    wildcard = qualities.get(WILDCARD)

    best_encoding = IDENTITY
    best_quality = 0.0
    for encoding in supported:
        quality = qualities.get(encoding, wildcard)
        # strict comparison keeps the earlier (higher priority) encoding on ties
        if quality is not None and quality > best_quality:
            best_encoding = encoding
            best_quality = quality

    return best_encoding
