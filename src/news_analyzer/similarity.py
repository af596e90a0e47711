from __future__ import annotations

from rapidfuzz.distance import Levenshtein


def levenshtein(a: str, b: str) -> int:
    return Levenshtein.distance(a or "", b or "")


def similarity(a: str, b: str) -> float:
    """Normalized edit similarity in [0, 1], measured over code points."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1.0 - levenshtein(a, b) / max(len(a), len(b))
