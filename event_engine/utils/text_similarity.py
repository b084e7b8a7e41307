"""Approximate string similarity used for duplicate detection.

Three independent measures are blended with fixed weights so the score is
deterministic and explainable:

* Jaccard overlap of whitespace tokens,
* cosine similarity of character-bigram frequency vectors,
* normalised Levenshtein edit distance.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Dict, Final

JACCARD_WEIGHT: Final[float] = 0.4
COSINE_WEIGHT: Final[float] = 0.4
LEVENSHTEIN_WEIGHT: Final[float] = 0.2

__all__ = [
    "similarity",
    "normalize_text",
    "jaccard_similarity",
    "bigram_cosine_similarity",
    "levenshtein_distance",
    "normalized_levenshtein",
]


def normalize_text(text: str | None) -> str:
    return (text or "").lower().strip()


def jaccard_similarity(a: str, b: str) -> float:
    """|A∩B| / |A∪B| over whitespace tokens; ``0`` when both sets are empty."""
    words_a = set(a.split())
    words_b = set(b.split())
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def _bigrams(text: str) -> Dict[str, int]:
    return Counter(text[i : i + 2] for i in range(len(text) - 1))


def bigram_cosine_similarity(a: str, b: str) -> float:
    """Cosine of the character-bigram frequency vectors of *a* and *b*."""
    grams_a = _bigrams(a)
    grams_b = _bigrams(b)
    magnitude_a = math.sqrt(sum(v * v for v in grams_a.values()))
    magnitude_b = math.sqrt(sum(v * v for v in grams_b.values()))
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0
    # sorted keys keep the float summation order independent of argument order
    dot = sum(grams_a[k] * grams_b[k] for k in sorted(grams_a.keys() & grams_b.keys()))
    return min(1.0, dot / (magnitude_a * magnitude_b))


def levenshtein_distance(a: str, b: str) -> int:
    """Classic insert/delete/substitute edit distance (two-row DP)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    current[j - 1] + 1,  # insertion
                    previous[j] + 1,  # deletion
                    previous[j - 1] + cost,  # substitution
                )
            )
        previous = current
    return previous[-1]


def normalized_levenshtein(a: str, b: str) -> float:
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest


def similarity(a: str | None, b: str | None) -> float:
    """Blended similarity of two strings in ``[0, 1]``.

    Identical strings (after lower-casing and trimming) score 1, an empty
    side scores 0, anything else is ``0.4·jaccard + 0.4·cosine +
    0.2·levenshtein``.
    """
    a = normalize_text(a)
    b = normalize_text(b)
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    score = (
        JACCARD_WEIGHT * jaccard_similarity(a, b)
        + COSINE_WEIGHT * bigram_cosine_similarity(a, b)
        + LEVENSHTEIN_WEIGHT * normalized_levenshtein(a, b)
    )
    return max(0.0, min(1.0, score))
