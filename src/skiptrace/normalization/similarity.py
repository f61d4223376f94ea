"""String similarity helpers used for deduplication and cross-verification."""

from __future__ import annotations

import re
from typing import Iterable, List

DEFAULT_SIMILARITY_THRESHOLD = 0.8
DEFAULT_FUZZY_THRESHOLD = 0.7

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def levenshtein_distance(a: str, b: str) -> int:
    """Return the classic (case-sensitive) edit distance between ``a`` and ``b``.

    Only two DP rows are kept, iterating over the shorter string.
    """
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


def similarity_ratio(a: str, b: str) -> float:
    """Return ``1 - distance / max_len`` on lowercased input (1.0 for two empty strings)."""
    a_lower, b_lower = a.lower(), b.lower()
    max_length = max(len(a_lower), len(b_lower))
    if max_length == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a_lower, b_lower) / max_length


def are_similar(a: str, b: str, threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> bool:
    """True when ``similarity_ratio(a, b)`` reaches ``threshold``."""
    return similarity_ratio(a, b) >= threshold


def find_fuzzy_matches(target: str, candidates: Iterable[str], threshold: float = DEFAULT_FUZZY_THRESHOLD) -> List[str]:
    """Return candidates similar to ``target``, preserving input order."""
    return [candidate for candidate in candidates if similarity_ratio(target, candidate) >= threshold]


def normalize_text(text: str) -> str:
    """Lowercase, drop punctuation, and collapse whitespace."""
    lowered = _NON_WORD.sub("", text.lower())
    return _WHITESPACE.sub(" ", lowered).strip()


def jaccard_similarity(a: str, b: str) -> float:
    """Word-set overlap of the normalized inputs (0.0 when both are empty)."""
    tokens_a = set(normalize_text(a).split())
    tokens_b = set(normalize_text(b).split())
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


__all__ = [
    "are_similar",
    "find_fuzzy_matches",
    "jaccard_similarity",
    "levenshtein_distance",
    "normalize_text",
    "similarity_ratio",
]
