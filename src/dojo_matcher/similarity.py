"""String similarity kernel."""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein

from .normalization import normalize


DEFAULT_SUBSTRING_BOOST = 0.85
DEFAULT_MIN_SUBSTRING_LENGTH = 2


def levenshtein(first: str, second: str) -> int:
    """Return the insert/delete/substitute edit distance between two strings."""

    return Levenshtein.distance(first, second)


def normalized_similarity(
    first: str,
    second: str,
    substring_boost: float = DEFAULT_SUBSTRING_BOOST,
    min_substring_length: int = DEFAULT_MIN_SUBSTRING_LENGTH,
) -> float:
    """Score two already normalized strings in ``[0, 1]``.

    The score is ``1 - distance / longest_length``. When the shorter string
    occurs contiguously inside the longer one it is raised to at least
    `substring_boost`, so typing part of a dojo's name still ranks it high.
    """

    if first == second:
        return 1.0 if first else 0.0
    if not first or not second:
        return 0.0

    longest = max(len(first), len(second))
    score = 1.0 - levenshtein(first, second) / longest
    score = min(1.0, max(0.0, score))

    shorter, longer = (first, second) if len(first) <= len(second) else (second, first)
    if len(shorter) >= min_substring_length and shorter in longer:
        score = max(score, substring_boost)
    return score


def similarity(
    first: object,
    second: object,
    substring_boost: float = DEFAULT_SUBSTRING_BOOST,
    min_substring_length: int = DEFAULT_MIN_SUBSTRING_LENGTH,
) -> float:
    """Normalize two raw strings and score them with :func:`normalized_similarity`."""

    return normalized_similarity(
        normalize(first),
        normalize(second),
        substring_boost=substring_boost,
        min_substring_length=min_substring_length,
    )
