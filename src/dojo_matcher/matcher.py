"""Approximate matching of free-text dojo and sensei names."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from .normalization import as_text, normalize
from .similarity import DEFAULT_MIN_SUBSTRING_LENGTH, DEFAULT_SUBSTRING_BOOST, normalized_similarity
from .structures import Candidate, MatchResult


DEFAULT_BEST_MATCH_THRESHOLD = 0.5
DEFAULT_SUGGESTION_THRESHOLD = 0.15

CandidateLike = Union[Candidate, Mapping[str, Any]]


def _coerce_threshold(value: object, default: float) -> Optional[float]:
    if value is None:
        return default
    try:
        threshold = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if math.isnan(threshold):
        return None
    return threshold


def _env_float(variable: str, default: float) -> float:
    value = os.getenv(variable)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{variable} must be a number, got {value!r}") from None


@dataclass
class NameMatcherConfig:
    """Tuning parameters for :class:`NameMatcher`.

    Fields left as ``None`` are read from the environment, falling back to
    the built-in defaults.
    """

    best_match_threshold: float | None = None
    suggestion_threshold: float | None = None
    substring_boost: float | None = None
    min_substring_length: int = DEFAULT_MIN_SUBSTRING_LENGTH

    def __post_init__(self) -> None:
        if self.best_match_threshold is None:
            self.best_match_threshold = _env_float("DOJO_MATCHER_BEST_THRESHOLD", DEFAULT_BEST_MATCH_THRESHOLD)
        if self.suggestion_threshold is None:
            self.suggestion_threshold = _env_float(
                "DOJO_MATCHER_SUGGESTION_THRESHOLD", DEFAULT_SUGGESTION_THRESHOLD
            )
        if self.substring_boost is None:
            self.substring_boost = _env_float("DOJO_MATCHER_SUBSTRING_BOOST", DEFAULT_SUBSTRING_BOOST)


class NameMatcher:
    """Rank known names by similarity to a user-typed query.

    Every call is a pure function of its arguments; nothing is kept between
    calls apart from this instance's memoized normalized names.
    """

    def __init__(self, config: NameMatcherConfig | None = None) -> None:
        self.config = config or NameMatcherConfig()
        self._normalize_name: Callable[[str], str] = lru_cache(maxsize=4096)(normalize)

    def score(self, query: object, name: object) -> float:
        """Return the similarity between a raw query and a raw name."""

        return self._score_normalized(normalize(query), self._normalize_name(as_text(name)))

    def find_best_match(
        self,
        query: object,
        candidates: Iterable[CandidateLike] | None,
        threshold: float | None = None,
    ) -> Optional[MatchResult]:
        """Return the highest scoring candidate, or ``None`` below `threshold`.

        Ties keep the candidate that comes first in `candidates`.
        """

        limit = _coerce_threshold(threshold, self.config.best_match_threshold)
        if limit is None:
            return None

        best: Optional[MatchResult] = None
        for candidate, score in self._scored(query, candidates):
            if best is None or score > best.score:
                best = MatchResult.from_candidate(candidate, score)

        if best is None or best.score < limit:
            return None
        return best

    def find_all_matches(
        self,
        query: object,
        candidates: Iterable[CandidateLike] | None,
        threshold: float | None = None,
    ) -> List[MatchResult]:
        """Return every candidate scoring at least `threshold`, best first.

        Equal scores keep their input order. The list is not truncated.
        """

        limit = _coerce_threshold(threshold, self.config.suggestion_threshold)
        if limit is None:
            return []

        matches = [
            MatchResult.from_candidate(candidate, score)
            for candidate, score in self._scored(query, candidates)
            if score >= limit
        ]
        # sorted() is stable, so ties stay in input order
        return sorted(matches, key=lambda match: match.score, reverse=True)

    def _scored(self, query: object, candidates: Iterable[CandidateLike] | None):
        query_norm = normalize(query)
        # strings iterate but hold no candidates
        if not query_norm or not isinstance(candidates, Iterable) or isinstance(candidates, (str, bytes)):
            return
        for item in candidates:
            candidate = as_candidate(item)
            if candidate is None:
                continue
            yield candidate, self._score_normalized(query_norm, self._normalize_name(candidate.name))

    def _score_normalized(self, query_norm: str, name_norm: str) -> float:
        return normalized_similarity(
            query_norm,
            name_norm,
            substring_boost=self.config.substring_boost,
            min_substring_length=self.config.min_substring_length,
        )


def as_candidate(item: object) -> Optional[Candidate]:
    if isinstance(item, Candidate):
        return item
    if isinstance(item, Mapping):
        return Candidate.from_mapping(item)
    return None


_DEFAULT_MATCHER = NameMatcher(
    NameMatcherConfig(
        best_match_threshold=DEFAULT_BEST_MATCH_THRESHOLD,
        suggestion_threshold=DEFAULT_SUGGESTION_THRESHOLD,
        substring_boost=DEFAULT_SUBSTRING_BOOST,
    )
)


def find_best_match(
    query: object,
    candidates: Iterable[CandidateLike] | None,
    threshold: float = DEFAULT_BEST_MATCH_THRESHOLD,
) -> Optional[MatchResult]:
    """Module-level shortcut for :meth:`NameMatcher.find_best_match` with default tuning."""

    return _DEFAULT_MATCHER.find_best_match(query, candidates, threshold)


def find_all_matches(
    query: object,
    candidates: Iterable[CandidateLike] | None,
    threshold: float = DEFAULT_SUGGESTION_THRESHOLD,
) -> List[MatchResult]:
    """Module-level shortcut for :meth:`NameMatcher.find_all_matches` with default tuning."""

    return _DEFAULT_MATCHER.find_all_matches(query, candidates, threshold)


__all__ = [
    "NameMatcher",
    "NameMatcherConfig",
    "find_all_matches",
    "find_best_match",
]
