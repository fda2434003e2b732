"""Basic data structures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .normalization import as_text


@dataclass(frozen=True)
class Candidate:
    """A known dojo or sensei name together with its opaque identifier."""

    id: str
    name: str

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "Candidate":
        return cls(id=as_text(row.get("id")), name=as_text(row.get("name")))


@dataclass(frozen=True)
class MatchResult:
    """A candidate paired with its similarity score against a query."""

    id: str
    name: str
    score: float

    @classmethod
    def from_candidate(cls, candidate: Candidate, score: float) -> "MatchResult":
        return cls(id=candidate.id, name=candidate.name, score=score)
