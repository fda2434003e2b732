"""Dojo Matcher library initialization."""

from .directory import DirectoryConfig, DirectoryError, DojoDirectory
from .matcher import NameMatcher, NameMatcherConfig, find_all_matches, find_best_match
from .normalization import normalize
from .pipeline import MatchPipeline, MatchPipelineConfig, MatchPipelineResult, MatchStats
from .runner import load_candidates, match_file
from .similarity import levenshtein, similarity
from .structures import Candidate, MatchResult

__all__ = [
    "Candidate",
    "DirectoryConfig",
    "DirectoryError",
    "DojoDirectory",
    "MatchPipeline",
    "MatchPipelineConfig",
    "MatchPipelineResult",
    "MatchResult",
    "MatchStats",
    "NameMatcher",
    "NameMatcherConfig",
    "find_all_matches",
    "find_best_match",
    "levenshtein",
    "load_candidates",
    "match_file",
    "normalize",
    "similarity",
]
