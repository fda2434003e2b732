"""Batch resolution of free-text names against a candidate list."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

try:
    from tqdm import tqdm

    _TQDM_AVAILABLE = True
except ImportError:  # pragma: no cover - optional dependency
    _TQDM_AVAILABLE = False

from .matcher import CandidateLike, NameMatcher, NameMatcherConfig, as_candidate
from .normalization import normalize
from .structures import Candidate, MatchResult


@dataclass
class MatchStats:
    """Summary metrics for a batch matching run."""

    total_queries: int
    unique_queries: int
    matched: int
    unmatched: int
    empty_queries: int
    candidate_count: int
    runtime_seconds: float


@dataclass
class MatchPipelineResult:
    """Result bundle returned by :class:`MatchPipeline`."""

    dataframe: pd.DataFrame
    stats: MatchStats


@dataclass
class MatchPipelineConfig:
    """Configuration parameters for :class:`MatchPipeline`."""

    query_column: str = "dojo"
    suggestion_limit: int = 5
    use_tqdm: bool | None = None
    verbose: bool = True
    matcher: NameMatcherConfig = field(default_factory=NameMatcherConfig)


class MatchPipeline:
    """Annotate every row of a table with its best match and suggestions."""

    def __init__(self, config: MatchPipelineConfig | None = None, matcher: NameMatcher | None = None) -> None:
        self.config = config or MatchPipelineConfig()
        self.matcher = matcher or NameMatcher(self.config.matcher)

    def match(
        self,
        dataframe: pd.DataFrame,
        candidates: Iterable[CandidateLike],
        output_path: str | Path | None = None,
    ) -> MatchPipelineResult:
        """Resolve the query column, optionally save the results, and return the enriched dataframe."""

        column = self.config.query_column
        if column not in dataframe.columns:
            raise KeyError(f"Column '{column}' not found in dataframe")

        verbose = self.config.verbose
        overall_start_time = time.time()
        if verbose:
            print("--- Dojo Matcher Batch Started ---")
            print("\n1. Preparing queries and candidates...")

        t0 = time.time()
        df = dataframe.copy()
        df[column] = df[column].fillna("").astype(str)
        df["query_norm"] = df[column].map(normalize)
        candidate_list = [c for c in (as_candidate(item) for item in candidates) if c is not None]
        unique_queries = list(dict.fromkeys(df[column].tolist()))
        if verbose:
            print(f"   Loaded {len(df)} queries ({len(unique_queries)} unique) and {len(candidate_list)} candidates.")
            print(f"   Done in {time.time() - t0:.2f}s")

        t0 = time.time()
        if verbose:
            print("2. Scoring queries against candidates...")
        resolved = self._resolve(unique_queries, candidate_list)
        if verbose:
            print(f"   Done in {time.time() - t0:.2f}s")

        t0 = time.time()
        if verbose:
            print("3. Annotating results...")
        best_matches = df[column].map(lambda query: resolved[query][0])
        df["match_id"] = best_matches.map(lambda match: match.id if match else None)
        df["match_name"] = best_matches.map(lambda match: match.name if match else None)
        df["match_score"] = best_matches.map(lambda match: match.score if match else float("nan"))
        df["suggestions"] = df[column].map(lambda query: self._format_suggestions(resolved[query][1]))

        empty_queries = int((df["query_norm"] == "").sum())
        matched = int(df["match_id"].notna().sum())

        if verbose:
            print("\n--- Results Summary ---")
            print(f"   - Total queries processed: {len(df)}")
            print(f"   - Confident matches: {matched}")
            print(f"   - Without a confident match: {len(df) - matched} ({empty_queries} empty)")
            unmatched_sample = df.loc[df["match_id"].isna() & (df["query_norm"] != ""), column].unique()[:10]
            if len(unmatched_sample):
                print("\n   --- Sample of Unmatched Queries ---")
                for query in unmatched_sample:
                    print(f"     - {query}")

        if output_path is not None:
            output_str = str(output_path)
            self._save_dataframe(df, output_str)
            if verbose:
                print(f"\n   Processing complete. Results saved to '{output_str}'")

        if verbose:
            print(f"   Done in {time.time() - t0:.2f}s")

        elapsed = time.time() - overall_start_time
        stats = MatchStats(
            total_queries=len(df),
            unique_queries=len(unique_queries),
            matched=matched,
            unmatched=len(df) - matched,
            empty_queries=empty_queries,
            candidate_count=len(candidate_list),
            runtime_seconds=elapsed,
        )

        if verbose:
            print(f"\n--- Dojo Matcher Batch Finished in {elapsed:.2f} seconds ---")

        return MatchPipelineResult(dataframe=df, stats=stats)

    @property
    def _use_tqdm(self) -> bool:
        if self.config.use_tqdm is not None:
            return self.config.use_tqdm and _TQDM_AVAILABLE
        return _TQDM_AVAILABLE

    def _resolve(
        self,
        queries: Sequence[str],
        candidates: Sequence[Candidate],
    ) -> Dict[str, Tuple[Optional[MatchResult], List[MatchResult]]]:
        resolved: Dict[str, Tuple[Optional[MatchResult], List[MatchResult]]] = {}

        iterator: Iterable[str] = queries
        if queries and self._use_tqdm:
            iterator = tqdm(queries, desc="   Matching", unit="query")

        best_threshold = self.matcher.config.best_match_threshold
        # the suggestion list already holds every confident match, best first
        reuse_suggestions = self.matcher.config.suggestion_threshold <= best_threshold

        for query in iterator:
            suggestions = self.matcher.find_all_matches(query, candidates)
            if reuse_suggestions:
                head = suggestions[0] if suggestions else None
                best = head if head is not None and head.score >= best_threshold else None
            else:
                best = self.matcher.find_best_match(query, candidates)
            resolved[query] = (best, suggestions)
        return resolved

    def _format_suggestions(self, suggestions: Sequence[MatchResult]) -> str:
        limit = max(0, self.config.suggestion_limit)
        return "; ".join(match.name for match in suggestions[:limit])

    @staticmethod
    def _save_dataframe(dataframe: pd.DataFrame, output_path: str | Path) -> None:
        path = Path(output_path)
        suffix = path.suffix.lower()
        if suffix == ".csv":
            dataframe.to_csv(path, index=False)
            return
        if suffix in {".xls", ".xlsx"}:
            dataframe.to_excel(path, index=False)
            return
        raise ValueError(f"Unsupported output file format: '{suffix}'")


__all__ = [
    "MatchPipeline",
    "MatchPipelineConfig",
    "MatchPipelineResult",
    "MatchStats",
]
