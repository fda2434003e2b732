"""Command line entry point for the Dojo Matcher library."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List

from .directory import DirectoryConfig, DirectoryError, DojoDirectory
from .matcher import NameMatcher, NameMatcherConfig
from .pipeline import MatchPipelineConfig
from .runner import load_candidates, match_file
from .structures import Candidate


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Match free-text dojo or sensei names to known records.")
    parser.add_argument("input", type=Path, nargs="?", help="CSV or Excel file with the names to resolve")
    parser.add_argument("output", type=Path, nargs="?", help="Path where the annotated results will be written")
    parser.add_argument("--query", help="Resolve a single name and print the best match and suggestions")

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--candidates", type=Path, help="CSV or Excel file with 'id' and 'name' columns")
    source.add_argument(
        "--directory",
        choices=("dojos", "senseis"),
        help="Read candidates from the hosted directory (needs SUPABASE_URL)",
    )
    parser.add_argument("--dojo-id", help="Only senseis linked to this dojo (with --directory senseis)")
    parser.add_argument(
        "--include-inactive",
        action="store_true",
        help="Also match inactive dojos (with --directory dojos)",
    )

    parser.add_argument("--query-column", default="dojo", help="Column containing the raw names (default: dojo)")
    parser.add_argument("--best-threshold", type=float, default=None, help="Minimum score for a confident match")
    parser.add_argument(
        "--suggestion-threshold",
        type=float,
        default=None,
        help="Minimum score for a name to be listed as a suggestion",
    )
    parser.add_argument("--suggestion-limit", type=int, default=5, help="Suggestions kept per row (default: 5)")
    parser.add_argument(
        "--disable-tqdm",
        action="store_true",
        help="Disable progress bars even if tqdm is installed",
    )
    parser.add_argument("--quiet", action="store_true", help="Only print errors")

    args = parser.parse_args(argv)
    if args.query is None and (args.input is None or args.output is None):
        parser.error("input and output are required unless --query is given")
    return args


def _load_source(args: argparse.Namespace) -> List[Candidate]:
    if args.candidates is not None:
        return load_candidates(args.candidates)

    directory = DojoDirectory(DirectoryConfig(verbose=not args.quiet))
    if args.directory == "senseis":
        return directory.list_senseis(dojo_id=args.dojo_id)
    return directory.list_dojos(active_only=not args.include_inactive)


def _print_query(matcher: NameMatcher, query: str, candidates: List[Candidate], limit: int) -> None:
    best = matcher.find_best_match(query, candidates)
    if best is None:
        print(f"No confident match for '{query}'.")
    else:
        print(f"Best match: {best.name} (id={best.id}, score={best.score:.3f})")

    suggestions = matcher.find_all_matches(query, candidates)[: max(0, limit)]
    if suggestions:
        print("Suggestions:")
        for match in suggestions:
            print(f"  - {match.name} (id={match.id}, score={match.score:.3f})")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)

    try:
        matcher_config = NameMatcherConfig(
            best_match_threshold=args.best_threshold,
            suggestion_threshold=args.suggestion_threshold,
        )
    except ValueError as exc:
        print(f"ERROR: {exc}")
        return 1

    try:
        candidates = _load_source(args)
    except FileNotFoundError:
        print(f"ERROR: Candidates file not found at '{args.candidates}'.")
        return 1
    except (KeyError, ValueError, DirectoryError) as exc:
        print(f"ERROR: {exc}")
        return 1

    if args.query is not None:
        _print_query(NameMatcher(matcher_config), args.query, candidates, args.suggestion_limit)
        return 0

    pipeline_config = MatchPipelineConfig(
        query_column=args.query_column,
        suggestion_limit=args.suggestion_limit,
        use_tqdm=not args.disable_tqdm,
        verbose=not args.quiet,
        matcher=matcher_config,
    )

    result = match_file(args.input, args.output, candidates=candidates, config=pipeline_config)
    return 0 if result is not None else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
