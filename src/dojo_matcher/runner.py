"""Convenience helpers for running the Dojo Matcher end-to-end."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from .directory import candidates_from_rows
from .matcher import CandidateLike
from .pipeline import MatchPipeline, MatchPipelineConfig, MatchPipelineResult
from .structures import Candidate


def load_candidates(
    path: str | Path,
    id_column: str = "id",
    name_column: str = "name",
) -> List[Candidate]:
    """Read ``{id, name}`` candidates from a CSV or Excel file."""

    dataframe = _load_dataframe(Path(path))
    missing = [column for column in (id_column, name_column) if column not in dataframe.columns]
    if missing:
        raise KeyError(f"Column(s) {', '.join(repr(c) for c in missing)} not found in '{path}'")

    named = dataframe.loc[dataframe[name_column].notna(), [id_column, name_column]]
    # string dtype columns cannot hold None, so go through object first
    rows = named.astype(object).rename(columns={id_column: "id", name_column: "name"})
    rows = rows.where(rows.notna(), None)
    return candidates_from_rows(rows.to_dict(orient="records"))


def match_file(
    input_path: str | Path,
    output_path: str | Path,
    candidates: Optional[Sequence[CandidateLike]] = None,
    candidates_path: str | Path | None = None,
    config: Optional[MatchPipelineConfig] = None,
) -> MatchPipelineResult | None:
    """Resolve the names in `input_path` and write the annotated results."""

    input_path = Path(input_path)
    output_path = Path(output_path)

    try:
        dataframe = _load_dataframe(input_path)
    except FileNotFoundError:
        print(f"ERROR: Input file not found at '{input_path}'.")
        return None
    except ValueError:
        print(f"ERROR: Unsupported file format for '{input_path}'. Please provide a CSV or Excel file.")
        return None

    config = config or MatchPipelineConfig()
    if config.query_column not in dataframe.columns:
        print(f"ERROR: Column '{config.query_column}' not found in '{input_path}'. Please check --query-column.")
        return None

    if candidates is None:
        if candidates_path is None:
            print("ERROR: No candidates given. Provide a candidate list or a candidates file.")
            return None
        try:
            candidates = load_candidates(candidates_path)
        except FileNotFoundError:
            print(f"ERROR: Candidates file not found at '{candidates_path}'.")
            return None
        except (KeyError, ValueError) as exc:
            print(f"ERROR: Could not read candidates from '{candidates_path}': {exc}")
            return None

    pipeline = MatchPipeline(config)
    try:
        return pipeline.match(dataframe, candidates, output_path)
    except (KeyError, ValueError) as exc:
        print(f"ERROR: {exc}")
        return None


def _load_dataframe(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path, dtype=str)
    if suffix in {".xls", ".xlsx"}:
        return pd.read_excel(path, dtype=str)
    raise ValueError("unsupported format")
