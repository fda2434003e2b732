"""Read-only access to the hosted dojo and sensei directories."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence

import requests

from .structures import Candidate


class DirectoryError(RuntimeError):
    """Raised when the directory cannot be read."""


@dataclass
class DirectoryConfig:
    """Connection settings for the hosted REST endpoint."""

    url: str | None = None
    api_key: str | None = None
    schema: str = "public"
    timeout_seconds: int = 30
    connection_timeout: int = 10
    max_retries: int = 3
    verbose: bool = True

    def __post_init__(self) -> None:
        if self.url is None:
            self.url = os.getenv("SUPABASE_URL", "")
        if self.api_key is None:
            self.api_key = os.getenv("SUPABASE_ANON_KEY")

    def headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "Accept-Profile": self.schema}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def endpoint(self, table: str) -> str:
        if not self.url:
            raise DirectoryError("Directory URL is not configured; set SUPABASE_URL.")
        return f"{self.url.rstrip('/')}/rest/v1/{table}"


class DojoDirectory:
    """Typed reads of the dojo and sensei lists used as match candidates."""

    def __init__(self, config: DirectoryConfig | None = None, session: requests.Session | None = None) -> None:
        self.config = config or DirectoryConfig()
        self.session = session or requests.Session()

    def list_dojos(self, active_only: bool = True) -> List[Candidate]:
        params = {"select": "id,name", "order": "name.asc"}
        if active_only:
            params["is_active"] = "eq.true"
        return _to_candidates(self._get("dojos", params))

    def list_senseis(self, dojo_id: str | None = None) -> List[Candidate]:
        """Return senseis as candidates keyed by their user id.

        With `dojo_id` only the senseis linked to that dojo are returned.
        """

        if dojo_id is None:
            links = self._get("user_roles", {"select": "user_id", "role": "eq.sensei"})
        else:
            links = self._get("dojo_senseis", {"select": "user_id", "dojo_id": f"eq.{dojo_id}"})

        user_ids = _unique(str(row["user_id"]) for row in links if row.get("user_id"))
        if not user_ids:
            return []

        profiles = self._get(
            "profiles",
            {
                "select": "user_id,name",
                "user_id": f"in.({','.join(user_ids)})",
                "order": "name.asc",
            },
        )
        return _to_candidates({"id": row.get("user_id"), "name": row.get("name")} for row in profiles)

    def _get(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        url = self.config.endpoint(table)
        timeout_tuple = (self.config.connection_timeout, self.config.timeout_seconds)
        attempts = max(1, self.config.max_retries)
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                response = self.session.get(url, headers=self.config.headers(), params=params, timeout=timeout_tuple)
                response.raise_for_status()
                payload = response.json()
            except requests.exceptions.HTTPError as exc:
                status = exc.response.status_code if exc.response is not None else 0
                if status < 500:
                    raise DirectoryError(f"Reading '{table}' failed with HTTP {status}: {exc}") from exc
                last_error = exc
                if self.config.verbose:
                    print(f"   Directory HTTP {status} on attempt {attempt}/{attempts} for '{table}'.")
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as exc:
                last_error = exc
                if self.config.verbose:
                    print(f"   Directory {type(exc).__name__} on attempt {attempt}/{attempts} for '{table}': {exc}")
            except ValueError as exc:
                raise DirectoryError(f"Reading '{table}' returned invalid JSON: {exc}") from exc
            else:
                if not isinstance(payload, list):
                    raise DirectoryError(f"Reading '{table}' returned {type(payload).__name__}, expected a list")
                return payload

            if attempt < attempts:
                time.sleep(2 ** attempt)

        raise DirectoryError(f"Reading '{table}' failed after {attempts} attempts: {last_error}") from last_error


def _unique(values: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    ordered = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


def _to_candidates(rows: Iterable[Dict[str, Any]]) -> List[Candidate]:
    candidates: List[Candidate] = []
    seen: set[str] = set()
    for row in rows:
        candidate = Candidate.from_mapping(row)
        if not candidate.name.strip() or candidate.id in seen:
            continue
        seen.add(candidate.id)
        candidates.append(candidate)
    return candidates


def candidates_from_rows(rows: Sequence[Dict[str, Any]]) -> List[Candidate]:
    """Convert raw ``{id, name}`` rows into candidates, dropping blanks and duplicate ids."""

    return _to_candidates(rows)
