"""Name normalization helpers."""

from __future__ import annotations

import re

import ftfy
import pandas as pd
from unidecode import unidecode


_NON_ALNUM_PATTERN = re.compile(r"[^a-z0-9\s]")
_MULTI_SPACE_PATTERN = re.compile(r"\s+")


def is_missing(value: object) -> bool:
    """Return True for ``None`` and the scalar missing markers pandas produces."""

    if value is None:
        return True
    if not pd.api.types.is_scalar(value):
        return False
    return bool(pd.isna(value))


def as_text(value: object) -> str:
    """Coerce `value` to a string, mapping missing values to ``""``."""

    return "" if is_missing(value) else str(value)


def normalize(name: object) -> str:
    """Return a normalized representation of `name` for matching.

    Lower-cases, folds diacritics to their base letter, drops anything
    that is not a letter, digit or space and collapses whitespace.
    """

    raw = as_text(name).strip()
    if not raw:
        return ""

    fixed = ftfy.fix_text(raw)
    ascii_friendly = unidecode(fixed).lower()
    ascii_friendly = _MULTI_SPACE_PATTERN.sub(" ", ascii_friendly)
    ascii_friendly = _NON_ALNUM_PATTERN.sub("", ascii_friendly)
    # punctuation between spaces leaves a double space behind
    collapsed = _MULTI_SPACE_PATTERN.sub(" ", ascii_friendly)
    return collapsed.strip()
