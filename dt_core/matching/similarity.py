# backend/dt_core/matching/similarity.py
from __future__ import annotations

import re

from rapidfuzz.distance import Levenshtein

FIRST_NAME_WEIGHT = 0.3
LAST_NAME_WEIGHT = 0.6
MIDDLE_NAME_WEIGHT = 0.1

# Only one side knows a middle name/initial
ONE_SIDED_MIDDLE_SCORE = 0.8


def string_similarity(a: str, b: str) -> float:
    """
    Normalized Levenshtein similarity in [0, 1], case-insensitive.

    (max_len - distance) / max_len over the lower-cased inputs.
    Two empty strings are identical (1.0); empty vs non-empty is 0.0.
    """
    s1 = (a or "").lower()
    s2 = (b or "").lower()
    if s1 == s2:
        return 1.0

    max_len = max(len(s1), len(s2))
    distance = Levenshtein.distance(s1, s2)
    return (max_len - distance) / max_len


def name_similarity(
    first_a: str,
    last_a: str,
    first_b: str,
    last_b: str,
    middle_a: str | None = None,
    middle_b: str | None = None,
) -> float:
    """
    Weighted identity score: 30% first name, 60% last name, 10% middle.

    Last name dominates: a perfect last-name match alone is worth 0.6.
    Middle component: both present => similarity, one present => 0.8,
    neither => 1.0 (missing data is not a mismatch).
    """
    first = string_similarity(first_a, first_b)
    last = string_similarity(last_a, last_b)

    if middle_a and middle_b:
        middle = string_similarity(middle_a, middle_b)
    elif middle_a or middle_b:
        middle = ONE_SIDED_MIDDLE_SCORE
    else:
        middle = 1.0

    score = FIRST_NAME_WEIGHT * first + LAST_NAME_WEIGHT * last + MIDDLE_NAME_WEIGHT * middle
    return min(1.0, max(0.0, score))


_WS = re.compile(r"\s+")


def split_name(full_name: str | None) -> tuple[str, str | None, str]:
    """
    Split a free-text name into (first, middle, last).

      "Doe"               -> ("", None, "Doe")
      "John Doe"          -> ("John", None, "Doe")
      "John Michael Doe"  -> ("John", "Michael", "Doe")
      "DOE, JOHN M"       -> ("JOHN", "M", "DOE")   (lab-report order)
    """
    raw = (full_name or "").strip()
    if not raw:
        return "", None, ""

    if "," in raw:
        last_part, _, rest = raw.partition(",")
        raw = f"{rest.strip()} {last_part.strip()}".strip()

    parts = [p.strip(".") for p in _WS.split(raw) if p.strip(".")]
    if not parts:
        return "", None, ""
    if len(parts) == 1:
        return "", None, parts[0]
    if len(parts) == 2:
        return parts[0], None, parts[1]
    return parts[0], " ".join(parts[1:-1]), parts[-1]
