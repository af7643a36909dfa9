# backend/dt_core/matching/search.py
from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from datetime import date, datetime, timezone as dt_timezone
from typing import Any, Iterable, Sequence

from django.utils.dateparse import parse_date, parse_datetime
from rapidfuzz import fuzz

SEARCH_MIN_CHARS = 2
RECENT_RECORD_LIMIT = 25
SEARCH_RESULT_LIMIT = 50

# Max accepted distance per field (0 = exact, 1 = anything)
SEARCH_THRESHOLD = 0.3

# Field weights (sum to 1.0). First name is what staff type most.
SEARCH_FIELDS: tuple[tuple[str, float], ...] = (
    ("first_name", 0.35),
    ("last_name", 0.20),
    ("full_name", 0.18),
    ("email", 0.15),
    ("phone", 0.07),
    ("phone_digits", 0.03),
    ("dob_tokens", 0.02),
)

# An exact field hit would zero the product; keep it just above zero
_EPSILON = sys.float_info.epsilon

_EPOCH = datetime(1970, 1, 1, tzinfo=dt_timezone.utc)

_NON_DIGITS = re.compile(r"\D")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_US_DATE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")


@dataclass(frozen=True)
class PersonRecord:
    id: str
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    initials: str = ""
    email: str = ""
    phone: str | None = None
    dob: Any = None  # str | date | None
    updated_at: Any = None  # str | datetime | None


def normalize_phone_digits(value: str | None) -> str:
    return _NON_DIGITS.sub("", value or "")


def _date_parts(value) -> tuple[str, str, str] | None:
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return f"{value.year:04d}", f"{value.month:02d}", f"{value.day:02d}"

    trimmed = str(value).strip()
    if not trimmed:
        return None

    m = _ISO_DATE.match(trimmed)
    if m:
        return m.group(1), m.group(2), m.group(3)

    m = _US_DATE.match(trimmed)
    if m:
        return m.group(3), m.group(1).zfill(2), m.group(2).zfill(2)

    return None


def build_dob_tokens(dob) -> list[str]:
    """
    Every common spelling of a date of birth, so the search box matches
    whichever format staff type:
        MM/DD/YYYY, YYYY-MM-DD, MMDDYYYY, YYYYMMDD (+ the raw stored value)
    Missing or unparsable values never raise.
    """
    if dob is None:
        return []

    tokens: list[str] = []

    def _add(tok: str) -> None:
        if tok and tok not in tokens:
            tokens.append(tok)

    if not isinstance(dob, (date, datetime)):
        trimmed = str(dob).strip()
        if not trimmed:
            return []
        _add(trimmed)
        compact = _NON_DIGITS.sub("", trimmed)
        if len(compact) >= 8:
            _add(compact)

    parts = _date_parts(dob)
    if parts is None:
        return tokens

    year, month, day = parts
    _add(f"{month}/{day}/{year}")
    _add(f"{year}-{month}-{day}")
    _add(f"{month}{day}{year}")
    _add(f"{year}{month}{day}")
    return tokens


def _to_timestamp(value) -> float:
    """
    updated_at -> sortable timestamp. Missing/unparsable => epoch (0.0).
    Naive datetimes are treated as UTC.
    """
    if value is None or value == "":
        return 0.0

    dt = None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        raw = str(value).strip()
        try:
            dt = parse_datetime(raw)
            if dt is None:
                d = parse_date(raw)
                dt = datetime(d.year, d.month, d.day) if d else None
        except ValueError:
            dt = None

    if dt is None:
        return 0.0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=dt_timezone.utc)
    return (dt - _EPOCH).total_seconds()


def recent_records(records: Iterable[PersonRecord], limit: int = RECENT_RECORD_LIMIT) -> list[PersonRecord]:
    """Most recently touched first. Stable for equal timestamps."""
    ordered = sorted(records or [], key=lambda r: _to_timestamp(r.updated_at), reverse=True)
    return ordered[:limit]


def _indexed_fields(record: PersonRecord) -> dict[str, str]:
    return {
        "first_name": record.first_name or "",
        "last_name": record.last_name or "",
        "full_name": record.full_name or "",
        "email": record.email or "",
        "phone": record.phone or "",
        "phone_digits": normalize_phone_digits(record.phone),
        "dob_tokens": " ".join(build_dob_tokens(record.dob)),
    }


def _field_distance(pattern: str, text: str) -> float | None:
    """
    Best-alignment distance of the pattern anywhere inside the field.
    Returns None when the field can't match at all.
    """
    if len(text) < SEARCH_MIN_CHARS:
        return None
    text = text.lower()
    if len(pattern) > len(text):
        # pattern can't sit inside a shorter field; compare whole strings
        ratio = fuzz.ratio(pattern, text)
    else:
        ratio = fuzz.partial_ratio(pattern, text)
    return 1.0 - ratio / 100.0


def _record_score(pattern: str, fields: dict[str, str], threshold: float) -> float | None:
    """
    Weighted product of matching field distances (lower is better).
    Fields that don't pass the threshold don't contribute; a record
    with no passing field is not a hit.
    """
    total = 1.0
    matched = False
    for name, weight in SEARCH_FIELDS:
        d = _field_distance(pattern, fields[name])
        if d is None or d > threshold:
            continue
        matched = True
        total *= max(d, _EPSILON) ** weight
    return total if matched else None


def search_records(
    records: Sequence[PersonRecord] | None,
    query: str,
    limit: int = SEARCH_RESULT_LIMIT,
    *,
    threshold: float = SEARCH_THRESHOLD,
) -> list[PersonRecord]:
    """
    Fuzzy multi-field record search, best match first.

    Queries shorter than two characters (after trimming) skip matching and
    return the 25 most recently updated records instead. The index is
    rebuilt from `records` on every call.
    """
    safe = list(records or [])
    q = (query or "").strip()

    if not safe:
        return []

    if len(q) < SEARCH_MIN_CHARS:
        return recent_records(safe, RECENT_RECORD_LIMIT)

    pattern = q.lower()
    hits: list[tuple[float, int, PersonRecord]] = []
    for idx, record in enumerate(safe):
        score = _record_score(pattern, _indexed_fields(record), threshold)
        if score is not None:
            hits.append((score, idx, record))

    hits.sort(key=lambda h: (h[0], h[1]))
    return [h[2] for h in hits[:limit]]
