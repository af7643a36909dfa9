# backend/dt_core/matching/matcher.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Sequence

from django.db import models
from django.utils.dateparse import parse_date, parse_datetime

from dt_core.matching.similarity import name_similarity, split_name
from dt_core.substances.constants import ScreeningStatus, TestType
from dt_core.substances.panels import parse_test_type

NAME_POINTS = 60
DATE_POINTS = 30
TEST_TYPE_POINTS = 10

# (max days apart, points); first bracket that fits wins
DATE_DECAY: tuple[tuple[int, int], ...] = (
    (0, 30),
    (1, 22),
    (3, 14),
    (7, 6),
)

MANUAL_MATCH_SCORE = 100
# Fuzzy scores never reach the manual score
MAX_FUZZY_SCORE = 99

HIGH_CONFIDENCE = 80
MEDIUM_CONFIDENCE = 60


class MatchConfidence(models.TextChoices):
    HIGH = "high", "High"
    MEDIUM = "medium", "Medium"
    LOW = "low", "Low"


@dataclass(frozen=True)
class CandidateTest:
    id: str
    client_name: str
    collection_date: str | date | datetime
    test_type: str
    screening_status: str
    client_headshot: str | None = None


@dataclass(frozen=True)
class TestMatch:
    __test__ = False

    test: CandidateTest
    score: int
    manual: bool = False

    @property
    def confidence(self) -> str:
        return confidence_for(self.score)


def to_calendar_date(value) -> date | None:
    """
    Calendar date of a date/datetime/ISO string. None/"" => None.
    Anything else that doesn't parse is malformed input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    raw = str(value).strip()
    dt = parse_datetime(raw)
    if dt is not None:
        return dt.date()
    d = parse_date(raw)
    if d is not None:
        return d
    raise ValueError(f"Unparsable date: {value!r}")


def _name_points(donor_name: str | None, client_name: str) -> float:
    if not (donor_name or "").strip() or not (client_name or "").strip():
        return 0.0
    first_a, middle_a, last_a = split_name(donor_name)
    first_b, middle_b, last_b = split_name(client_name)
    sim = name_similarity(first_a, last_a, first_b, last_b, middle_a, middle_b)
    return sim * NAME_POINTS


def _date_points(extracted: date | None, collected: date | None) -> int:
    if extracted is None or collected is None:
        return 0
    days = abs((extracted - collected).days)
    for max_days, points in DATE_DECAY:
        if days <= max_days:
            return points
    return 0


def _test_type_points(extracted: TestType | None, candidate_type: str) -> int:
    if extracted is None:
        return 0
    return TEST_TYPE_POINTS if str(candidate_type) == extracted.value else 0


def score_candidate(
    candidate: CandidateTest,
    donor_name: str | None = None,
    collection_date=None,
    test_type=None,
) -> int:
    """
    0..99 composite:
      name similarity   up to 60
      collection date   up to 30 (same day), decaying over a week
      test type         10 for an exact match
    Missing inputs contribute 0.
    """
    score = _name_points(donor_name, candidate.client_name)
    score += _date_points(to_calendar_date(collection_date), to_calendar_date(candidate.collection_date))
    score += _test_type_points(parse_test_type(test_type), candidate.test_type)
    return max(0, min(MAX_FUZZY_SCORE, int(round(score))))


def manual_match(candidate: CandidateTest) -> TestMatch:
    """Staff explicitly picked this record."""
    return TestMatch(test=candidate, score=MANUAL_MATCH_SCORE, manual=True)


def rank_candidates(
    candidates: Sequence[CandidateTest] | None,
    donor_name: str | None = None,
    collection_date=None,
    test_type=None,
    *,
    is_screen_workflow: bool = False,
    manual_selection_id: str | None = None,
) -> list[TestMatch]:
    """
    Score and order candidate test records against an extracted document.

    Status-agnostic: callers pre-filter the pool for the workflow
    (see filter_by_screening_status); is_screen_workflow is accepted so
    the call site reads the same in both workflows.
    """
    matches: list[TestMatch] = []
    for candidate in candidates or []:
        if manual_selection_id is not None and str(candidate.id) == str(manual_selection_id):
            matches.append(manual_match(candidate))
            continue
        matches.append(
            TestMatch(
                test=candidate,
                score=score_candidate(candidate, donor_name, collection_date, test_type),
            )
        )

    # sorted() is stable: equal scores keep the caller's order
    return sorted(matches, key=lambda m: m.score, reverse=True)


def confidence_for(score: int, *, high: int = HIGH_CONFIDENCE, medium: int = MEDIUM_CONFIDENCE) -> str:
    if score >= high:
        return MatchConfidence.HIGH
    if score >= medium:
        return MatchConfidence.MEDIUM
    return MatchConfidence.LOW


def split_by_visibility(
    matches: Iterable[TestMatch], *, medium: int = MEDIUM_CONFIDENCE
) -> tuple[list[TestMatch], list[TestMatch]]:
    """(shown by default, behind "show more")"""
    shown: list[TestMatch] = []
    hidden: list[TestMatch] = []
    for m in matches:
        (shown if m.score >= medium else hidden).append(m)
    return shown, hidden


def select_auto_match(matches: Sequence[TestMatch], *, high: int = HIGH_CONFIDENCE) -> TestMatch | None:
    """
    Top match when it can be linked silently: high confidence and not tied
    with another high-confidence candidate. Manual selections always win.
    """
    if not matches:
        return None
    top = matches[0]
    if top.manual:
        return top
    if top.score < high:
        return None
    if len(matches) > 1 and matches[1].score == top.score:
        return None
    return top


_SCREENED_OR_DONE = {ScreeningStatus.SCREENED, ScreeningStatus.COMPLETE}
_AWAITING_CONFIRMATION = {ScreeningStatus.SCREENED, ScreeningStatus.CONFIRMATION_PENDING}


def filter_by_screening_status(candidates: Iterable[CandidateTest], is_screen_workflow: bool) -> list[CandidateTest]:
    """
    Screen workflow: records not yet screened.
    Confirmation workflow: screened records awaiting confirmation.
    """
    if is_screen_workflow:
        return [c for c in candidates if c.screening_status not in _SCREENED_OR_DONE]
    return [c for c in candidates if c.screening_status in _AWAITING_CONFIRMATION]


def filter_by_test_type(candidates: Iterable[CandidateTest], test_type=None) -> list[CandidateTest]:
    tt = parse_test_type(test_type)
    if tt is None:
        return list(candidates)
    return [c for c in candidates if str(c.test_type) == tt.value]
