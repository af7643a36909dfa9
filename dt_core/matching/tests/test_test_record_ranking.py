# backend/dt_core/matching/tests/test_test_record_ranking.py
from datetime import date, datetime

import pytest

from dt_core.matching.matcher import (
    CandidateTest,
    MatchConfidence,
    TestMatch,
    filter_by_screening_status,
    filter_by_test_type,
    rank_candidates,
    score_candidate,
    select_auto_match,
    split_by_visibility,
    to_calendar_date,
)


def _candidate(id="t1", name="John Doe", collected="2024-05-01", test_type="15-panel-instant", status="collected"):
    return CandidateTest(
        id=id,
        client_name=name,
        collection_date=collected,
        test_type=test_type,
        screening_status=status,
    )


def test_exact_match_is_capped_below_manual_score():
    assert score_candidate(_candidate(), "John Doe", "2024-05-01", "15-panel-instant") == 99


def test_name_and_same_day_without_test_type():
    assert score_candidate(_candidate(), "John Doe", "2024-05-01") == 90


@pytest.mark.parametrize(
    "extracted,expected",
    [
        ("2024-05-02", 82),
        ("2024-04-30", 82),
        ("2024-05-03", 74),
        ("2024-05-06", 66),
        ("2024-05-08", 66),
        ("2024-05-09", 60),
        ("2024-06-15", 60),
    ],
)
def test_date_points_decay_with_distance(extracted, expected):
    assert score_candidate(_candidate(), "John Doe", extracted) == expected


def test_collection_date_compares_calendar_dates():
    c = _candidate(collected=datetime(2024, 5, 1, 23, 59))
    assert score_candidate(c, "John Doe", date(2024, 5, 1)) == 90


def test_missing_inputs_contribute_nothing():
    assert score_candidate(_candidate()) == 0
    assert score_candidate(_candidate(), None, "2024-05-01", "15-panel-instant") == 40
    assert score_candidate(_candidate(), "   ", "2024-05-01") == 30


def test_test_type_mismatch_earns_no_bonus():
    assert score_candidate(_candidate(), "John Doe", "2024-05-01", "etg-lab") == 90


def test_lab_report_name_order():
    assert score_candidate(_candidate(), "DOE, JOHN", "2024-05-01", "15-panel-instant") == 99


def test_scores_stay_in_range():
    for name in ("", "X", "John Doe", "Someone Else Entirely"):
        for d in (None, "2024-05-01", "2023-01-01"):
            s = score_candidate(_candidate(), name, d, "15-panel-instant")
            assert 0 <= s <= 99


def test_rank_is_descending_and_stable_on_ties():
    pool = [
        _candidate(id="a", name="Zed Zulu"),
        _candidate(id="b", name="John Doe"),
        _candidate(id="c", name="Zed Zulu"),
    ]
    matches = rank_candidates(pool, "John Doe", "2024-05-01")
    assert [m.test.id for m in matches] == ["b", "a", "c"]
    scores = [m.score for m in matches]
    assert scores == sorted(scores, reverse=True)


def test_ranking_returns_every_candidate_once():
    pool = [_candidate(id=str(i)) for i in range(5)]
    matches = rank_candidates(pool, "John Doe")
    assert sorted(m.test.id for m in matches) == [str(i) for i in range(5)]


def test_manual_selection_scores_100_and_ranks_first():
    pool = [_candidate(id="a"), _candidate(id="b", name="Someone Else", collected="2023-01-01")]
    matches = rank_candidates(pool, "John Doe", "2024-05-01", manual_selection_id="b")
    assert matches[0].test.id == "b"
    assert matches[0].score == 100
    assert matches[0].manual is True
    assert matches[1].score == 90


def test_empty_pool():
    assert rank_candidates([], "John Doe") == []
    assert select_auto_match([]) is None


def test_confidence_buckets():
    c = _candidate()
    assert TestMatch(test=c, score=80).confidence == MatchConfidence.HIGH
    assert TestMatch(test=c, score=79).confidence == MatchConfidence.MEDIUM
    assert TestMatch(test=c, score=60).confidence == MatchConfidence.MEDIUM
    assert TestMatch(test=c, score=59).confidence == MatchConfidence.LOW


def test_split_by_visibility():
    c = _candidate()
    matches = [TestMatch(test=c, score=90), TestMatch(test=c, score=60), TestMatch(test=c, score=40)]
    shown, hidden = split_by_visibility(matches)
    assert [m.score for m in shown] == [90, 60]
    assert [m.score for m in hidden] == [40]


def test_auto_match_needs_high_confidence_and_no_tie():
    c = _candidate()
    assert select_auto_match([TestMatch(test=c, score=90), TestMatch(test=c, score=70)]).score == 90
    assert select_auto_match([TestMatch(test=c, score=75)]) is None
    assert select_auto_match([TestMatch(test=c, score=90), TestMatch(test=c, score=90)]) is None


def test_manual_selection_always_auto_matches():
    c = _candidate()
    manual = TestMatch(test=c, score=100, manual=True)
    assert select_auto_match([manual, TestMatch(test=c, score=99)]) is manual


def test_screen_workflow_excludes_screened_and_complete():
    pool = [
        _candidate(id="1", status="collected"),
        _candidate(id="2", status="screened"),
        _candidate(id="3", status="confirmation-pending"),
        _candidate(id="4", status="complete"),
    ]
    assert [c.id for c in filter_by_screening_status(pool, True)] == ["1", "3"]
    assert [c.id for c in filter_by_screening_status(pool, False)] == ["2", "3"]


def test_filter_by_test_type():
    pool = [_candidate(id="1"), _candidate(id="2", test_type="etg-lab")]
    assert [c.id for c in filter_by_test_type(pool, "etg-lab")] == ["2"]
    assert [c.id for c in filter_by_test_type(pool, None)] == ["1", "2"]


def test_to_calendar_date():
    assert to_calendar_date(None) is None
    assert to_calendar_date("") is None
    assert to_calendar_date("2024-05-01") == date(2024, 5, 1)
    assert to_calendar_date("2024-05-01T23:30:00-07:00") == date(2024, 5, 1)
    assert to_calendar_date(datetime(2024, 5, 1, 8, 0)) == date(2024, 5, 1)
    with pytest.raises(ValueError):
        to_calendar_date("first of May")


def test_unknown_test_type_is_rejected():
    with pytest.raises(ValueError):
        score_candidate(_candidate(), "John Doe", "2024-05-01", "42-panel")


def test_blank_client_name_earns_no_name_points():
    assert score_candidate(_candidate(name=""), "John Doe", "2024-05-01") == 30
    assert score_candidate(_candidate(name="   "), "John Doe") == 0
