# backend/dt_core/results/tests/test_confirmation_status.py
import pytest

from dt_core.results.confirmation import ConfirmationResult, is_confirmation_complete


def _result(substance="thc", result="confirmed-negative"):
    return ConfirmationResult(substance=substance, result=result)


def test_complete_when_every_requested_substance_has_a_result():
    assert is_confirmation_complete("request-confirmation", ["thc", "cocaine"], [_result("thc"), _result("cocaine")])


@pytest.mark.parametrize("decision", [None, "", "accept", "pending-decision"])
def test_other_decisions_are_never_complete(decision):
    assert is_confirmation_complete(decision, ["thc"], [_result()]) is False


@pytest.mark.parametrize("requested,results", [(None, None), ([], []), (["thc"], []), ([], [_result()]), (["thc"], None)])
def test_empty_lists_are_not_complete(requested, results):
    assert is_confirmation_complete("request-confirmation", requested, results) is False


def test_count_mismatch_is_not_complete():
    assert is_confirmation_complete("request-confirmation", ["thc", "cocaine"], [_result()]) is False
    assert is_confirmation_complete("request-confirmation", ["thc"], [_result(), _result("cocaine")]) is False


def test_result_without_outcome_is_not_complete():
    assert is_confirmation_complete("request-confirmation", ["thc"], [_result(result="")]) is False
    assert is_confirmation_complete("request-confirmation", ["thc"], [_result(substance="")]) is False


def test_plain_mappings_are_accepted():
    results = [{"substance": "thc", "result": "inconclusive"}]
    assert is_confirmation_complete("request-confirmation", ["thc"], results) is True


def test_only_counts_are_compared():
    # a result for a different substance still satisfies the 1:1 count
    assert is_confirmation_complete("request-confirmation", ["thc"], [_result("cocaine")]) is True


def test_two_substances_both_resolved():
    results = [
        {"substance": "thc", "result": "confirmed-positive"},
        {"substance": "cocaine", "result": "confirmed-negative"},
    ]
    assert is_confirmation_complete("request-confirmation", ["thc", "cocaine"], results) is True


def test_accept_with_nothing_requested():
    assert is_confirmation_complete("accept", [], []) is False


def test_one_of_two_results_missing():
    results = [{"substance": "thc", "result": "confirmed-positive"}]
    assert is_confirmation_complete("request-confirmation", ["thc", "cocaine"], results) is False


def test_nothing_given():
    assert is_confirmation_complete(None, None, None) is False
    assert is_confirmation_complete() is False


def test_idempotent():
    args = ("request-confirmation", ["thc"], [_result()])
    assert is_confirmation_complete(*args) == is_confirmation_complete(*args)
