# backend/dt_core/results/final_status.py
from __future__ import annotations

from typing import Iterable, Sequence

from django.db import models

from dt_core.results.classifier import InitialScreenResult, breathalyzer_positive
from dt_core.results.confirmation import ConfirmationOutcome, entry_value


class FinalStatus(models.TextChoices):
    NEGATIVE = "negative", "Negative"
    CONFIRMED_NEGATIVE = "confirmed-negative", "Confirmed Negative"
    EXPECTED_POSITIVE = "expected-positive", "Expected Positive"
    UNEXPECTED_POSITIVE = "unexpected-positive", "Unexpected Positive"
    UNEXPECTED_NEGATIVE_CRITICAL = "unexpected-negative-critical", "Unexpected Negative (Critical)"
    UNEXPECTED_NEGATIVE_WARNING = "unexpected-negative-warning", "Unexpected Negative (Warning)"
    MIXED_UNEXPECTED = "mixed-unexpected", "Mixed Unexpected"
    INCONCLUSIVE = "inconclusive", "Inconclusive"


_HAD_UNEXPECTED_NEGATIVES = {
    InitialScreenResult.MIXED_UNEXPECTED,
    InitialScreenResult.UNEXPECTED_NEGATIVE_CRITICAL,
    InitialScreenResult.UNEXPECTED_NEGATIVE_WARNING,
}


def compute_final_status(
    *,
    initial_screen_result: str,
    expected_positives: Iterable = (),
    unexpected_positives: Iterable = (),
    confirmation_results: Sequence = (),
    breathalyzer_result: float | None = None,
) -> str:
    """
    Final status once confirmation testing is back.

    - any inconclusive confirmation => inconclusive
    - any confirmed positive => fail
    - unexpected positives never sent for confirmation => fail (the client
      accepted the screen result for those)
    - otherwise the screen positives were false alarms; unexpected
      negatives from the screen still stand
    """
    outcomes = [entry_value(r, "result") for r in confirmation_results]
    confirmed = {str(entry_value(r, "substance") or "").lower() for r in confirmation_results}
    unconfirmed = [s for s in unexpected_positives if str(s).lower() not in confirmed]

    if ConfirmationOutcome.INCONCLUSIVE in outcomes:
        status = FinalStatus.INCONCLUSIVE
    elif ConfirmationOutcome.CONFIRMED_POSITIVE in outcomes or unconfirmed:
        if initial_screen_result in _HAD_UNEXPECTED_NEGATIVES:
            status = FinalStatus.MIXED_UNEXPECTED
        else:
            status = FinalStatus.UNEXPECTED_POSITIVE
    elif initial_screen_result in (
        InitialScreenResult.UNEXPECTED_NEGATIVE_CRITICAL,
        InitialScreenResult.MIXED_UNEXPECTED,
    ):
        status = FinalStatus.UNEXPECTED_NEGATIVE_CRITICAL
    elif initial_screen_result == InitialScreenResult.UNEXPECTED_NEGATIVE_WARNING:
        status = FinalStatus.UNEXPECTED_NEGATIVE_WARNING
    elif list(expected_positives):
        status = FinalStatus.EXPECTED_POSITIVE
    else:
        status = FinalStatus.CONFIRMED_NEGATIVE

    if breathalyzer_positive(breathalyzer_result) and status in (
        FinalStatus.EXPECTED_POSITIVE,
        FinalStatus.CONFIRMED_NEGATIVE,
    ):
        status = FinalStatus.UNEXPECTED_POSITIVE

    return status
