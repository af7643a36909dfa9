# backend/dt_core/results/classifier.py
"""
Drug test result classification.

Reconciles the substances a screen detected against the client's active
medications (as snapshotted at test time) and decides whether staff must
make a confirmation decision before the test can be finalized.

    expected positive     detected, explained by an active medication
    unexpected positive   detected, not explained by any medication
    unexpected negative   an expected substance failed to show; critical
                          when a confirmation-required medication left
                          none of its substances on the screen

Pure and deterministic: identical inputs always give the identical result.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from django.db import models

from dt_core.results.medications import MedicationSnapshot
from dt_core.substances.constants import Substance
from dt_core.substances.panels import panel_substances, parse_substances

# BAC is reported to three decimals (0.080); compare above float noise
BAC_EPSILON = 0.0001


class InitialScreenResult(models.TextChoices):
    NEGATIVE = "negative", "Negative"
    EXPECTED_POSITIVE = "expected-positive", "Expected Positive"
    UNEXPECTED_POSITIVE = "unexpected-positive", "Unexpected Positive"
    UNEXPECTED_NEGATIVE_CRITICAL = "unexpected-negative-critical", "Unexpected Negative (Critical)"
    UNEXPECTED_NEGATIVE_WARNING = "unexpected-negative-warning", "Unexpected Negative (Warning)"
    MIXED_UNEXPECTED = "mixed-unexpected", "Mixed Unexpected"
    INCONCLUSIVE = "inconclusive", "Inconclusive"


AUTO_ACCEPT_RESULTS = frozenset(
    {
        InitialScreenResult.NEGATIVE,
        InitialScreenResult.EXPECTED_POSITIVE,
        InitialScreenResult.UNEXPECTED_NEGATIVE_WARNING,
    }
)


@dataclass(frozen=True)
class ClassificationResult:
    expected_positives: frozenset[Substance]
    unexpected_positives: frozenset[Substance]
    unexpected_negatives: frozenset[Substance]
    critical_negatives: frozenset[Substance]
    initial_screen_result: str
    is_dilute: bool
    auto_accept: bool

    @property
    def label(self) -> str:
        if self.is_dilute:
            return f"{self.initial_screen_result} (dilute)"
        return str(self.initial_screen_result)

    @property
    def requires_decision(self) -> bool:
        return not self.auto_accept

    def as_dict(self) -> dict:
        return {
            "expected_positives": sorted(s.value for s in self.expected_positives),
            "unexpected_positives": sorted(s.value for s in self.unexpected_positives),
            "unexpected_negatives": sorted(s.value for s in self.unexpected_negatives),
            "critical_negatives": sorted(s.value for s in self.critical_negatives),
            "initial_screen_result": str(self.initial_screen_result),
            "is_dilute": self.is_dilute,
            "label": self.label,
            "auto_accept": self.auto_accept,
        }


def breathalyzer_positive(breathalyzer_result: float | None) -> bool:
    return breathalyzer_result is not None and float(breathalyzer_result) > BAC_EPSILON


def _parse_detected(detected_substances: Iterable | None) -> frozenset[Substance]:
    detected = parse_substances(detected_substances)
    if Substance.NONE in detected:
        raise ValueError("'none' is not a detectable substance")
    return detected


def _screen_label(
    *,
    detected: frozenset[Substance],
    unexpected_positives: frozenset[Substance],
    unexpected_negatives: frozenset[Substance],
    critical_negatives: frozenset[Substance],
) -> str:
    if not detected and not unexpected_negatives:
        return InitialScreenResult.NEGATIVE
    if unexpected_positives and unexpected_negatives:
        return InitialScreenResult.MIXED_UNEXPECTED
    if unexpected_positives:
        return InitialScreenResult.UNEXPECTED_POSITIVE
    if critical_negatives:
        return InitialScreenResult.UNEXPECTED_NEGATIVE_CRITICAL
    if unexpected_negatives:
        return InitialScreenResult.UNEXPECTED_NEGATIVE_WARNING
    return InitialScreenResult.EXPECTED_POSITIVE


def classify(
    detected_substances: Iterable | None,
    medications: Iterable[MedicationSnapshot] | None,
    is_dilute: bool = False,
    *,
    test_type=None,
    breathalyzer_result: float | None = None,
    is_inconclusive: bool = False,
    auto_accept_inconclusive: bool = False,
) -> ClassificationResult:
    """
    Classify a screen against the medications snapshot.

    test_type restricts expectations to the substances that panel screens
    for, so a medication the panel can't see never produces an unexpected
    negative. A positive breathalyzer fails an otherwise passing screen.
    Dilution is carried through as a flag and never alters the sets.
    """
    detected = _parse_detected(detected_substances)
    screened = panel_substances(test_type)

    expected: set[Substance] = set()
    warning_negatives: set[Substance] = set()
    critical_negatives: set[Substance] = set()

    for med in medications or []:
        substances = frozenset(s for s in med.detected_as if s != Substance.NONE) & screened
        if not substances:
            continue
        expected |= substances
        missing = substances - detected
        if med.require_confirmation and missing == substances:
            # a must-show medication left no trace at all
            critical_negatives |= substances
        else:
            warning_negatives |= missing

    warning_negatives -= critical_negatives
    unexpected_negatives = frozenset(warning_negatives | critical_negatives)
    expected_positives = frozenset(detected & expected)
    unexpected_positives = frozenset(detected - expected)

    result = _screen_label(
        detected=detected,
        unexpected_positives=unexpected_positives,
        unexpected_negatives=unexpected_negatives,
        critical_negatives=frozenset(critical_negatives),
    )
    auto_accept = result in AUTO_ACCEPT_RESULTS

    if is_inconclusive and not unexpected_positives and not critical_negatives:
        result = InitialScreenResult.INCONCLUSIVE
        auto_accept = bool(auto_accept_inconclusive)

    if breathalyzer_positive(breathalyzer_result) and result in (
        InitialScreenResult.NEGATIVE,
        InitialScreenResult.EXPECTED_POSITIVE,
    ):
        result = InitialScreenResult.UNEXPECTED_POSITIVE
        auto_accept = False

    return ClassificationResult(
        expected_positives=expected_positives,
        unexpected_positives=unexpected_positives,
        unexpected_negatives=unexpected_negatives,
        critical_negatives=frozenset(critical_negatives),
        initial_screen_result=result,
        is_dilute=bool(is_dilute),
        auto_accept=auto_accept,
    )
