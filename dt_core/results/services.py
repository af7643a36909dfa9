# backend/dt_core/results/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from dt_core.common import events
from dt_core.common.conf import drug_test_setting
from dt_core.results.classifier import ClassificationResult, classify
from dt_core.results.confirmation import is_confirmation_complete
from dt_core.results.final_status import compute_final_status
from dt_core.results.medications import (
    Medication,
    MedicationHistory,
    MedicationSnapshot,
    snapshot_active_medications,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResultPreview:
    classification: ClassificationResult
    medications_snapshot: tuple[MedicationSnapshot, ...]
    snapshot_version: int | None = None


class ResultWorkflowService:
    """
    Orchestration for result entry: snapshot -> classify -> (confirm) -> finalize.

    The classifier and checkers stay pure; side effects (logging, events,
    snapshot history) happen here. Errors are never swallowed.
    """

    @staticmethod
    def preview(
        *,
        detected_substances: Iterable,
        medications: Iterable[Medication],
        is_dilute: bool = False,
        test_type=None,
        breathalyzer_result: float | None = None,
        is_inconclusive: bool = False,
        test_id: str | None = None,
        history: MedicationHistory | None = None,
    ) -> ResultPreview:
        snapshot = snapshot_active_medications(medications)

        result = classify(
            detected_substances,
            snapshot,
            is_dilute,
            test_type=test_type,
            breathalyzer_result=breathalyzer_result,
            is_inconclusive=is_inconclusive,
            auto_accept_inconclusive=drug_test_setting("AUTO_ACCEPT_INCONCLUSIVE"),
        )

        version = None
        if history is not None and test_id is not None:
            version = history.record(test_id, snapshot)

        logger.info(
            "drug test classified test_id=%s result=%s auto_accept=%s expected=%s "
            "unexpected_pos=%s unexpected_neg=%s critical_neg=%s meds=%s",
            test_id,
            result.label,
            result.auto_accept,
            len(result.expected_positives),
            len(result.unexpected_positives),
            len(result.unexpected_negatives),
            len(result.critical_negatives),
            len(snapshot),
        )

        events.publish(
            events.DRUG_TEST_CLASSIFIED,
            {
                "test_id": test_id,
                "initial_screen_result": str(result.initial_screen_result),
                "label": result.label,
                "auto_accept": result.auto_accept,
                "is_dilute": result.is_dilute,
                "unexpected_positives": sorted(s.value for s in result.unexpected_positives),
                "unexpected_negatives": sorted(s.value for s in result.unexpected_negatives),
            },
        )

        return ResultPreview(classification=result, medications_snapshot=snapshot, snapshot_version=version)

    @staticmethod
    def confirmation_status(
        *,
        decision: str | None,
        confirmation_substances: Sequence | None,
        confirmation_results: Sequence | None,
        test_id: str | None = None,
    ) -> bool:
        complete = is_confirmation_complete(decision, confirmation_substances, confirmation_results)
        logger.info(
            "confirmation status test_id=%s decision=%s requested=%s results=%s complete=%s",
            test_id,
            decision,
            len(confirmation_substances or []),
            len(confirmation_results or []),
            complete,
        )
        if complete:
            events.publish(
                events.CONFIRMATION_COMPLETED,
                {"test_id": test_id, "substances": [str(s) for s in confirmation_substances]},
            )
        return complete

    @staticmethod
    def final_status(
        *,
        initial_screen_result: str,
        expected_positives: Iterable = (),
        unexpected_positives: Iterable = (),
        confirmation_results: Sequence = (),
        breathalyzer_result: float | None = None,
        test_id: str | None = None,
    ) -> str:
        status = compute_final_status(
            initial_screen_result=initial_screen_result,
            expected_positives=expected_positives,
            unexpected_positives=unexpected_positives,
            confirmation_results=confirmation_results,
            breathalyzer_result=breathalyzer_result,
        )
        logger.info("final status test_id=%s initial=%s final=%s", test_id, initial_screen_result, status)
        return status

    @staticmethod
    def finalize(*, history: MedicationHistory, test_id: str) -> tuple[MedicationSnapshot, ...]:
        snapshot = history.finalize(test_id)
        logger.info("medications snapshot finalized test_id=%s meds=%s", test_id, len(snapshot))
        return snapshot
