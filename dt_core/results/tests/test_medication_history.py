# backend/dt_core/results/tests/test_medication_history.py
from datetime import date

import pytest

from dt_core.results.medications import (
    Medication,
    MedicationHistory,
    MedicationSnapshot,
    MedicationStatus,
    SnapshotFinalizedError,
    active_medications,
    add_medication,
    discontinue_medication,
    edit_medication,
    snapshot_active_medications,
)
from dt_core.results.services import ResultWorkflowService
from dt_core.substances.constants import Substance


def _meds():
    meds = add_medication((), name="Suboxone", detected_as=["buprenorphine"], require_confirmation=True)
    meds = add_medication(meds, name="Adderall", detected_as=["amphetamines"], start_date=date(2023, 1, 1))
    return meds


def test_add_medication():
    meds = _meds()
    assert [m.name for m in meds] == ["Suboxone", "Adderall"]
    assert meds[0].detected_as == {Substance.BUPRENORPHINE}
    assert meds[0].require_confirmation is True
    assert all(m.status == MedicationStatus.ACTIVE for m in meds)


def test_add_medication_requires_a_name():
    with pytest.raises(ValueError):
        add_medication((), name="  ")


def test_add_medication_rejects_unknown_substances():
    with pytest.raises(ValueError):
        add_medication((), name="Mystery", detected_as=["unicorn-dust"])


def test_edit_medication():
    meds = edit_medication(_meds(), 1, detected_as=["amphetamines", "methamphetamines"], require_confirmation=True)
    assert meds[1].detected_as == {Substance.AMPHETAMINES, Substance.METHAMPHETAMINES}
    assert meds[1].require_confirmation is True
    assert meds[0] == _meds()[0]


def test_edit_cannot_touch_status():
    with pytest.raises(ValueError):
        edit_medication(_meds(), 0, status=MedicationStatus.DISCONTINUED)


def test_discontinue_keeps_the_record():
    meds = discontinue_medication(_meds(), 0, end_date=date(2024, 5, 1))
    assert len(meds) == 2
    assert meds[0].status == MedicationStatus.DISCONTINUED
    assert meds[0].end_date == date(2024, 5, 1)
    assert [m.name for m in active_medications(meds)] == ["Adderall"]


def test_snapshot_only_holds_active_medications():
    meds = discontinue_medication(_meds(), 0, end_date=date(2024, 5, 1))
    snap = snapshot_active_medications(meds)
    assert snap == (MedicationSnapshot(name="Adderall", detected_as=frozenset({Substance.AMPHETAMINES})),)


def test_history_is_append_only():
    history = MedicationHistory()
    first = snapshot_active_medications(_meds())
    second = snapshot_active_medications(discontinue_medication(_meds(), 0, end_date=date(2024, 5, 1)))

    assert history.record("t1", first) == 1
    assert history.record("t1", second) == 2
    assert history.versions("t1") == (first, second)
    assert history.latest("t1") == second
    assert history.latest("unknown") is None


def test_finalized_snapshot_is_frozen():
    history = MedicationHistory()
    snap = snapshot_active_medications(_meds())
    history.record("t1", snap)

    assert history.finalize("t1") == snap
    assert history.is_finalized("t1")
    with pytest.raises(SnapshotFinalizedError):
        history.record("t1", ())
    assert history.versions("t1") == (snap,)


def test_finalize_unknown_test():
    with pytest.raises(KeyError):
        MedicationHistory().finalize("missing")


def test_preview_records_snapshot_versions(captured_events):
    history = MedicationHistory()
    preview = ResultWorkflowService.preview(
        detected_substances=["buprenorphine"],
        medications=_meds(),
        test_id="t1",
        history=history,
    )
    assert preview.snapshot_version == 1
    assert preview.classification.initial_screen_result == "unexpected-negative-warning"
    assert history.latest("t1") == preview.medications_snapshot

    assert captured_events[0][0] == "drug_test.classified"
    assert captured_events[0][1]["test_id"] == "t1"
    assert captured_events[0][1]["unexpected_negatives"] == ["amphetamines"]

    ResultWorkflowService.finalize(history=history, test_id="t1")
    with pytest.raises(SnapshotFinalizedError):
        ResultWorkflowService.preview(
            detected_substances=[], medications=_meds(), test_id="t1", history=history
        )


def test_preview_inconclusive_policy_comes_from_settings(settings):
    settings.DRUG_TESTS = {"AUTO_ACCEPT_INCONCLUSIVE": True}
    preview = ResultWorkflowService.preview(detected_substances=[], medications=(), is_inconclusive=True)
    assert preview.classification.initial_screen_result == "inconclusive"
    assert preview.classification.auto_accept is True
    assert preview.snapshot_version is None


def test_medication_record_rejects_unknown_substance_codes():
    with pytest.raises(ValueError):
        Medication(name="Mystery", detected_as=["unicorn-dust"])
    assert Medication(name="Suboxone", detected_as=["BUPRENORPHINE"]).detected_as == {Substance.BUPRENORPHINE}
