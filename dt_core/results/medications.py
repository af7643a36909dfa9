# backend/dt_core/results/medications.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterable

from django.db import models

from dt_core.substances.constants import Substance
from dt_core.substances.panels import parse_substances


class MedicationStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    DISCONTINUED = "discontinued", "Discontinued"


@dataclass(frozen=True)
class Medication:
    """
    A client's declared medication.
    Never deleted; discontinuing flips status and stamps end_date.
    """
    name: str
    detected_as: frozenset[Substance] = field(default_factory=frozenset)
    require_confirmation: bool = False
    status: str = MedicationStatus.ACTIVE
    start_date: date | None = None
    end_date: date | None = None

    def __post_init__(self):
        object.__setattr__(self, "detected_as", parse_substances(self.detected_as))

    @property
    def is_active(self) -> bool:
        return self.status == MedicationStatus.ACTIVE


@dataclass(frozen=True)
class MedicationSnapshot:
    """Active medication as it stood when a test was recorded."""
    name: str
    detected_as: frozenset[Substance] = field(default_factory=frozenset)
    require_confirmation: bool = False

    def __post_init__(self):
        object.__setattr__(self, "detected_as", parse_substances(self.detected_as))

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "detected_as": sorted(s.value for s in self.detected_as),
            "require_confirmation": self.require_confirmation,
        }


class SnapshotFinalizedError(Exception):
    def __init__(self, test_id: str):
        super().__init__(f"Medications snapshot for test {test_id} is finalized")
        self.test_id = test_id


# ----------------------------
# Medication record operations
# ----------------------------
def add_medication(
    medications: Iterable[Medication],
    *,
    name: str,
    detected_as: Iterable = (),
    require_confirmation: bool = False,
    start_date: date | None = None,
) -> tuple[Medication, ...]:
    name = (name or "").strip()
    if not name:
        raise ValueError("Medication name is required")
    med = Medication(
        name=name,
        detected_as=parse_substances(detected_as),
        require_confirmation=bool(require_confirmation),
        status=MedicationStatus.ACTIVE,
        start_date=start_date,
    )
    return (*medications, med)


def edit_medication(medications: Iterable[Medication], index: int, **changes) -> tuple[Medication, ...]:
    """
    Replace one entry with an edited copy. Status changes go through
    discontinue_medication so end_date is always stamped.
    """
    meds = tuple(medications)
    allowed = {"name", "detected_as", "require_confirmation", "start_date"}
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Cannot edit medication fields: {sorted(unknown)}")
    if "detected_as" in changes:
        changes["detected_as"] = parse_substances(changes["detected_as"])
    edited = replace(meds[index], **changes)
    return meds[:index] + (edited,) + meds[index + 1:]


def discontinue_medication(medications: Iterable[Medication], index: int, *, end_date: date) -> tuple[Medication, ...]:
    meds = tuple(medications)
    current = meds[index]
    if not current.is_active:
        return meds
    stopped = replace(current, status=MedicationStatus.DISCONTINUED, end_date=end_date)
    return meds[:index] + (stopped,) + meds[index + 1:]


def active_medications(medications: Iterable[Medication]) -> list[Medication]:
    return [m for m in medications or [] if m.is_active]


def snapshot_active_medications(medications: Iterable[Medication]) -> tuple[MedicationSnapshot, ...]:
    return tuple(
        MedicationSnapshot(
            name=m.name,
            detected_as=frozenset(m.detected_as),
            require_confirmation=m.require_confirmation,
        )
        for m in active_medications(medications)
    )


# ----------------------------
# Snapshot history (append-only)
# ----------------------------
class MedicationHistory:
    """
    Append-only medication snapshots keyed by test-record id.

    Every record() appends a new version; history is never rewritten.
    Once a test is finalized its latest version is frozen and further
    record() calls raise SnapshotFinalizedError.
    """

    def __init__(self):
        self._versions: dict[str, list[tuple[MedicationSnapshot, ...]]] = {}
        self._finalized: set[str] = set()

    def record(self, test_id: str, snapshot: Iterable[MedicationSnapshot]) -> int:
        key = str(test_id)
        if key in self._finalized:
            raise SnapshotFinalizedError(key)
        versions = self._versions.setdefault(key, [])
        versions.append(tuple(snapshot))
        return len(versions)

    def finalize(self, test_id: str) -> tuple[MedicationSnapshot, ...]:
        key = str(test_id)
        if key not in self._versions:
            raise KeyError(key)
        self._finalized.add(key)
        return self._versions[key][-1]

    def is_finalized(self, test_id: str) -> bool:
        return str(test_id) in self._finalized

    def latest(self, test_id: str) -> tuple[MedicationSnapshot, ...] | None:
        versions = self._versions.get(str(test_id))
        return versions[-1] if versions else None

    def versions(self, test_id: str) -> tuple[tuple[MedicationSnapshot, ...], ...]:
        return tuple(self._versions.get(str(test_id), ()))
