# backend/dt_core/results/confirmation.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Sequence

from django.db import models


class ConfirmationDecision(models.TextChoices):
    ACCEPT = "accept", "Accept Results (No Confirmation Needed)"
    REQUEST_CONFIRMATION = "request-confirmation", "Request Confirmation Testing"
    PENDING_DECISION = "pending-decision", "Pending Decision"


class ConfirmationOutcome(models.TextChoices):
    CONFIRMED_POSITIVE = "confirmed-positive", "Confirmed Positive"
    CONFIRMED_NEGATIVE = "confirmed-negative", "Confirmed Negative"
    INCONCLUSIVE = "inconclusive", "Inconclusive"


@dataclass(frozen=True)
class ConfirmationResult:
    substance: str
    result: str
    notes: str = ""


def entry_value(entry: Any, name: str):
    if isinstance(entry, Mapping):
        return entry.get(name)
    return getattr(entry, name, None)


def is_confirmation_complete(
    decision: str | None = None,
    requested_substances: Sequence | None = None,
    results: Sequence | None = None,
) -> bool:
    """
    True when the confirmation sub-workflow has a final answer:
      - decision is "request-confirmation"
      - both lists are non-empty
      - exactly one result per requested substance (1:1 count)
      - every result has a substance and an outcome

    Does not check that each result's substance is one of the requested
    substances; only the counts are compared.
    """
    if decision != ConfirmationDecision.REQUEST_CONFIRMATION:
        return False
    if not requested_substances or not results:
        return False
    if len(results) != len(requested_substances):
        return False
    return all(entry_value(r, "substance") and entry_value(r, "result") for r in results)
