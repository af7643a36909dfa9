# backend/dt_core/matching/documents.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from dt_core.matching.matcher import to_calendar_date
from dt_core.substances.constants import Substance, TestType
from dt_core.substances.panels import parse_substances, parse_test_type


@dataclass(frozen=True)
class ExtractedDocument:
    """
    What the PDF extraction step read off a lab report.
    Every field may be missing; extraction output is untrusted.
    """
    donor_name: str | None = None
    collection_date: date | None = None
    test_type: TestType | None = None
    detected_substances: frozenset[Substance] = field(default_factory=frozenset)
    is_dilute: bool = False


def _pick(payload: dict, *keys):
    for k in keys:
        if k in payload and payload[k] is not None:
            return payload[k]
    return None


def document_from_extraction(payload: dict | None) -> ExtractedDocument:
    """
    Build an ExtractedDocument from the extraction collaborator's output
    ({donorName, collectionDate, testType, detectedSubstances}; snake_case
    keys are accepted too). Unknown substances or test types raise
    ValueError rather than being dropped.
    """
    payload = payload or {}
    name = _pick(payload, "donorName", "donor_name")
    name = str(name).strip() if name is not None else None
    return ExtractedDocument(
        donor_name=name or None,
        collection_date=to_calendar_date(_pick(payload, "collectionDate", "collection_date")),
        test_type=parse_test_type(_pick(payload, "testType", "test_type")),
        detected_substances=parse_substances(_pick(payload, "detectedSubstances", "detected_substances")),
        is_dilute=bool(_pick(payload, "isDilute", "is_dilute") or False),
    )
