# backend/dt_core/matching/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from dt_core.common import events
from dt_core.common.conf import drug_test_setting
from dt_core.matching.documents import ExtractedDocument
from dt_core.matching.matcher import (
    CandidateTest,
    TestMatch,
    filter_by_screening_status,
    rank_candidates,
    select_auto_match,
    split_by_visibility,
)
from dt_core.matching.search import PersonRecord, search_records

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchOutcome:
    matches: list[TestMatch]
    shown: list[TestMatch]
    hidden: list[TestMatch]
    auto_match: TestMatch | None


class MatchingService:
    """
    Workflow-facing wrapper around the pure matchers:
    reads thresholds from settings, pre-filters pools, logs, publishes.
    """

    @staticmethod
    def search_clients(*, records: Sequence[PersonRecord], query: str, limit: int | None = None) -> list[PersonRecord]:
        limit = limit or drug_test_setting("SEARCH_RESULT_LIMIT")
        results = search_records(records, query, limit)
        logger.info(
            "client search pool=%s query_len=%s results=%s",
            len(records or []),
            len((query or "").strip()),
            len(results),
        )
        return results

    @staticmethod
    def match_document(
        *,
        candidates: Sequence[CandidateTest],
        document: ExtractedDocument,
        is_screen_workflow: bool,
        manual_selection_id: str | None = None,
        prefilter: bool = True,
    ) -> MatchOutcome:
        high = drug_test_setting("MATCH_HIGH_CONFIDENCE")
        medium = drug_test_setting("MATCH_MEDIUM_CONFIDENCE")

        pool = list(candidates or [])
        if prefilter:
            kept = filter_by_screening_status(pool, is_screen_workflow)
            # an explicit pick is honoured even if its status would filter it out
            if manual_selection_id is not None:
                kept += [c for c in pool if str(c.id) == str(manual_selection_id) and c not in kept]
            pool = kept

        matches = rank_candidates(
            pool,
            document.donor_name,
            document.collection_date,
            document.test_type,
            is_screen_workflow=is_screen_workflow,
            manual_selection_id=manual_selection_id,
        )
        shown, hidden = split_by_visibility(matches, medium=medium)
        auto = select_auto_match(matches, high=high)

        logger.info(
            "test match workflow=%s pool=%s/%s top_score=%s auto_match=%s",
            "screen" if is_screen_workflow else "confirmation",
            len(pool),
            len(candidates or []),
            matches[0].score if matches else None,
            auto.test.id if auto else None,
        )

        if auto is not None:
            events.publish(
                events.DRUG_TEST_MATCHED,
                {
                    "test_id": auto.test.id,
                    "score": auto.score,
                    "manual": auto.manual,
                    "is_screen_workflow": is_screen_workflow,
                },
            )

        return MatchOutcome(matches=matches, shown=shown, hidden=hidden, auto_match=auto)
