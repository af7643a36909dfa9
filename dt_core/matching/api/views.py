# backend/dt_core/matching/api/views.py
from __future__ import annotations

from dataclasses import asdict

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from dt_core.common.conf import drug_test_setting
from dt_core.matching.api.serializers import ClientSearchSerializer, TestMatchRequestSerializer
from dt_core.matching.documents import document_from_extraction
from dt_core.matching.matcher import CandidateTest, TestMatch, confidence_for
from dt_core.matching.search import PersonRecord
from dt_core.matching.services import MatchingService


def _match_out(m: TestMatch) -> dict:
    confidence = confidence_for(
        m.score,
        high=drug_test_setting("MATCH_HIGH_CONFIDENCE"),
        medium=drug_test_setting("MATCH_MEDIUM_CONFIDENCE"),
    )
    return {
        "test": asdict(m.test),
        "score": m.score,
        "confidence": str(confidence),
        "manual": m.manual,
    }


class ClientSearchViewSet(viewsets.ViewSet):
    @extend_schema(request=ClientSearchSerializer, responses={200: OpenApiTypes.OBJECT}, tags=["Clients"])
    @action(detail=False, methods=["post"], url_path="search")
    def search(self, request):
        ser = ClientSearchSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        records = [PersonRecord(**r) for r in ser.validated_data["records"]]
        results = MatchingService.search_clients(
            records=records,
            query=ser.validated_data.get("query") or "",
            limit=ser.validated_data.get("limit"),
        )
        return Response({"results": [asdict(r) for r in results]}, status=status.HTTP_200_OK)


class TestMatchViewSet(viewsets.ViewSet):
    __test__ = False

    @extend_schema(request=TestMatchRequestSerializer, responses={200: OpenApiTypes.OBJECT}, tags=["Drug tests"])
    def create(self, request):
        ser = TestMatchRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        candidates = [CandidateTest(**c) for c in data["candidates"]]
        document = document_from_extraction(data["document"])

        outcome = MatchingService.match_document(
            candidates=candidates,
            document=document,
            is_screen_workflow=data["is_screen_workflow"],
            manual_selection_id=data.get("manual_selection_id"),
            prefilter=data.get("prefilter", True),
        )

        out = {
            "matches": [_match_out(m) for m in outcome.matches],
            "shown_count": len(outcome.shown),
            "hidden_count": len(outcome.hidden),
            "auto_match_id": outcome.auto_match.test.id if outcome.auto_match else None,
        }
        return Response(out, status=status.HTTP_200_OK)
