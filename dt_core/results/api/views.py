# backend/dt_core/results/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from dt_core.results.api.serializers import (
    ClassifyRequestSerializer,
    ConfirmationStatusRequestSerializer,
    FinalStatusRequestSerializer,
)
from dt_core.results.confirmation import ConfirmationResult
from dt_core.results.medications import Medication
from dt_core.results.services import ResultWorkflowService
from dt_core.substances.panels import parse_substances


def _medication_from(data: dict) -> Medication:
    return Medication(
        name=data["name"],
        detected_as=parse_substances(data.get("detected_as")),
        require_confirmation=data.get("require_confirmation", False),
        status=data.get("status"),
        start_date=data.get("start_date"),
        end_date=data.get("end_date"),
    )


def _confirmation_results_from(rows) -> list[ConfirmationResult] | None:
    if rows is None:
        return None
    return [ConfirmationResult(substance=r["substance"], result=r["result"], notes=r.get("notes") or "") for r in rows]


class DrugTestResultViewSet(viewsets.ViewSet):
    @extend_schema(request=ClassifyRequestSerializer, responses={200: OpenApiTypes.OBJECT}, tags=["Drug tests"])
    @action(detail=False, methods=["post"], url_path="classify")
    def classify(self, request):
        ser = ClassifyRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        preview = ResultWorkflowService.preview(
            test_id=data.get("test_id"),
            detected_substances=data["detected_substances"],
            medications=[_medication_from(m) for m in data["medications"]],
            is_dilute=data["is_dilute"],
            test_type=data.get("test_type"),
            breathalyzer_result=data.get("breathalyzer_result"),
            is_inconclusive=data["is_inconclusive"],
        )

        out = preview.classification.as_dict()
        out["medications_snapshot"] = [m.as_dict() for m in preview.medications_snapshot]
        return Response(out, status=status.HTTP_200_OK)

    @extend_schema(request=ConfirmationStatusRequestSerializer, responses={200: OpenApiTypes.OBJECT}, tags=["Drug tests"])
    @action(detail=False, methods=["post"], url_path="confirmation-status")
    def confirmation_status(self, request):
        ser = ConfirmationStatusRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        complete = ResultWorkflowService.confirmation_status(
            test_id=data.get("test_id"),
            decision=data.get("decision"),
            confirmation_substances=data.get("confirmation_substances"),
            confirmation_results=_confirmation_results_from(data.get("confirmation_results")),
        )
        return Response({"complete": complete}, status=status.HTTP_200_OK)

    @extend_schema(request=FinalStatusRequestSerializer, responses={200: OpenApiTypes.OBJECT}, tags=["Drug tests"])
    @action(detail=False, methods=["post"], url_path="final-status")
    def final_status(self, request):
        ser = FinalStatusRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        final = ResultWorkflowService.final_status(
            test_id=data.get("test_id"),
            initial_screen_result=data["initial_screen_result"],
            expected_positives=data["expected_positives"],
            unexpected_positives=data["unexpected_positives"],
            confirmation_results=_confirmation_results_from(data["confirmation_results"]),
            breathalyzer_result=data.get("breathalyzer_result"),
        )
        return Response({"final_status": str(final)}, status=status.HTTP_200_OK)
