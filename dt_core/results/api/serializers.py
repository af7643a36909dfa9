# backend/dt_core/results/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from dt_core.results.classifier import InitialScreenResult
from dt_core.results.confirmation import ConfirmationDecision, ConfirmationOutcome
from dt_core.results.medications import MedicationStatus
from dt_core.substances.constants import Substance, TestType


def _substance_list(**kwargs):
    return serializers.ListField(child=serializers.ChoiceField(choices=Substance.choices), **kwargs)


class MedicationInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    detected_as = _substance_list(required=False, default=list)
    require_confirmation = serializers.BooleanField(required=False, default=False)
    status = serializers.ChoiceField(choices=MedicationStatus.choices, required=False, default=MedicationStatus.ACTIVE)
    start_date = serializers.DateField(required=False, allow_null=True, default=None)
    end_date = serializers.DateField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and end < start:
            raise serializers.ValidationError("end_date cannot be before start_date.")
        return attrs


class ClassifyRequestSerializer(serializers.Serializer):
    test_id = serializers.CharField(required=False, allow_null=True, default=None)
    detected_substances = _substance_list(required=False, default=list)
    medications = MedicationInputSerializer(many=True, required=False, default=list)
    is_dilute = serializers.BooleanField(required=False, default=False)
    test_type = serializers.ChoiceField(choices=TestType.choices, required=False, allow_null=True, default=None)
    breathalyzer_result = serializers.FloatField(required=False, allow_null=True, default=None, min_value=0)
    is_inconclusive = serializers.BooleanField(required=False, default=False)

    def validate_detected_substances(self, value):
        if Substance.NONE in value:
            raise serializers.ValidationError("'none' is not a detectable substance.")
        if len(set(value)) != len(value):
            raise serializers.ValidationError("Detected substances must be unique.")
        return value


class ConfirmationResultSerializer(serializers.Serializer):
    substance = serializers.ChoiceField(choices=Substance.choices)
    result = serializers.ChoiceField(choices=ConfirmationOutcome.choices)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ConfirmationStatusRequestSerializer(serializers.Serializer):
    test_id = serializers.CharField(required=False, allow_null=True, default=None)
    decision = serializers.ChoiceField(
        choices=ConfirmationDecision.choices, required=False, allow_null=True, default=None
    )
    confirmation_substances = _substance_list(required=False, allow_null=True, default=None)
    confirmation_results = ConfirmationResultSerializer(many=True, required=False, allow_null=True, default=None)


class FinalStatusRequestSerializer(serializers.Serializer):
    test_id = serializers.CharField(required=False, allow_null=True, default=None)
    initial_screen_result = serializers.ChoiceField(choices=InitialScreenResult.choices)
    expected_positives = _substance_list(required=False, default=list)
    unexpected_positives = _substance_list(required=False, default=list)
    confirmation_results = ConfirmationResultSerializer(many=True, required=False, default=list)
    breathalyzer_result = serializers.FloatField(required=False, allow_null=True, default=None, min_value=0)
