# backend/dt_core/matching/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from dt_core.matching.matcher import to_calendar_date
from dt_core.substances.constants import ScreeningStatus, Substance, TestType


def _validate_date_string(value):
    try:
        to_calendar_date(value)
    except ValueError:
        raise serializers.ValidationError("Enter a valid ISO-8601 date or datetime.")
    return value


class PersonRecordSerializer(serializers.Serializer):
    id = serializers.CharField()
    first_name = serializers.CharField(required=False, allow_blank=True, default="")
    last_name = serializers.CharField(required=False, allow_blank=True, default="")
    full_name = serializers.CharField(required=False, allow_blank=True, default="")
    initials = serializers.CharField(required=False, allow_blank=True, default="")
    email = serializers.CharField(required=False, allow_blank=True, default="")
    phone = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    dob = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    updated_at = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)


class ClientSearchSerializer(serializers.Serializer):
    records = PersonRecordSerializer(many=True)
    query = serializers.CharField(required=False, allow_blank=True, default="")
    limit = serializers.IntegerField(required=False, min_value=1, max_value=200)


class CandidateTestSerializer(serializers.Serializer):
    id = serializers.CharField()
    client_name = serializers.CharField(allow_blank=True)
    collection_date = serializers.CharField(validators=[_validate_date_string])
    test_type = serializers.ChoiceField(choices=TestType.choices)
    screening_status = serializers.ChoiceField(choices=ScreeningStatus.choices)
    client_headshot = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)


class ExtractedDocumentSerializer(serializers.Serializer):
    donor_name = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    collection_date = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        default=None,
        validators=[_validate_date_string],
    )
    test_type = serializers.ChoiceField(choices=TestType.choices, required=False, allow_null=True, default=None)
    detected_substances = serializers.ListField(
        child=serializers.ChoiceField(choices=Substance.choices),
        required=False,
        default=list,
    )
    is_dilute = serializers.BooleanField(required=False, default=False)


class TestMatchRequestSerializer(serializers.Serializer):
    __test__ = False

    candidates = CandidateTestSerializer(many=True)
    document = ExtractedDocumentSerializer()
    is_screen_workflow = serializers.BooleanField()
    manual_selection_id = serializers.CharField(required=False, allow_null=True, default=None)
    prefilter = serializers.BooleanField(required=False, default=True)

    def validate(self, attrs):
        manual = attrs.get("manual_selection_id")
        if manual and not any(c["id"] == manual for c in attrs["candidates"]):
            raise serializers.ValidationError({"manual_selection_id": "Not one of the candidates."})
        return attrs
