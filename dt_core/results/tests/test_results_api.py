# backend/dt_core/results/tests/test_results_api.py
import pytest

pytestmark = pytest.mark.django_db


def test_classify_expected_positive(api_client, captured_events):
    payload = {
        "test_id": "t1",
        "detected_substances": ["buprenorphine"],
        "medications": [{"name": "Suboxone", "detected_as": ["buprenorphine"]}],
    }
    res = api_client.post("/api/v1/drug-tests/results/classify/", payload, format="json")
    assert res.status_code == 200, getattr(res, "data", None)

    assert res.data["initial_screen_result"] == "expected-positive"
    assert res.data["expected_positives"] == ["buprenorphine"]
    assert res.data["auto_accept"] is True
    assert res.data["label"] == "expected-positive"
    assert res.data["medications_snapshot"] == [
        {"name": "Suboxone", "detected_as": ["buprenorphine"], "require_confirmation": False}
    ]
    assert captured_events[0][0] == "drug_test.classified"


def test_classify_ignores_discontinued_medications(api_client):
    payload = {
        "detected_substances": [],
        "medications": [
            {
                "name": "Suboxone",
                "detected_as": ["buprenorphine"],
                "require_confirmation": True,
                "status": "discontinued",
                "start_date": "2023-01-01",
                "end_date": "2024-01-01",
            }
        ],
        "is_dilute": True,
    }
    res = api_client.post("/api/v1/drug-tests/results/classify/", payload, format="json")
    assert res.status_code == 200, getattr(res, "data", None)
    assert res.data["initial_screen_result"] == "negative"
    assert res.data["label"] == "negative (dilute)"
    assert res.data["medications_snapshot"] == []


def test_classify_critical_negative_needs_decision(api_client):
    payload = {
        "detected_substances": [],
        "medications": [{"name": "Suboxone", "detected_as": ["buprenorphine"], "require_confirmation": True}],
        "test_type": "15-panel-instant",
    }
    res = api_client.post("/api/v1/drug-tests/results/classify/", payload, format="json")
    assert res.status_code == 200
    assert res.data["initial_screen_result"] == "unexpected-negative-critical"
    assert res.data["critical_negatives"] == ["buprenorphine"]
    assert res.data["auto_accept"] is False


def test_classify_rejects_none_as_detected(api_client):
    res = api_client.post(
        "/api/v1/drug-tests/results/classify/", {"detected_substances": ["none"]}, format="json"
    )
    assert res.status_code == 400
    assert res.data["error"]["code"] == "validation_error"
    assert "detected_substances" in res.data["error"]["details"]


def test_classify_rejects_unknown_substance(api_client):
    res = api_client.post(
        "/api/v1/drug-tests/results/classify/", {"detected_substances": ["unicorn-dust"]}, format="json"
    )
    assert res.status_code == 400


def test_classify_rejects_medication_ending_before_it_started(api_client):
    payload = {
        "medications": [{"name": "Suboxone", "start_date": "2024-02-01", "end_date": "2024-01-01"}],
    }
    res = api_client.post("/api/v1/drug-tests/results/classify/", payload, format="json")
    assert res.status_code == 400


def test_confirmation_status(api_client, captured_events):
    payload = {
        "test_id": "t1",
        "decision": "request-confirmation",
        "confirmation_substances": ["thc"],
        "confirmation_results": [{"substance": "thc", "result": "confirmed-negative"}],
    }
    res = api_client.post("/api/v1/drug-tests/results/confirmation-status/", payload, format="json")
    assert res.status_code == 200, getattr(res, "data", None)
    assert res.data == {"complete": True}
    assert captured_events == [("drug_test.confirmation_completed", {"test_id": "t1", "substances": ["thc"]})]


def test_confirmation_status_incomplete(api_client, captured_events):
    res = api_client.post(
        "/api/v1/drug-tests/results/confirmation-status/",
        {"decision": "accept"},
        format="json",
    )
    assert res.status_code == 200
    assert res.data == {"complete": False}
    assert captured_events == []


def test_final_status(api_client):
    payload = {
        "initial_screen_result": "unexpected-positive",
        "unexpected_positives": ["thc"],
        "confirmation_results": [{"substance": "thc", "result": "confirmed-negative"}],
    }
    res = api_client.post("/api/v1/drug-tests/results/final-status/", payload, format="json")
    assert res.status_code == 200, getattr(res, "data", None)
    assert res.data == {"final_status": "confirmed-negative"}


def test_final_status_requires_initial_result(api_client):
    res = api_client.post("/api/v1/drug-tests/results/final-status/", {}, format="json")
    assert res.status_code == 400
    assert "initial_screen_result" in res.data["error"]["details"]
