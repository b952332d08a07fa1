"""Integration tests for API endpoints"""

import pytest
from datetime import time

from fastapi.testclient import TestClient
from circulation_gateway.domain.exceptions import StorageUnavailableError
from circulation_gateway.domain.models import OpeningDay, OpeningHour
from circulation_gateway.domain.policy_kinds import PolicyKind

pytestmark = pytest.mark.integration

RULES_QUERY = {
    "loan_type_id": "can-circulate",
    "location_id": "main-stacks",
    "item_type_id": "dvd",
    "patron_type_id": "undergrad",
}


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "http_request_duration_seconds" in response.text


def test_request_id_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Okapi-Request-Id": "req-42"})
    assert response.headers["X-Okapi-Request-Id"] == "req-42"


def test_apply_rules_endpoint(client: TestClient):
    """Test GET /v1/circulation/rules/{kind}-policy"""
    response = client.get("/v1/circulation/rules/overdue-fine-policy", params=RULES_QUERY)

    assert response.status_code == 200
    assert response.json() == {"overdueFinePolicyId": "fine-dvd", "conditions": ["material-type"]}


def test_apply_rules_endpoint_fallback(client: TestClient):
    response = client.get("/v1/circulation/rules/request-policy", params=RULES_QUERY)

    assert response.status_code == 200
    assert response.json() == {"requestPolicyId": "request-fallback", "conditions": []}


def test_apply_rules_endpoint_requires_all_attributes(client: TestClient):
    response = client.get(
        "/v1/circulation/rules/loan-policy", params={"loan_type_id": "can-circulate"}
    )
    assert response.status_code == 422


def test_apply_rules_endpoint_unknown_kind(client: TestClient):
    response = client.get("/v1/circulation/rules/parking-policy", params=RULES_QUERY)
    assert response.status_code in (404, 422)


def test_validate_rules_endpoint(client: TestClient):
    """Test POST /v1/circulation/rules/validate with valid rules"""
    rules = (
        "priority: t, s, c, b, a, m, g\n"
        "fallback-policy: l loan-fallback r request-fallback n notice-fallback o fine-fallback i lost-fallback\n"
        "m dvd: l loan-dvd\n"
    )
    response = client.post("/v1/circulation/rules/validate", json={"rulesAsText": rules})
    assert response.status_code == 204


def test_validate_rules_endpoint_unknown_policy(client: TestClient):
    rules = (
        "priority: t, s, c, b, a, m, g\n"
        "fallback-policy: l loan-fallback r request-fallback n notice-fallback o fine-fallback i lost-fallback\n"
        "m dvd: n notice-missing\n"
    )
    response = client.post("/v1/circulation/rules/validate", json={"rulesAsText": rules})

    assert response.status_code == 422
    data = response.json()
    assert data["message"] == "Notice policy notice-missing does not exist"
    assert data["parameters"] == {"policyType": "n", "policyId": "notice-missing"}


def test_validate_rules_endpoint_tab(client: TestClient):
    rules = "priority: t, s, c, b, a, m, g\n\tfallback-policy: l a r b n c o d i e\n"
    response = client.post("/v1/circulation/rules/validate", json={"rulesAsText": rules})

    assert response.status_code == 422
    assert "Tab" in response.json()["message"]
    assert response.json()["parameters"] == {"line": 2, "column": 2}


def test_get_policy_endpoint(client: TestClient):
    """Test GET /v1/policies/{kind}"""
    response = client.get(
        "/v1/policies/loan", params={"item_id": "item-book", "user_id": "user-staff"}
    )

    assert response.status_code == 200
    assert response.json() == {
        "policy_type": "loan",
        "policy_id": "loan-staff-book",
        "name": "Staff six months",
        "conditions": ["patron-group", "material-type"],
    }


def test_get_policy_endpoint_unknown_item(client: TestClient):
    response = client.get(
        "/v1/policies/loan", params={"item_id": "item-ghost", "user_id": "user-staff"}
    )

    assert response.status_code == 500
    assert response.json()["message"] == "Unable to apply circulation rules for unknown item"


def test_get_policy_endpoint_unknown_user(client: TestClient):
    response = client.get(
        "/v1/policies/loan", params={"item_id": "item-book", "user_id": "user-ghost"}
    )

    assert response.status_code == 422
    assert response.json()["message"] == "Could not find user"


def test_get_policy_endpoint_missing_policy(client: TestClient, policy_bodies):
    del policy_bodies[(PolicyKind.LOST_ITEM_FEE, "lost-fallback")]

    response = client.get(
        "/v1/policies/lost-item-fee", params={"item_id": "item-book", "user_id": "user-staff"}
    )

    assert response.status_code == 422
    assert response.json()["parameters"]["policyId"] == "lost-fallback"


def test_due_date_endpoint_rolling(client: TestClient):
    """Test POST /v1/loans/due-date for a three week rolling loan"""
    response = client.post(
        "/v1/loans/due-date",
        json={"item_id": "item-book", "user_id": "user-undergrad", "loan_date": "2026-03-01T10:00:00Z"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["loan_policy_id"] == "loan-fallback"
    assert data["due_date"].startswith("2026-03-22T10:00:00")


def test_due_date_endpoint_truncated_by_schedule(client: TestClient):
    response = client.post(
        "/v1/loans/due-date",
        json={"item_id": "item-book", "user_id": "user-staff", "loan_date": "2026-04-01T09:00:00Z"},
    )

    assert response.status_code == 200
    assert response.json()["due_date"].startswith("2026-06-15T23:59:59")


def test_due_date_endpoint_outside_schedule(client: TestClient):
    response = client.post(
        "/v1/loans/due-date",
        json={"item_id": "item-dvd", "user_id": "user-undergrad", "loan_date": "2025-11-01T09:00:00Z"},
    )

    assert response.status_code == 422
    assert response.json()["parameters"] == {"loanPolicyId": "loan-dvd"}


def test_overdue_endpoint_counts_closed_time(client: TestClient):
    """Test POST /v1/loans/overdue when closed time counts"""
    response = client.post(
        "/v1/loans/overdue",
        json={
            "loan_id": "loan-1",
            "item_id": "item-book",
            "user_id": "user-undergrad",
            "loan_date": "2026-03-01T10:00:00Z",
            "due_date": "2026-03-22T10:00:00Z",
            "system_time": "2026-03-22T13:01:00Z",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["applicable"] is True
    assert data["overdue_minutes"] == 181
    assert data["overdue_fine_policy_id"] == "fine-fallback"
    assert float(data["fine_amount"]) == 1.0


def test_overdue_endpoint_within_grace_period(client: TestClient):
    response = client.post(
        "/v1/loans/overdue",
        json={
            "loan_id": "loan-1",
            "item_id": "item-book",
            "user_id": "user-undergrad",
            "loan_date": "2026-03-01T10:00:00Z",
            "due_date": "2026-03-22T10:00:00Z",
            "system_time": "2026-03-22T10:45:00Z",
        },
    )

    assert response.status_code == 200
    assert response.json()["overdue_minutes"] == 0
    assert float(response.json()["fine_amount"]) == 0.0


def test_overdue_endpoint_open_time_only(client: TestClient, calendar_client):
    """Test only opening hours are billed when closed time does not count"""
    calendar_client.fetch_opening_days.return_value = [
        OpeningDay(day=None, opening_hours=[OpeningHour(time(9, 0), time(17, 0))]),
        OpeningDay(day=None, opening_hours=[OpeningHour(time(9, 0), time(17, 0))]),
    ]

    response = client.post(
        "/v1/loans/overdue",
        json={
            "loan_id": "loan-2",
            "item_id": "item-dvd",
            "user_id": "user-undergrad",
            "loan_date": "2026-01-10T10:00:00Z",
            "due_date": "2026-06-15T23:59:59Z",
            "checkout_service_point_id": "circ-desk",
            "system_time": "2026-06-18T12:00:00Z",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["overdue_minutes"] == 960
    assert data["overdue_fine_policy_id"] == "fine-dvd"
    assert float(data["fine_amount"]) == 1.0
    calendar_client.fetch_opening_days.assert_awaited_once()


def test_overdue_endpoint_not_yet_due(client: TestClient):
    response = client.post(
        "/v1/loans/overdue",
        json={
            "loan_id": "loan-1",
            "item_id": "item-book",
            "user_id": "user-undergrad",
            "loan_date": "2026-03-01T10:00:00Z",
            "due_date": "2026-03-22T10:00:00Z",
            "system_time": "2026-03-20T10:00:00Z",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["applicable"] is False
    assert data["overdue_minutes"] is None
    assert data["fine_amount"] is None


def test_overdue_endpoint_calendar_failure(client: TestClient, calendar_client):
    """Test a calendar outage while counting open time surfaces as 500"""
    calendar_client.fetch_opening_days.side_effect = StorageUnavailableError(
        "Timed out after 5.0s fetching /calendar/periods"
    )

    response = client.post(
        "/v1/loans/overdue",
        json={
            "loan_id": "loan-2",
            "item_id": "item-dvd",
            "user_id": "user-undergrad",
            "loan_date": "2026-01-10T10:00:00Z",
            "due_date": "2026-06-15T23:59:59Z",
            "checkout_service_point_id": "circ-desk",
            "system_time": "2026-06-18T12:00:00Z",
        },
    )

    assert response.status_code == 500
    assert response.json() == {
        "message": "Timed out after 5.0s fetching /calendar/periods",
        "parameters": {},
    }
    calendar_client.fetch_opening_days.assert_awaited_once()


def test_openapi_documents_error_body(client: TestClient):
    """Test v1 routes advertise the error body for 422 and 500"""
    schema = client.get("/openapi.json").json()

    responses = schema["paths"]["/v1/loans/overdue"]["post"]["responses"]
    assert responses["422"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
    assert responses["500"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
    assert set(schema["components"]["schemas"]["ErrorResponse"]["properties"]) == {"message", "parameters"}
