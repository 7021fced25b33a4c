from __future__ import annotations

from app.core.extensions import db
from app.core.models import DocumentVerification, InsuranceCase


def test_insurance_case_analytics(client, auth_headers):
    response = client.get("/api/analytics/insurance-cases", headers=auth_headers)
    body = response.get_json()
    assert response.status_code == 200
    assert body["generated_at"]
    assert body["date_filter"] == {"start_date": None, "end_date": None}

    data = body["data"]
    assert data["overview"] == {
        "total": 3,
        "completed": 2,
        "pending": 1,
        "completion_rate": 66.67,
        "average_turnaround_time": 8.5,
        "on_time_percentage": 50.0,
    }
    assert data["financial_metrics"]["total_processing_fees"] == "470.00"
    assert data["financial_metrics"]["total_amount_paid"] == "125.50"
    assert data["financial_metrics"]["combined_total"] == "595.50"

    fraud = data["fraud_analysis"]
    assert fraud["total_fraud_cases"] == 1
    assert fraud["non_fraud_cases"] == 2
    assert fraud["fraud_rate_percentage"] == 33.33
    assert fraud["by_fraud_type"][0] == {"fraud_type": None, "count": 2}
    star = next(row for row in fraud["by_insurance_company"] if row["insurance_company"] == "Star Assurance")
    assert star["fraud_rate"] == 50.0

    assert data["geographical_distribution"][0] == {"country": "Ghana", "count": 2}
    grace = next(row for row in data["agent_performance"] if row["agent_name"] == "Grace Mensah")
    assert grace == {
        "agent_name": "Grace Mensah",
        "total": 2,
        "completed": 2,
        "completion_rate": 100.0,
        "average_turnaround_time": 8.5,
    }
    ghana = next(row for row in data["country_risk"] if row["country"] == "Ghana")
    assert ghana["fraud_rate"] == 50.0


def test_group_counts_sum_to_total(client, app, auth_headers):
    with app.app_context():
        case = InsuranceCase(agent_name="No Country", insured_name="X")
        case.refresh_turnaround()
        db.session.add(case)
        db.session.commit()

    data = client.get("/api/analytics/insurance-cases", headers=auth_headers).get_json()["data"]
    total = data["overview"]["total"]
    for key in ("geographical_distribution", "case_type_distribution", "status_distribution", "agent_performance"):
        counted = sum(row.get("count", row.get("total", 0)) for row in data[key])
        assert counted == total, key
    assert {"country": None, "count": 1} in data["geographical_distribution"]
    for key in ("by_flag", "by_fraud_type", "by_fraud_source"):
        assert sum(row["count"] for row in data["fraud_analysis"][key]) == total


def test_document_verification_analytics(client, auth_headers):
    data = client.get("/api/analytics/document-verifications", headers=auth_headers).get_json()["data"]
    assert data["overview"]["total"] == 2
    assert data["overview"]["completed"] == 1
    assert data["overview"]["on_time_percentage"] == 100.0
    assert data["overview"]["average_turnaround_time"] == 3.0
    financial = data["financial_metrics"]
    assert financial["total_processing_fees"] == "175.00"
    assert financial["total_amount_paid"] == "30.00"
    assert financial["net_revenue"] == "145.00"
    assert financial["outstanding_payments"] == {"count": 1, "amount": "95.00"}
    statuses = {row["payment_status"]: row["count"] for row in data["payment_status_distribution"]}
    assert statuses == {"PAID": 1, "UNPAID": 1}


def test_dashboard_combines_both_record_types(client, auth_headers):
    data = client.get("/api/analytics/dashboard", headers=auth_headers).get_json()["data"]
    assert data["summary"] == {"total_records": 5, "total_completed": 3, "total_pending": 2}
    assert data["insurance_cases"]["fraud_cases"] == 1
    assert data["insurance_cases"]["fraud_rate"] == 33.33
    assert data["document_verifications"]["completion_rate"] == 50.0
    assert data["financial_overview"] == {
        "total_processing_fees": "645.00",
        "total_agent_payments": "155.50",
        "net_revenue": "489.50",
    }


def test_date_filter_is_inclusive(client, auth_headers):
    response = client.get(
        "/api/analytics/insurance-cases?start_date=2024-01-15&end_date=2024-01-15",
        headers=auth_headers,
    )
    body = response.get_json()
    assert body["data"]["overview"]["total"] == 2
    assert body["date_filter"] == {"start_date": "2024-01-15", "end_date": "2024-01-15"}


def test_empty_filter_set_reports_zeros(client, app, auth_headers):
    with app.app_context():
        DocumentVerification.query.delete()
        db.session.commit()

    data = client.get("/api/analytics/document-verifications", headers=auth_headers).get_json()["data"]
    assert data["overview"] == {
        "total": 0,
        "completed": 0,
        "pending": 0,
        "completion_rate": 0.0,
        "average_turnaround_time": 0.0,
        "on_time_percentage": 0.0,
    }
    assert data["financial_metrics"]["outstanding_payments"] == {"count": 0, "amount": "0.00"}
    assert data["agent_performance"] == []

    response = client.get("/api/analytics/insurance-cases?start_date=2030-01-01", headers=auth_headers)
    assert response.get_json()["data"]["overview"]["completion_rate"] == 0.0


def test_invalid_filter_date_is_rejected(client, auth_headers):
    response = client.get("/api/analytics/dashboard?start_date=someday", headers=auth_headers)
    assert response.status_code == 400
