from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from app.core.errors import ValidationError
from app.core.models import DocumentVerification, InsuranceCase
from app.core.turnaround import TurnaroundStatus, derive
from app.core.utils import money, money_str, parse_optional_date, percentage


@pytest.mark.parametrize(
    ("received", "closed", "expected_days", "tat", "status"),
    [
        (date(2024, 1, 15), date(2024, 1, 22), 7, 7, TurnaroundStatus.ON_TIME),
        (date(2024, 1, 15), date(2024, 1, 25), 7, 10, TurnaroundStatus.EXCEEDED),
        (date(2024, 1, 15), None, 7, 0, TurnaroundStatus.PENDING),
        (None, date(2024, 1, 15), 7, 0, TurnaroundStatus.PENDING),
        (date(2024, 3, 1), date(2024, 3, 1), 5, 0, TurnaroundStatus.ON_TIME),
        (date(2024, 3, 1), date(2024, 3, 6), 5, 5, TurnaroundStatus.ON_TIME),
        (date(2024, 3, 1), date(2024, 3, 7), 5, 6, TurnaroundStatus.EXCEEDED),
    ],
)
def test_derive_turnaround(received, closed, expected_days, tat, status):
    assert derive(received, closed, expected_days) == (tat, status)


def test_derive_spans_month_and_leap_day():
    assert derive(date(2024, 2, 27), date(2024, 3, 2), 7) == (4, TurnaroundStatus.ON_TIME)


def test_refresh_turnaround_applies_default_expected_days():
    case = InsuranceCase(agent_name="A", insured_name="B", date_received=date(2024, 1, 1), date_closed=date(2024, 1, 8))
    case.refresh_turnaround()
    assert case.expected_days == 7
    assert case.turn_around_time == 7
    assert case.case_status is TurnaroundStatus.ON_TIME

    verification = DocumentVerification(
        agent_name="A",
        applicant_name="B",
        document_type="Passport",
        country="Ghana",
        date_received=date(2024, 1, 1),
        date_closed=date(2024, 1, 8),
    )
    verification.refresh_turnaround()
    assert verification.expected_days == 5
    assert verification.turn_around_status is TurnaroundStatus.EXCEEDED


def test_refresh_turnaround_rejects_closed_before_received():
    case = InsuranceCase(date_received=date(2024, 1, 10), date_closed=date(2024, 1, 9))
    with pytest.raises(ValidationError):
        case.refresh_turnaround()


def test_fraud_fields_cleared_when_not_fraud():
    case = InsuranceCase(is_fraud=False, fraud_type="Forged document", fraud_source="Hospital")
    case.refresh_turnaround()
    assert case.fraud_type is None
    assert case.fraud_source is None


def test_expected_days_must_be_positive():
    with pytest.raises(ValidationError):
        InsuranceCase(expected_days=0)


def test_payment_status_is_normalized():
    assert DocumentVerification(payment_status=" paid ").payment_status == "PAID"
    assert DocumentVerification(payment_status="  ").payment_status is None


def test_money_helpers():
    assert money(None) == Decimal("0.00")
    assert money("10.005") == Decimal("10.01")
    assert money_str(Decimal("75.5")) == "75.50"
    assert percentage(1, 3) == 33.33
    assert percentage(5, 0) == 0.0


def test_parse_optional_date_formats():
    assert parse_optional_date("2024-01-15", "date_received") == date(2024, 1, 15)
    assert parse_optional_date("2024-01-15T00:00:00Z", "date_received") == date(2024, 1, 15)
    assert parse_optional_date("01/25/2024", "date_closed") == date(2024, 1, 25)
    assert parse_optional_date("03/04/2024", "date_closed") == date(2024, 3, 4)
    assert parse_optional_date("  ", "date_closed") is None
    with pytest.raises(ValidationError, match="YYYY-MM-DD or MM/DD/YYYY"):
        parse_optional_date("25/01/2024", "date_closed")
    with pytest.raises(ValueError):
        parse_optional_date("not a date", "date_closed")
