from __future__ import annotations

from flask import request
from flask_login import login_required

from app.core.errors import envelope
from app.core.models import utcnow
from app.records.services import DOCUMENT_VERIFICATIONS, INSURANCE_CASES
from app.reporting import reporting_bp
from app.reporting.export import export_response
from app.reporting.services import (
    dashboard,
    document_verification_analytics,
    export_summary,
    insurance_case_analytics,
)


def _filters() -> dict[str, str]:
    return request.args.to_dict()


def _date_filter(filters: dict[str, str]) -> dict[str, str | None]:
    return {"start_date": filters.get("start_date"), "end_date": filters.get("end_date")}


def _analytics(data: dict[str, object], filters: dict[str, str]):
    return envelope(data, generated_at=utcnow().isoformat(), date_filter=_date_filter(filters))


@reporting_bp.get("/analytics/dashboard")
@login_required
def analytics_dashboard():
    filters = _filters()
    return _analytics(dashboard(filters), filters)


@reporting_bp.get("/analytics/insurance-cases")
@login_required
def analytics_insurance_cases():
    filters = _filters()
    return _analytics(insurance_case_analytics(filters), filters)


@reporting_bp.get("/analytics/document-verifications")
@login_required
def analytics_document_verifications():
    filters = _filters()
    return _analytics(document_verification_analytics(filters), filters)


@reporting_bp.get("/export/insurance-cases")
@login_required
def export_insurance_cases():
    return export_response(INSURANCE_CASES, _filters())


@reporting_bp.get("/export/document-verifications")
@login_required
def export_document_verifications():
    return export_response(DOCUMENT_VERIFICATIONS, _filters())


@reporting_bp.get("/export/summary")
@login_required
def export_summary_view():
    filters = _filters()
    data = export_summary(filters)
    data["date_filter"] = _date_filter(filters)
    return envelope(data)
