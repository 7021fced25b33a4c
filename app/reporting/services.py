from __future__ import annotations

from decimal import Decimal

from sqlalchemy import case, func
from sqlalchemy.orm import Query

from app.core.turnaround import TurnaroundStatus
from app.core.utils import money, money_str, percentage, round2
from app.records.services import DOCUMENT_VERIFICATIONS, INSURANCE_CASES, RecordKind, filtered_query


def _completed_tat(model):
    # Average turnaround only over closed rows; pending rows carry 0.
    return func.avg(case((model.date_closed.isnot(None), model.turn_around_time)))


def _key(value):
    return value.value if isinstance(value, TurnaroundStatus) else value


def grouped_counts(query: Query, column, name: str) -> list[dict[str, object]]:
    count = func.count()
    rows = query.with_entities(column, count).group_by(column).order_by(count.desc()).all()
    return [{name: _key(value), "count": total} for value, total in rows]


def overview(kind: RecordKind, query: Query) -> dict[str, object]:
    model = kind.model
    total, completed, avg_tat, on_time, fees, paid = query.with_entities(
        func.count(model.id),
        func.count(model.date_closed),
        _completed_tat(model),
        func.sum(case((kind.status_column == TurnaroundStatus.ON_TIME, 1), else_=0)),
        func.sum(model.processing_fee),
        func.sum(model.amount_paid),
    ).one()
    fees = money(fees)
    paid = money(paid)
    return {
        "total": total,
        "completed": completed,
        "pending": total - completed,
        "completion_rate": percentage(completed, total),
        "average_turnaround_time": round2(avg_tat),
        "on_time_percentage": percentage(on_time or 0, completed),
        "total_processing_fees": fees,
        "total_amount_paid": paid,
    }


def _financial(stats: dict[str, object]) -> dict[str, str]:
    fees: Decimal = stats["total_processing_fees"]
    paid: Decimal = stats["total_amount_paid"]
    return {
        "total_processing_fees": money_str(fees),
        "total_amount_paid": money_str(paid),
        "combined_total": money_str(fees + paid),
        "net_revenue": money_str(fees - paid),
    }


def _headline(stats: dict[str, object]) -> dict[str, object]:
    return {k: v for k, v in stats.items() if k not in ("total_processing_fees", "total_amount_paid")}


def agent_performance(kind: RecordKind, query: Query) -> list[dict[str, object]]:
    model = kind.model
    count = func.count(model.id)
    rows = (
        query.with_entities(model.agent_name, count, func.count(model.date_closed), _completed_tat(model))
        .group_by(model.agent_name)
        .order_by(count.desc())
        .all()
    )
    return [
        {
            "agent_name": agent,
            "total": total,
            "completed": completed,
            "completion_rate": percentage(completed, total),
            "average_turnaround_time": round2(avg_tat),
        }
        for agent, total, completed, avg_tat in rows
    ]


def _fraud_rate_by(query: Query, column, name: str, with_turnaround: bool = False) -> list[dict[str, object]]:
    model = INSURANCE_CASES.model
    count = func.count(model.id)
    fraud = func.sum(case((model.is_fraud.is_(True), 1), else_=0))
    entities = [column, count, fraud]
    if with_turnaround:
        entities.append(_completed_tat(model))
    rows = query.with_entities(*entities).group_by(column).order_by(count.desc()).all()
    result = []
    for row in rows:
        item = {
            name: row[0],
            "total": row[1],
            "fraud_cases": row[2] or 0,
            "fraud_rate": percentage(row[2] or 0, row[1]),
        }
        if with_turnaround:
            item["average_turnaround_time"] = round2(row[3])
        result.append(item)
    return result


def insurance_case_analytics(filters: dict[str, str]) -> dict[str, object]:
    kind = INSURANCE_CASES
    model = kind.model
    query = filtered_query(kind, filters)
    stats = overview(kind, query)
    fraud_cases = query.filter(model.is_fraud.is_(True)).count()
    return {
        "overview": _headline(stats),
        "financial_metrics": _financial(stats),
        "fraud_analysis": {
            "total_fraud_cases": fraud_cases,
            "non_fraud_cases": stats["total"] - fraud_cases,
            "fraud_rate_percentage": percentage(fraud_cases, stats["total"]),
            "by_flag": grouped_counts(query, model.is_fraud, "is_fraud"),
            "by_fraud_type": grouped_counts(query, model.fraud_type, "fraud_type"),
            "by_fraud_source": grouped_counts(query, model.fraud_source, "fraud_source"),
            "by_insurance_company": _fraud_rate_by(query, model.insurance_company, "insurance_company"),
        },
        "geographical_distribution": grouped_counts(query, model.country, "country"),
        "case_type_distribution": grouped_counts(query, model.case_type, "case_type"),
        "status_distribution": grouped_counts(query, model.case_status, "case_status"),
        "agent_performance": agent_performance(kind, query),
        "country_risk": _fraud_rate_by(query, model.country, "country", with_turnaround=True),
    }


def outstanding_payments(query: Query) -> dict[str, object]:
    model = DOCUMENT_VERIFICATIONS.model
    count, amount = (
        query.filter(model.payment_status.isnot(None), model.payment_status != "PAID")
        .with_entities(func.count(model.id), func.sum(model.total))
        .one()
    )
    return {"count": count, "amount": money_str(amount)}


def document_verification_analytics(filters: dict[str, str]) -> dict[str, object]:
    kind = DOCUMENT_VERIFICATIONS
    model = kind.model
    query = filtered_query(kind, filters)
    stats = overview(kind, query)
    financial = _financial(stats)
    financial["outstanding_payments"] = outstanding_payments(query)
    return {
        "overview": _headline(stats),
        "financial_metrics": financial,
        "document_type_distribution": grouped_counts(query, model.document_type, "document_type"),
        "geographical_distribution": grouped_counts(query, model.country, "country"),
        "status_distribution": grouped_counts(query, model.turn_around_status, "turn_around_status"),
        "payment_status_distribution": grouped_counts(query, model.payment_status, "payment_status"),
        "agent_performance": agent_performance(kind, query),
    }


def dashboard(filters: dict[str, str]) -> dict[str, object]:
    cases_query = filtered_query(INSURANCE_CASES, filters)
    verifications_query = filtered_query(DOCUMENT_VERIFICATIONS, filters)
    cases = overview(INSURANCE_CASES, cases_query)
    verifications = overview(DOCUMENT_VERIFICATIONS, verifications_query)
    fraud_cases = cases_query.filter(INSURANCE_CASES.model.is_fraud.is_(True)).count()

    fees = cases["total_processing_fees"] + verifications["total_processing_fees"]
    paid = cases["total_amount_paid"] + verifications["total_amount_paid"]
    return {
        "summary": {
            "total_records": cases["total"] + verifications["total"],
            "total_completed": cases["completed"] + verifications["completed"],
            "total_pending": cases["pending"] + verifications["pending"],
        },
        "insurance_cases": _headline(cases)
        | {"fraud_cases": fraud_cases, "fraud_rate": percentage(fraud_cases, cases["total"])},
        "document_verifications": _headline(verifications),
        "financial_overview": {
            "total_processing_fees": money_str(fees),
            "total_agent_payments": money_str(paid),
            "net_revenue": money_str(fees - paid),
        },
    }


def export_summary(filters: dict[str, str]) -> dict[str, object]:
    return {
        "available_exports": {
            kind.key.replace("-", "_"): {
                "total_records": filtered_query(kind, filters).count(),
                "endpoint": f"/api/export/{kind.key}",
            }
            for kind in (INSURANCE_CASES, DOCUMENT_VERIFICATIONS)
        },
        "supported_filters": [
            "start_date (YYYY-MM-DD)",
            "end_date (YYYY-MM-DD)",
            "agent_name",
            "country",
            "case_status (for insurance cases)",
            "case_type (for insurance cases)",
            "document_type (for document verifications)",
            "turn_around_status (for document verifications)",
            "payment_status (for document verifications)",
        ],
    }
