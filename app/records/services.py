from __future__ import annotations

import csv
from dataclasses import dataclass, field
from io import StringIO

from flask import current_app
from pydantic import BaseModel, ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query

from app.core.errors import NotFoundError, ValidationError, schema_error_message
from app.core.extensions import db
from app.core.models import DocumentVerification, InsuranceCase
from app.core.turnaround import TurnaroundStatus
from app.core.utils import money, parse_optional_date
from app.records.schemas import DocumentVerificationFields, InsuranceCaseFields

PROTECTED_FIELDS = ("id", "turn_around_time", "case_status", "turn_around_status", "created_at", "updated_at")


@dataclass(frozen=True)
class RecordKind:
    key: str
    label: str
    model: type
    schema: type[BaseModel]
    bulk_key: str
    required: tuple[str, ...]
    type_field: str
    columns: tuple[tuple[str, str], ...]
    import_aliases: dict[str, str] = field(default_factory=dict)

    @property
    def status_column(self):
        return getattr(self.model, self.model.status_field)


INSURANCE_CASES = RecordKind(
    key="insurance-cases",
    label="Insurance case",
    model=InsuranceCase,
    schema=InsuranceCaseFields,
    bulk_key="cases",
    required=("agent_name", "insured_name"),
    type_field="case_type",
    columns=(
        ("id", "ID"),
        ("agent_name", "AGENT NAME"),
        ("insured_name", "INSURED NAME"),
        ("country", "COUNTRY"),
        ("date_received", "DATE RECEIVED"),
        ("date_closed", "DATE CLOSED"),
        ("turn_around_time", "TURN AROUND TIME"),
        ("case_status", "CASE STATUS"),
        ("expected_days", "EXPECTED DAYS"),
        ("policy_number", "POLICY NUMBER"),
        ("case_type", "CASE TYPE"),
        ("insurance_company", "INSURANCE COMPANY"),
        ("processing_fee", "PROCESSING FEE"),
        ("amount_paid", "AMOUNT PAID"),
        ("is_fraud", "IS FRAUD"),
        ("fraud_type", "FRAUD TYPE"),
        ("comment", "COMMENT"),
        ("fraud_source", "FRAUD SOURCE"),
        ("created_at", "CREATED AT"),
        ("updated_at", "UPDATED AT"),
    ),
)

DOCUMENT_VERIFICATIONS = RecordKind(
    key="document-verifications",
    label="Document verification",
    model=DocumentVerification,
    schema=DocumentVerificationFields,
    bulk_key="verifications",
    required=("agent_name", "applicant_name", "document_type", "country"),
    type_field="document_type",
    columns=(
        ("id", "ID"),
        ("agent_name", "AGENT NAME"),
        ("ars_number", "ARS NUMBER"),
        ("check_id", "CHECK ID"),
        ("applicant_name", "APPLICANT NAME"),
        ("document_type", "DOCUMENT TYPE"),
        ("country", "COUNTRY"),
        ("region_town", "REGION_TOWN"),
        ("date_received", "DATE RECEIVED"),
        ("date_closed", "DATE CLOSED"),
        ("turn_around_time", "TURN AROUND TIME"),
        ("turn_around_status", "TURN AROUND STATUS"),
        ("expected_days", "EXPECTED DAYS"),
        ("processing_fee", "PROCESSING FEE"),
        ("amount_paid", "AGENT AMOUNT PAID"),
        ("total", "TOTAL"),
        ("payment_status", "PAYMENT STATUS"),
        ("created_at", "CREATED AT"),
        ("updated_at", "UPDATED AT"),
    ),
    import_aliases={"AMOUNT PAID": "amount_paid", "agent_amount_paid": "amount_paid"},
)

RECORD_KINDS: dict[str, RecordKind] = {kind.key: kind for kind in (INSURANCE_CASES, DOCUMENT_VERIFICATIONS)}


@dataclass
class BulkResult:
    created: list[dict[str, object]] = field(default_factory=list)
    errors: list[dict[str, object]] = field(default_factory=list)

    @property
    def total_processed(self) -> int:
        return len(self.created) + len(self.errors)

    def as_dict(self) -> dict[str, object]:
        return {
            "created": self.created,
            "errors": self.errors,
            "total_processed": self.total_processed,
            "successful": len(self.created),
            "failed": len(self.errors),
        }


def record_kind(key: str) -> RecordKind:
    kind = RECORD_KINDS.get((key or "").strip().lower())
    if kind is None:
        raise NotFoundError("Endpoint not found")
    return kind


def _validated_fields(kind: RecordKind, payload: dict[str, object], partial: bool) -> dict[str, object]:
    if not isinstance(payload, dict):
        raise ValidationError(f"{kind.label} payload must be an object")
    cleaned = {k: v for k, v in payload.items() if k not in PROTECTED_FIELDS}
    try:
        fields = kind.schema.model_validate(cleaned)
    except SchemaValidationError as exc:
        raise ValidationError(schema_error_message(exc)) from exc
    return fields.model_dump(exclude_unset=partial)


def _assign(record, kind: RecordKind, values: dict[str, object]) -> None:
    for name, value in values.items():
        if name in ("processing_fee", "amount_paid", "total"):
            value = money(value)
        elif name == "is_fraud":
            value = bool(value)
        setattr(record, name, value)
    missing = [name for name in kind.required if not getattr(record, name, None)]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")
    record.refresh_turnaround()


def create_record(kind: RecordKind, payload: dict[str, object]):
    values = _validated_fields(kind, payload, partial=False)
    record = kind.model()
    if kind is DOCUMENT_VERIFICATIONS and values.get("total") is None:
        values["total"] = money(values.get("processing_fee")) + money(values.get("amount_paid"))
    _assign(record, kind, values)
    db.session.add(record)
    db.session.commit()
    current_app.logger.info("%s %s created (%s)", kind.label, record.id, record.status.value)
    return record


def filtered_query(kind: RecordKind, filters: dict[str, str]) -> Query:
    model = kind.model
    query = model.query
    start_date = parse_optional_date(filters.get("start_date"), "start_date")
    end_date = parse_optional_date(filters.get("end_date"), "end_date")
    if start_date:
        query = query.filter(model.date_received >= start_date)
    if end_date:
        query = query.filter(model.date_received <= end_date)
    for name in ("agent_name", "country"):
        value = (filters.get(name) or "").strip()
        if value:
            query = query.filter(getattr(model, name).ilike(f"%{value}%"))
    type_value = (filters.get(kind.type_field) or "").strip()
    if type_value:
        query = query.filter(getattr(model, kind.type_field).ilike(f"%{type_value}%"))
    status_value = (filters.get(model.status_field) or filters.get("status") or "").strip()
    if status_value:
        try:
            query = query.filter(kind.status_column == TurnaroundStatus(status_value))
        except ValueError as exc:
            raise ValidationError(f"Invalid {model.status_field}: {status_value}") from exc
    if kind is DOCUMENT_VERIFICATIONS:
        payment_status = (filters.get("payment_status") or "").strip().upper()
        if payment_status:
            query = query.filter(model.payment_status == payment_status)
    return query


def list_records(kind: RecordKind, filters: dict[str, str]) -> list:
    return filtered_query(kind, filters).order_by(kind.model.created_at.desc(), kind.model.id.desc()).all()


def record_by_id(kind: RecordKind, record_id: int):
    record = db.session.get(kind.model, record_id)
    if record is None:
        raise NotFoundError(f"{kind.label} not found")
    return record


def update_record(kind: RecordKind, record_id: int, payload: dict[str, object]):
    record = record_by_id(kind, record_id)
    values = _validated_fields(kind, payload, partial=True)
    if not values:
        raise ValidationError("No valid fields to update")
    try:
        _assign(record, kind, values)
        db.session.commit()
    except ValueError:
        db.session.rollback()
        raise
    current_app.logger.info("%s %s updated (%s)", kind.label, record.id, record.status.value)
    return record


def delete_record(kind: RecordKind, record_id: int) -> dict[str, object]:
    record = record_by_id(kind, record_id)
    data = record.to_dict()
    db.session.delete(record)
    db.session.commit()
    current_app.logger.info("%s %s deleted", kind.label, record_id)
    return data


def bulk_create(kind: RecordKind, rows: list[dict[str, object]]) -> BulkResult:
    # Rows are independent: a failing row is rolled back on its own and the
    # rest of the batch carries on.
    result = BulkResult()
    for index, row in enumerate(rows):
        try:
            record = create_record(kind, row)
        except (ValueError, SQLAlchemyError) as exc:
            db.session.rollback()
            result.errors.append({"index": index, "record": row, "error": str(exc)})
            continue
        result.created.append(record.to_dict())
    current_app.logger.info(
        "%s bulk create: %s successful, %s failed",
        kind.label,
        len(result.created),
        len(result.errors),
    )
    return result


def _import_header_map(kind: RecordKind) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for name, title in kind.columns:
        mapping[title.upper()] = name
        mapping[name.upper()] = name
    for alias, name in kind.import_aliases.items():
        mapping[alias.upper()] = name
    return mapping


def parse_import_rows(kind: RecordKind, text: str) -> list[dict[str, object]]:
    reader = csv.DictReader(StringIO(text))
    if not reader.fieldnames:
        raise ValidationError("CSV file has no header row")
    header_map = _import_header_map(kind)
    rows = []
    for raw in reader:
        row: dict[str, object] = {}
        for header, value in raw.items():
            name = header_map.get((header or "").strip().upper())
            if name and value is not None and value.strip():
                row[name] = value.strip()
        if row:
            rows.append(row)
    return rows


def import_csv(kind: RecordKind, text: str) -> BulkResult:
    rows = parse_import_rows(kind, text)
    if not rows:
        raise ValidationError("CSV file contains no records")
    result = bulk_create(kind, rows)
    # Report CSV line numbers (header is line 1).
    for error in result.errors:
        error["row"] = int(error["index"]) + 2
    return result
