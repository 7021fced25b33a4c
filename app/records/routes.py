from __future__ import annotations

from flask import request
from flask_login import login_required

from app.core.errors import ValidationError, envelope, json_body
from app.records import records_bp
from app.records.services import (
    bulk_create,
    create_record,
    delete_record,
    import_csv,
    list_records,
    record_by_id,
    record_kind,
    update_record,
)

KIND = 'any("insurance-cases", "document-verifications"):kind_key'


@records_bp.get(f"/<{KIND}>")
@login_required
def list_view(kind_key: str):
    kind = record_kind(kind_key)
    records = list_records(kind, request.args.to_dict())
    return envelope([r.to_dict() for r in records], count=len(records))


@records_bp.get(f"/<{KIND}>/<int:record_id>")
@login_required
def detail_view(kind_key: str, record_id: int):
    kind = record_kind(kind_key)
    return envelope(record_by_id(kind, record_id).to_dict())


@records_bp.post(f"/<{KIND}>")
@login_required
def create_view(kind_key: str):
    kind = record_kind(kind_key)
    record = create_record(kind, json_body())
    return envelope(record.to_dict(), f"{kind.label} created successfully", 201)


@records_bp.put(f"/<{KIND}>/<int:record_id>")
@login_required
def update_view(kind_key: str, record_id: int):
    kind = record_kind(kind_key)
    record = update_record(kind, record_id, json_body())
    return envelope(record.to_dict(), f"{kind.label} updated successfully")


@records_bp.delete(f"/<{KIND}>/<int:record_id>")
@login_required
def delete_view(kind_key: str, record_id: int):
    kind = record_kind(kind_key)
    data = delete_record(kind, record_id)
    return envelope(data, f"{kind.label} deleted successfully")


@records_bp.post(f"/<{KIND}>/bulk")
@login_required
def bulk_view(kind_key: str):
    kind = record_kind(kind_key)
    rows = json_body().get(kind.bulk_key)
    if not isinstance(rows, list) or not rows:
        raise ValidationError(f"{kind.bulk_key.capitalize()} array is required and must not be empty")
    result = bulk_create(kind, rows)
    return envelope(
        result.as_dict(),
        f"Bulk creation completed: {len(result.created)} successful, {len(result.errors)} failed",
        201,
    )


@records_bp.post(f"/<{KIND}>/import")
@login_required
def import_view(kind_key: str):
    kind = record_kind(kind_key)
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        raise ValidationError("A CSV file is required in the 'file' field")
    try:
        text = upload.read().decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValidationError("CSV file must be UTF-8 encoded") from exc
    result = import_csv(kind, text)
    return envelope(
        result.as_dict(),
        f"Import completed: {len(result.created)} successful, {len(result.errors)} failed",
        201,
    )
