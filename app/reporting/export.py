from __future__ import annotations

import csv
import os
import tempfile
from datetime import date, datetime
from decimal import Decimal

from flask import Response, current_app

from app.core.errors import NotFoundError
from app.core.models import utcnow
from app.core.turnaround import TurnaroundStatus
from app.core.utils import money_str
from app.records.services import RecordKind, list_records

CHUNK_SIZE = 64 * 1024


def _cell(record, name: str) -> str:
    value = getattr(record, name)
    if value is None:
        return ""
    if name == "is_fraud":
        return "YES" if value else "NO"
    if isinstance(value, TurnaroundStatus):
        return value.value
    if isinstance(value, Decimal):
        return money_str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def write_export_file(kind: RecordKind, records: list) -> str:
    export_dir = current_app.config.get("EXPORT_DIR") or None
    if export_dir:
        os.makedirs(export_dir, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        newline="",
        encoding="utf-8",
        prefix=f"{kind.key}-",
        suffix=".csv",
        dir=export_dir,
        delete=False,
    )
    with handle:
        writer = csv.writer(handle)
        writer.writerow([title for _, title in kind.columns])
        for record in records:
            writer.writerow([_cell(record, name) for name, _ in kind.columns])
    return handle.name


def _read_chunks(path: str):
    with open(path, "rb") as handle:
        for chunk in iter(lambda: handle.read(CHUNK_SIZE), b""):
            yield chunk


def _remove(path: str) -> None:
    if os.path.exists(path):
        os.remove(path)


def export_response(kind: RecordKind, filters: dict[str, str]) -> Response:
    records = list_records(kind, filters)
    if not records:
        raise NotFoundError(f"No {kind.label.lower()}s found for the specified filters")
    path = write_export_file(kind, records)
    filename = f"{kind.key}-{utcnow().strftime('%Y-%m-%dT%H-%M-%S')}.csv"
    current_app.logger.info("Exporting %s %s rows", len(records), kind.key)
    response = Response(
        _read_chunks(path),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
    # Runs once the response is closed, whether or not the body was read.
    response.call_on_close(lambda: _remove(path))
    return response
