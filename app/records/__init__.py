from __future__ import annotations

from flask import Blueprint

records_bp = Blueprint("records", __name__, url_prefix="/api")

from app.records import routes  # noqa: E402,F401
