from __future__ import annotations

from flask import Blueprint

reporting_bp = Blueprint("reporting", __name__, url_prefix="/api")

from app.reporting import routes  # noqa: E402,F401
