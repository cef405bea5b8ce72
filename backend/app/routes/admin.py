"""
routes/admin.py — Read-only dashboard statistics.

Endpoints (url_prefix=/api/v1/admin):
  GET /admin/stats → 200
"""

from __future__ import annotations

from flask import Blueprint, jsonify

from backend.app.extensions import db
from backend.app.services import admin_service

admin_bp = Blueprint("admin", __name__)


@admin_bp.route("/stats", methods=["GET"])
def stats():
    result = admin_service.get_admin_stats(session=db.session)
    return jsonify({"data": result, "warnings": []}), 200
