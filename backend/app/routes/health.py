"""routes/health.py — Liveness probe: GET /health → 200 {"data": {"status": "ok", ...}}."""

from __future__ import annotations

from datetime import datetime, timezone

from flask import Blueprint, jsonify

health_bp = Blueprint("health", __name__)


@health_bp.route("/health", methods=["GET"])
def health():
    return jsonify({
        "data": {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        "warnings": [],
    }), 200
