"""
routes/users.py — User account route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (url_prefix=/api/v1/users):
  POST   /users               → 201  create user
  GET    /users               → 200  list users, newest first
  GET    /users/:id           → 200  get user
  PATCH  /users/:id           → 200  partial update
  DELETE /users/:id           → 200  deactivate user + cascade (admin only)
  GET    /users/:id/groups    → 200  groups the user belongs to
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from backend.app.extensions import db
from backend.app.schemas.user_schema import (
    CreateUserSchema,
    DeleteUserSchema,
    UpdateUserSchema,
)
from backend.app.services import group_service, user_service
from backend.app.services.unit_of_work import unit_of_work

users_bp = Blueprint("users", __name__)


@users_bp.route("/", methods=["POST"])
def create_user():
    """POST /users — Register a user. Returns the user without password data."""
    data = CreateUserSchema().load(request.get_json(force=True) or {})
    result = user_service.create_user(session=db.session, **data)
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@users_bp.route("/", methods=["GET"])
def list_users():
    result = user_service.list_users(session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<int:user_id>", methods=["GET"])
def get_user(user_id: int):
    result = user_service.get_user(user_id=user_id, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<int:user_id>", methods=["PATCH"])
def update_user(user_id: int):
    """PATCH /users/:id — Only the fields present in the body change."""
    changes = UpdateUserSchema().load(request.get_json(force=True) or {})
    result = user_service.update_user(
        user_id=user_id,
        changes=changes,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<int:user_id>", methods=["DELETE"])
def delete_user(user_id: int):
    """
    DELETE /users/:id — Body: {"admin_id": <id>}.

    Deactivates the user, hands off or deletes their groups, removes their
    memberships and messages. All of it commits together or not at all.
    """
    data = DeleteUserSchema().load(request.get_json(force=True) or {})
    with unit_of_work(db.session):
        user_service.delete_user(
            target_user_id=user_id,
            acting_admin_id=data["admin_id"],
            session=db.session,
        )
    return jsonify({
        "data": {
            "deleted": True,
            "user_id": user_id,
        },
        "warnings": [],
    }), 200


@users_bp.route("/<int:user_id>/groups", methods=["GET"])
def list_user_groups(user_id: int):
    result = group_service.list_user_groups(user_id=user_id, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200
