"""
routes/groups.py — Group and membership route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (url_prefix=/api/v1/groups):
  POST   /groups                        → 201  create group
  GET    /groups/:id                    → 200  get group
  GET    /groups/:id/members            → 200  list members in join order
  POST   /groups/:id/members            → 201  join group
  DELETE /groups/:id/members/:uid       → 200  leave group
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from backend.app.extensions import db
from backend.app.schemas.group_schema import CreateGroupSchema, JoinGroupSchema
from backend.app.services import group_service, membership_service
from backend.app.services.unit_of_work import unit_of_work

groups_bp = Blueprint("groups", __name__)


@groups_bp.route("/", methods=["POST"])
def create_group():
    """POST /groups — Create a new group. The owner becomes its first admin member."""
    data = CreateGroupSchema().load(request.get_json(force=True) or {})
    result = group_service.create_group(
        owner_id=data["owner_id"],
        name=data["name"],
        description=data["description"],
        is_private=data["is_private"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@groups_bp.route("/<int:group_id>", methods=["GET"])
def get_group(group_id: int):
    result = group_service.get_group(group_id=group_id, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@groups_bp.route("/<int:group_id>/members", methods=["GET"])
def list_members(group_id: int):
    result = group_service.list_group_members(group_id=group_id, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@groups_bp.route("/<int:group_id>/members", methods=["POST"])
def join_group(group_id: int):
    """POST /groups/:id/members — Body: {"user_id": <id>}. Joins as a regular member."""
    data = JoinGroupSchema().load(request.get_json(force=True) or {})
    result = membership_service.join_group(
        group_id=group_id,
        user_id=data["user_id"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@groups_bp.route("/<int:group_id>/members/<int:target_uid>", methods=["DELETE"])
def leave_group(group_id: int, target_uid: int):
    """
    DELETE /groups/:id/members/:uid — The user leaves the group.

    When the owner leaves, ownership moves to a successor in the same
    transaction; the group is deleted if nobody is left.
    """
    with unit_of_work(db.session):
        membership_service.leave_group(
            group_id=group_id,
            user_id=target_uid,
            session=db.session,
        )
    return jsonify({
        "data": {
            "removed": True,
            "group_id": group_id,
            "user_id": target_uid,
        },
        "warnings": [],
    }), 200
