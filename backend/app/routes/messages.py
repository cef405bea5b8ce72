"""
routes/messages.py — Private messaging.

Endpoints (url_prefix=/api/v1/messages):
  POST /messages                                  → 201  send
  GET  /messages?user_id=&other_user_id=          → 200  messages, newest first
  GET  /messages/conversations?user_id=           → 200  one summary per counterpart
  POST /messages/:id/read                         → 200  mark one read (recipient only)
  POST /messages/read-all                         → 200  mark a whole thread read
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from backend.app.extensions import db
from backend.app.schemas.message_schema import (
    ConversationQuerySchema,
    MarkAllReadSchema,
    MarkReadSchema,
    MessageQuerySchema,
    SendMessageSchema,
)
from backend.app.services import message_service

messages_bp = Blueprint("messages", __name__)


@messages_bp.route("/", methods=["POST"])
def send_message():
    data = SendMessageSchema().load(request.get_json(force=True) or {})
    result = message_service.send_message(session=db.session, **data)
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@messages_bp.route("/", methods=["GET"])
def list_messages():
    args = MessageQuerySchema().load(request.args.to_dict())
    result = message_service.get_messages(
        user_id=args["user_id"],
        other_user_id=args["other_user_id"],
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@messages_bp.route("/conversations", methods=["GET"])
def list_conversations():
    args = ConversationQuerySchema().load(request.args.to_dict())
    result = message_service.get_conversations(user_id=args["user_id"], session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@messages_bp.route("/<int:message_id>/read", methods=["POST"])
def mark_read(message_id: int):
    data = MarkReadSchema().load(request.get_json(force=True) or {})
    message_service.mark_message_read(
        message_id=message_id,
        user_id=data["user_id"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": {"id": message_id, "is_read": True},
        "warnings": [],
    }), 200


@messages_bp.route("/read-all", methods=["POST"])
def mark_all_read():
    data = MarkAllReadSchema().load(request.get_json(force=True) or {})
    updated = message_service.mark_all_messages_read(session=db.session, **data)
    db.session.commit()
    return jsonify({"data": {"updated": updated}, "warnings": []}), 200
