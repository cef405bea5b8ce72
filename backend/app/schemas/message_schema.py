"""
schemas/message_schema.py — Marshmallow schemas for private messaging.

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from backend.app.schemas.user_schema import validate_non_empty_after_trim


class SendMessageSchema(Schema):
    """POST /messages"""

    sender_id = fields.Int(required=True, strict=True, validate=validate.Range(min=1))
    recipient_id = fields.Int(required=True, strict=True, validate=validate.Range(min=1))
    content = fields.Str(
        required=True,
        validate=[validate.Length(min=1), validate_non_empty_after_trim],
    )


class MessageQuerySchema(Schema):
    """GET /messages?user_id=&other_user_id= (query string, non-strict ints)"""

    user_id = fields.Int(required=True, validate=validate.Range(min=1))
    other_user_id = fields.Int(load_default=None, validate=validate.Range(min=1))


class ConversationQuerySchema(Schema):
    """GET /messages/conversations?user_id="""

    user_id = fields.Int(required=True, validate=validate.Range(min=1))


class MarkReadSchema(Schema):
    """POST /messages/:id/read — must be the recipient."""

    user_id = fields.Int(required=True, strict=True, validate=validate.Range(min=1))


class MarkAllReadSchema(Schema):
    """POST /messages/read-all"""

    sender_id = fields.Int(required=True, strict=True, validate=validate.Range(min=1))
    recipient_id = fields.Int(required=True, strict=True, validate=validate.Range(min=1))
