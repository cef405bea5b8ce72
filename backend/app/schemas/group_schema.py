"""
schemas/group_schema.py — Marshmallow schemas for group and membership endpoints.

Validation responsibility:
  - This file: field types, string lengths, non-empty checks (including trim).
  - services/membership_service.py:
      - USER_NOT_FOUND / GROUP_NOT_FOUND (require DB lookups)
      - ALREADY_MEMBER / NOT_A_MEMBER  (membership existence requires DB lookup)

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from backend.app.schemas.user_schema import validate_non_empty_after_trim


class CreateGroupSchema(Schema):
    """
    POST /groups

    name: non-empty after trim, max 100 chars (mirrors the DB CHECK).
    owner_id: the creating user, who becomes owner and first admin member.
    """

    owner_id = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1, error="owner_id must be a positive integer."),
    )
    name = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Group name must be between 1 and 100 characters.",
            ),
            validate_non_empty_after_trim,
        ],
    )
    description = fields.Str(allow_none=True, load_default=None)
    is_private = fields.Bool(load_default=False)


class JoinGroupSchema(Schema):
    """POST /groups/:id/members — the user joining."""

    # Must be a positive integer. Whether the user exists is a DB concern
    # (USER_NOT_FOUND, 404) — checked in membership_service.py.
    user_id = fields.Int(
        required=True,
        strict=True,  # reject floats like 1.0 — integers only
        validate=validate.Range(
            min=1,
            error="user_id must be a positive integer.",
        ),
    )
