"""
schemas/user_schema.py — Marshmallow schemas for user endpoints.

Validation responsibility:
  - This file: field types, lengths, email format, role enum, trim checks.
  - services/user_service.py: DUPLICATE_EMAIL (needs a DB lookup), admin
    authorization for delete.

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate

from backend.app.models.user import UserRole


def validate_non_empty_after_trim(value: str) -> None:
    """
    Raises ValidationError if the string is blank or contains only whitespace.
    Mirrors the DB CHECK(LENGTH(TRIM(...)) > 0) constraints at the API layer.
    """
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


_ROLE_VALUES = [role.value for role in UserRole]


def _name_field(required: bool) -> fields.Str:
    return fields.Str(
        required=required,
        validate=[
            validate.Length(min=1, max=100),
            validate_non_empty_after_trim,
        ],
    )


class CreateUserSchema(Schema):
    """
    POST /users

    password: min 6 chars. Stored only as a bcrypt hash.
    graduation_year applies to students/alumni, department to teachers;
    neither is cross-checked against the role.
    """

    email = fields.Email(
        required=True,
        validate=validate.Length(max=255),
    )
    password = fields.Str(
        required=True,
        load_only=True,
        validate=validate.Length(min=6, error="Password must be at least 6 characters long."),
    )
    first_name = _name_field(required=True)
    last_name = _name_field(required=True)
    role = fields.Str(
        required=True,
        validate=validate.OneOf(_ROLE_VALUES, error="role must be one of: admin, student, teacher, alumni."),
    )
    profile_picture = fields.Str(allow_none=True, load_default=None)
    bio = fields.Str(allow_none=True, load_default=None)
    graduation_year = fields.Int(
        allow_none=True,
        load_default=None,
        strict=True,
        validate=validate.Range(min=1900, max=2200),
    )
    department = fields.Str(allow_none=True, load_default=None, validate=validate.Length(max=255))


class UpdateUserSchema(Schema):
    """
    PATCH /users/:id

    Every field optional; only the keys present are applied. Role and
    password are not editable through this endpoint.
    """

    email = fields.Email(validate=validate.Length(max=255))
    first_name = _name_field(required=False)
    last_name = _name_field(required=False)
    profile_picture = fields.Str(allow_none=True)
    bio = fields.Str(allow_none=True)
    graduation_year = fields.Int(allow_none=True, strict=True, validate=validate.Range(min=1900, max=2200))
    department = fields.Str(allow_none=True, validate=validate.Length(max=255))
    is_active = fields.Bool()


class DeleteUserSchema(Schema):
    """DELETE /users/:id — the admin performing the deletion."""

    admin_id = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1, error="admin_id must be a positive integer."),
    )
