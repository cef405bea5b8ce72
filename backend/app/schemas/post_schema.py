"""
schemas/post_schema.py — Marshmallow schemas for posts, likes and comments.

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from backend.app.schemas.user_schema import validate_non_empty_after_trim


def _positive_id(name: str, strict: bool = True) -> fields.Int:
    return fields.Int(
        required=True,
        strict=strict,
        validate=validate.Range(min=1, error=f"{name} must be a positive integer."),
    )


class CreatePostSchema(Schema):
    """POST /posts"""

    author_id = _positive_id("author_id")
    content = fields.Str(
        required=True,
        validate=[validate.Length(min=1), validate_non_empty_after_trim],
    )
    image_url = fields.Str(allow_none=True, load_default=None)
    video_url = fields.Str(allow_none=True, load_default=None)


class ActingUserSchema(Schema):
    """
    Body of DELETE /posts/:id and POST /posts/:id/likes — the user acting.
    Identity is passed explicitly; there is no session.
    """

    user_id = _positive_id("user_id")


class FeedQuerySchema(Schema):
    """
    GET /posts/feed?user_id=&offset=&limit=

    Query-string values arrive as text, so ints are not strict here.
    The upper bound for limit comes from FEED_MAX_LIMIT and is applied by the route.
    """

    user_id = _positive_id("user_id", strict=False)
    offset = fields.Int(load_default=0, validate=validate.Range(min=0))
    limit = fields.Int(load_default=None, validate=validate.Range(min=1))


class CreateCommentSchema(Schema):
    """POST /posts/:id/comments"""

    author_id = _positive_id("author_id")
    content = fields.Str(
        required=True,
        validate=[validate.Length(min=1), validate_non_empty_after_trim],
    )
