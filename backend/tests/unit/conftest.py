"""
tests/unit/conftest.py — Registers every model class.

Some unit tests build real model instances (Membership, PostLike). The first
instantiation configures all mappers, and the string-based relationships
("Post", "Comment", ...) only resolve when every model module is imported.
create_app() does this for the app; unit tests have no app.
"""

from backend.app.models import (  # noqa: F401
    comment,
    group,
    membership,
    message,
    post,
    user,
)
