"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run against the TestingConfig database: in-memory SQLite unless
    TEST_DATABASE_URL points at a real PostgreSQL database.
  - The app is created once per session using create_app("testing").
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.

Helper functions (not fixtures) are provided for common operations:
  - make_user(client, ...)        → user dict
  - make_group(client, ...)       → group dict (owner is first admin member)
  - join(client, ...)             → HTTP response
  - leave(client, ...)            → HTTP response
  - delete_user(client, ...)      → HTTP response
  - make_post / make_comment / send_message → data dicts
  - members_of(client, gid)       → list of member dicts
  - set_group_admin(app, ...)     → flips is_admin directly in the DB
  - group_row(app, gid)           → current group row values, or None
  - membership_rows(app, gid)     → membership rows ordered by id

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test without fixture parameterization overhead.
"""

from __future__ import annotations

import itertools

import pytest
from sqlalchemy import func, select, text, update

from backend.app import create_app
from backend.app.extensions import db as _db
from backend.app.models.group import Group
from backend.app.models.membership import Membership


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """
    Creates the Flask application in 'testing' mode once for the entire test session.

    Steps:
      1. Create app with TestingConfig.
      2. Run db.create_all() to create all tables.
      3. Yield the app for the test session.
      4. Drop all tables at teardown.
    """
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """
    Deletes all rows between tests in FK-safe order.

    Delete order respects FK RESTRICT constraints: likes, comments and posts
    before users; messages before users; memberships before groups before users.
    """
    yield  # run the test

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test

        with _db.engine.connect() as conn:
            conn.execute(text("DELETE FROM post_likes"))
            conn.execute(text("DELETE FROM comments"))
            conn.execute(text("DELETE FROM posts"))
            conn.execute(text("DELETE FROM private_messages"))
            conn.execute(text("DELETE FROM group_memberships"))
            conn.execute(text("DELETE FROM groups"))
            conn.execute(text("DELETE FROM users"))
            conn.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

_email_seq = itertools.count(1)


def make_user(
    client,
    first_name: str = "Alice",
    role: str = "student",
    email: str | None = None,
    password: str = "Password1",
    **extra,
) -> dict:
    """Creates a user through the API and returns the user data dict."""
    if email is None:
        email = f"{first_name.lower()}{next(_email_seq)}@campus.edu"
    payload = {
        "email": email,
        "password": password,
        "first_name": first_name,
        "last_name": "Tester",
        "role": role,
    }
    payload.update(extra)
    resp = client.post("/api/v1/users/", json=payload)
    assert resp.status_code == 201, f"make_user failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_group(client, owner_id: int, name: str = "Test Group", **extra) -> dict:
    """
    Creates a group and returns the group data dict.
    The owner becomes the first (admin) member.
    """
    resp = client.post("/api/v1/groups/", json={"owner_id": owner_id, "name": name, **extra})
    assert resp.status_code == 201, f"make_group failed: {resp.get_json()}"
    return resp.get_json()["data"]


def join(client, group_id: int, user_id: int):
    """Joins a user to a group. Returns the HTTP response."""
    return client.post(f"/api/v1/groups/{group_id}/members", json={"user_id": user_id})


def leave(client, group_id: int, user_id: int):
    """Removes a user from a group. Returns the HTTP response."""
    return client.delete(f"/api/v1/groups/{group_id}/members/{user_id}")


def delete_user(client, user_id: int, admin_id: int):
    return client.delete(f"/api/v1/users/{user_id}", json={"admin_id": admin_id})


def members_of(client, group_id: int) -> list[dict]:
    resp = client.get(f"/api/v1/groups/{group_id}/members")
    assert resp.status_code == 200, f"members_of failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_post(client, author_id: int, content: str = "Hello campus") -> dict:
    resp = client.post("/api/v1/posts/", json={"author_id": author_id, "content": content})
    assert resp.status_code == 201, f"make_post failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_comment(client, post_id: int, author_id: int, content: str = "Nice") -> dict:
    resp = client.post(
        f"/api/v1/posts/{post_id}/comments",
        json={"author_id": author_id, "content": content},
    )
    assert resp.status_code == 201, f"make_comment failed: {resp.get_json()}"
    return resp.get_json()["data"]


def send_message(client, sender_id: int, recipient_id: int, content: str = "hi") -> dict:
    resp = client.post(
        "/api/v1/messages/",
        json={"sender_id": sender_id, "recipient_id": recipient_id, "content": content},
    )
    assert resp.status_code == 201, f"send_message failed: {resp.get_json()}"
    return resp.get_json()["data"]


def set_group_admin(app, group_id: int, user_id: int, is_admin: bool = True) -> None:
    """Flips a member's is_admin flag directly; there is no API for it."""
    with app.app_context():
        _db.session.execute(
            update(Membership)
            .where(Membership.group_id == group_id, Membership.user_id == user_id)
            .values(is_admin=is_admin)
        )
        _db.session.commit()


def group_row(app, group_id: int) -> dict | None:
    """Reads the group straight from the DB, bypassing the API."""
    with app.app_context():
        group = _db.session.get(Group, group_id)
        if group is None:
            return None
        return {
            "id": group.id,
            "owner_id": group.owner_id,
            "member_count": group.member_count,
            "updated_at": group.updated_at,
        }


def membership_rows(app, group_id: int) -> list[dict]:
    with app.app_context():
        rows = _db.session.execute(
            select(Membership)
            .where(Membership.group_id == group_id)
            .order_by(Membership.id)
        ).scalars().all()
        return [{"user_id": m.user_id, "is_admin": m.is_admin} for m in rows]


def assert_group_invariants(app, group_id: int) -> None:
    """
    For an existing group: member_count equals its membership rows, and the
    owner holds one of them.
    """
    with app.app_context():
        group = _db.session.get(Group, group_id)
        assert group is not None, f"group {group_id} is gone"
        live = _db.session.execute(
            select(func.count(Membership.id)).where(Membership.group_id == group_id)
        ).scalar_one()
        assert group.member_count == live
        owner_row = _db.session.execute(
            select(Membership).where(
                Membership.group_id == group_id,
                Membership.user_id == group.owner_id,
            )
        ).scalar_one_or_none()
        assert owner_row is not None, f"owner {group.owner_id} is not a member of group {group_id}"
