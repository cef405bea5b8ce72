"""
services/user_service.py — User accounts and the user-removal cascade.

Deletion policy per entity (delete_user):
  User            soft   is_active=False, row kept
  Group (owned)   moved  ownership passed on by membership_service, or the
                         group is deleted when nobody is left
  Membership      hard   every row of the user, in every group
  PrivateMessage  hard   every message sent or received by the user
  Post / Comment  kept   only updated_at is touched

Layer rules:
  - No imports from routes or schemas.
  - current_app.config is read only for BCRYPT_LOG_ROUNDS.
  - Commits are the route's responsibility — only flush here. delete_user
    must be called inside a unit_of_work.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import bcrypt
from flask import current_app
from sqlalchemy import delete, or_, select, update
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode
from backend.app.models.comment import Comment
from backend.app.models.group import Group
from backend.app.models.membership import Membership
from backend.app.models.message import PrivateMessage
from backend.app.models.post import Post
from backend.app.models.user import User, UserRole
from backend.app.services import membership_service

logger = logging.getLogger(__name__)

# Columns a PATCH may change. Role and password are not editable here.
_UPDATABLE_FIELDS = (
    "email",
    "first_name",
    "last_name",
    "profile_picture",
    "bio",
    "graduation_year",
    "department",
    "is_active",
)


# ── Private helpers ────────────────────────────────────────────────────────

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _get_user_or_404(user_id: int, session: Session) -> User:
    """Returns the User or raises USER_NOT_FOUND (404)."""
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} does not exist.",
            404,
        )
    return user


def _require_active_admin(user_id: int, session: Session) -> User:
    """
    Raises UNAUTHORIZED (403) unless user_id is an existing, active admin.
    A missing acting user is reported as UNAUTHORIZED too, not USER_NOT_FOUND.
    """
    user = session.get(User, user_id)
    if user is None or not user.is_active or user.role != UserRole.ADMIN:
        raise AppError(
            ErrorCode.UNAUTHORIZED,
            "This operation requires an active admin account.",
            403,
        )
    return user


def _ensure_email_available(email: str, session: Session, exclude_user_id: int | None = None) -> None:
    stmt = select(User.id).where(User.email == email)
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    if session.execute(stmt).first() is not None:
        raise AppError(
            ErrorCode.DUPLICATE_EMAIL,
            f"The email address '{email}' is already registered.",
            409,
            field="email",
        )


def _build_user_dict(user: User) -> dict:
    """Serialises a User to a plain dict. password_hash never leaves the service."""
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "role": user.role.value,
        "profile_picture": user.profile_picture,
        "bio": user.bio,
        "graduation_year": user.graduation_year,
        "department": user.department,
        "is_active": user.is_active,
        "created_at": user.created_at.isoformat(),
        "updated_at": user.updated_at.isoformat(),
    }


# ── Public service functions ───────────────────────────────────────────────

def create_user(
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: str,
        session: Session,
        profile_picture: str | None = None,
        bio: str | None = None,
        graduation_year: int | None = None,
        department: str | None = None,
) -> dict:
    """
    Creates a user account with a bcrypt-hashed password.

    Raises:
      AppError(DUPLICATE_EMAIL, 409) — email already registered
    """
    _ensure_email_available(email, session)

    rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", 12)
    password_hash = bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=rounds),
    ).decode("utf-8")

    user = User(
        email=email,
        password_hash=password_hash,
        first_name=first_name,
        last_name=last_name,
        role=UserRole(role),
        profile_picture=profile_picture,
        bio=bio,
        graduation_year=graduation_year,
        department=department,
    )
    session.add(user)
    session.flush()
    session.refresh(user)

    return _build_user_dict(user)


def list_users(session: Session) -> list[dict]:
    """Returns every user, newest first. Deactivated users are included."""
    users = session.execute(
        select(User).order_by(User.created_at.desc(), User.id.desc())
    ).scalars().all()
    return [_build_user_dict(u) for u in users]


def get_user(user_id: int, session: Session) -> dict:
    return _build_user_dict(_get_user_or_404(user_id, session))


def update_user(user_id: int, changes: dict, session: Session) -> dict:
    """
    Applies a partial update. Keys outside _UPDATABLE_FIELDS are ignored.

    Raises:
      AppError(USER_NOT_FOUND, 404)  — user does not exist
      AppError(DUPLICATE_EMAIL, 409) — new email belongs to someone else
    """
    user = _get_user_or_404(user_id, session)

    if "email" in changes and changes["email"] != user.email:
        _ensure_email_available(changes["email"], session, exclude_user_id=user_id)

    for field_name in _UPDATABLE_FIELDS:
        if field_name in changes:
            setattr(user, field_name, changes[field_name])

    user.updated_at = _utcnow()
    session.flush()
    session.refresh(user)

    return _build_user_dict(user)


def delete_user(target_user_id: int, acting_admin_id: int, session: Session) -> None:
    """
    Deactivates a non-admin user and removes them from the social graph.

    All precondition checks run before the first write. The six steps below
    are only flushed; the caller's unit_of_work commits or rolls back all of
    them together.

    Raises:
      AppError(UNAUTHORIZED, 403)        — acting user is missing, inactive or not an admin
      AppError(USER_NOT_FOUND, 404)      — target user does not exist
      AppError(CANNOT_DELETE_ADMIN, 422) — target user is an admin
    """
    _require_active_admin(acting_admin_id, session)
    target = _get_user_or_404(target_user_id, session)

    if target.role == UserRole.ADMIN:
        raise AppError(
            ErrorCode.CANNOT_DELETE_ADMIN,
            "Admin accounts cannot be deleted through this operation.",
            422,
        )

    now = _utcnow()

    # 1. Soft delete.
    target.is_active = False
    target.updated_at = now
    session.flush()

    # 2. Hand over (or dissolve) every group the target owns.
    owned_groups = session.execute(
        select(Group)
        .where(Group.owner_id == target_user_id)
        .order_by(Group.id.asc())
        .with_for_update()
    ).scalars().all()
    for group in owned_groups:
        membership_service.resolve_owner_removal(group, target_user_id, session)

    # 3. Drop every membership of the target, owned groups or not.
    session.execute(delete(Membership).where(Membership.user_id == target_user_id))

    # 4. Steps 2 and 3 can both touch the same group; recount from source.
    membership_service.recount_member_counts(session)

    # 5. Private messages in either direction.
    session.execute(
        delete(PrivateMessage).where(
            or_(
                PrivateMessage.sender_id == target_user_id,
                PrivateMessage.recipient_id == target_user_id,
            )
        )
    )

    # 6. Authored content is kept; only its timestamp moves.
    session.execute(
        update(Post).where(Post.author_id == target_user_id).values(updated_at=now)
    )
    session.execute(
        update(Comment).where(Comment.author_id == target_user_id).values(updated_at=now)
    )
    session.flush()

    logger.info(
        "User %s deactivated by admin %s (%d owned groups resolved)",
        target_user_id,
        acting_admin_id,
        len(owned_groups),
    )
