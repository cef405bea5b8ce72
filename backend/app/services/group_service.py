"""
services/group_service.py — Group creation and read-side queries.

Membership writes (join, leave, succession) live in membership_service.py;
create_group enrols the owner through membership_service.add_membership so
the initial member_count comes from the same recount as every later change.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode
from backend.app.models.group import Group
from backend.app.models.membership import Membership
from backend.app.models.user import User
from backend.app.services import membership_service


# ── Private helpers ────────────────────────────────────────────────────────

def _get_group_or_404(group_id: int, session: Session) -> Group:
    """Returns the Group or raises GROUP_NOT_FOUND (404)."""
    group = session.get(Group, group_id)
    if group is None:
        raise AppError(
            ErrorCode.GROUP_NOT_FOUND,
            f"Group {group_id} does not exist.",
            404,
        )
    return group


def _get_user_or_404(user_id: int, session: Session) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} does not exist.",
            404,
        )
    return user


def _build_group_dict(group: Group) -> dict:
    """Serialises a Group to a plain dict."""
    return {
        "id": group.id,
        "name": group.name,
        "description": group.description,
        "owner_id": group.owner_id,
        "is_private": group.is_private,
        "member_count": group.member_count,
        "created_at": group.created_at.isoformat(),
        "updated_at": group.updated_at.isoformat(),
    }


# ── Public service functions ───────────────────────────────────────────────

def create_group(
        owner_id: int,
        name: str,
        session: Session,
        description: str | None = None,
        is_private: bool = False,
) -> dict:
    """
    Creates a group. The creator becomes the owner and its first (admin) member.

    Raises:
      AppError(USER_NOT_FOUND, 404) — owner does not exist
      AppError(UNAUTHORIZED, 403)   — owner account is deactivated
    """
    owner = _get_user_or_404(owner_id, session)
    if not owner.is_active:
        raise AppError(
            ErrorCode.UNAUTHORIZED,
            "Deactivated users cannot create groups.",
            403,
        )

    group = Group(
        name=name,
        description=description,
        owner_id=owner_id,
        is_private=is_private,
    )
    session.add(group)
    session.flush()  # populate group.id before creating membership

    membership_service.add_membership(group, owner_id, session, is_admin=True)
    session.refresh(group)

    return _build_group_dict(group)


def get_group(group_id: int, session: Session) -> dict:
    group = _get_group_or_404(group_id, session)
    return _build_group_dict(group)


def list_group_members(group_id: int, session: Session) -> list[dict]:
    """
    Returns the group's members in membership order (the order succession
    considers them).
    """
    group = _get_group_or_404(group_id, session)

    rows = session.execute(
        select(Membership, User)
        .join(User, Membership.user_id == User.id)
        .where(Membership.group_id == group_id)
        .order_by(Membership.id.asc())
    ).all()

    return [
        {
            "membership_id": membership.id,
            "user_id": user.id,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "profile_picture": user.profile_picture,
            "is_admin": membership.is_admin,
            "is_owner": user.id == group.owner_id,
            "joined_at": membership.joined_at.isoformat(),
        }
        for membership, user in rows
    ]


def list_user_groups(user_id: int, session: Session) -> list[dict]:
    """Returns every group the user is a member of, oldest first."""
    _get_user_or_404(user_id, session)

    stmt = (
        select(Group)
        .join(Membership, Group.id == Membership.group_id)
        .where(Membership.user_id == user_id)
        .order_by(Group.created_at.asc(), Group.id.asc())
    )
    groups = session.execute(stmt).scalars().all()

    return [_build_group_dict(g) for g in groups]
