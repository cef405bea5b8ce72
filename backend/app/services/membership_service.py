"""
services/membership_service.py — Group membership and ownership succession.

This module is the only writer of Membership rows and of Group.member_count.
Every membership insert/delete goes through add_membership() /
remove_membership(), which recount member_count from the memberships table
in the same flush, so the cache cannot drift from its source rows.

Invariants maintained here:
  - a group's owner_id always refers to one of its members once the
    enclosing transaction commits
  - member_count == number of membership rows for the group
  - admin members are preferred successors; a non-admin is promoted to admin
    only when no admin member remains
  - a group whose owner leaves with nobody left is deleted, never orphaned

Succession tie-break: lowest membership id (oldest row) among the eligible
members.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode
from backend.app.models.group import Group
from backend.app.models.membership import Membership
from backend.app.models.user import User

logger = logging.getLogger(__name__)


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


def _get_group_or_404(group_id: int, session: Session) -> Group:
    """
    Returns the Group, row-locked for the rest of the transaction, or raises
    GROUP_NOT_FOUND (404).

    The lock serialises concurrent leave/delete-user calls on the same group
    so that the "remaining members" read of a succession cannot race another
    transaction's membership delete. SQLite ignores FOR UPDATE.
    """
    group = session.execute(
        select(Group).where(Group.id == group_id).with_for_update()
    ).scalar_one_or_none()
    if group is None:
        raise AppError(
            ErrorCode.GROUP_NOT_FOUND,
            f"Group {group_id} does not exist.",
            404,
        )
    return group


def _find_membership(group_id: int, user_id: int, session: Session) -> Membership | None:
    return session.execute(
        select(Membership).where(
            Membership.group_id == group_id,
            Membership.user_id == user_id,
        )
    ).scalar_one_or_none()


def _build_membership_dict(membership: Membership) -> dict:
    return {
        "id": membership.id,
        "group_id": membership.group_id,
        "user_id": membership.user_id,
        "is_admin": membership.is_admin,
        "joined_at": membership.joined_at.isoformat() if membership.joined_at else None,
    }


def _dissolve_group(group: Group, session: Session) -> None:
    """Hard-deletes a group together with any membership rows still pointing at it."""
    group_id = group.id
    session.execute(delete(Membership).where(Membership.group_id == group_id))
    session.delete(group)
    session.flush()
    logger.info("Group %s dissolved: no members left to inherit ownership", group_id)


# ── Membership-count maintenance ───────────────────────────────────────────

def sync_member_count(group: Group, session: Session) -> int:
    """Recounts member_count for one group from its membership rows."""
    session.flush()
    count = session.execute(
        select(func.count(Membership.id)).where(Membership.group_id == group.id)
    ).scalar_one()
    group.member_count = count
    group.updated_at = _utcnow()
    session.flush()
    return count


def recount_member_counts(session: Session) -> None:
    """
    Reconciles member_count for every group against the memberships table.

    Only groups whose cached count is stale are written (and have their
    updated_at touched).
    """
    session.flush()
    live_count = (
        select(func.count(Membership.id))
        .where(Membership.group_id == Group.id)
        .correlate(Group)
        .scalar_subquery()
    )
    session.execute(
        update(Group)
        .where(Group.member_count != live_count)
        .values(member_count=live_count, updated_at=_utcnow())
        .execution_options(synchronize_session=False)
    )
    # The bulk UPDATE bypassed the identity map; reload counts on next access.
    for obj in list(session.identity_map.values()):
        if isinstance(obj, Group):
            session.expire(obj, ["member_count", "updated_at"])


def add_membership(
        group: Group,
        user_id: int,
        session: Session,
        is_admin: bool = False,
) -> Membership:
    """Inserts a membership row and recounts the group's member_count."""
    membership = Membership(group_id=group.id, user_id=user_id, is_admin=is_admin)
    session.add(membership)
    session.flush()
    sync_member_count(group, session)
    return membership


def remove_membership(group: Group, membership: Membership, session: Session) -> None:
    """Deletes a membership row and recounts the group's member_count."""
    session.delete(membership)
    session.flush()
    sync_member_count(group, session)


# ── Ownership succession ───────────────────────────────────────────────────

def resolve_owner_removal(
        group: Group,
        departing_user_id: int,
        session: Session,
) -> Membership | None:
    """
    Picks the next owner of `group` when its owner `departing_user_id` is
    removed, or deletes the group when nobody else is left.

    Policy (first match wins):
      1. an admin member other than the departing user → becomes owner
      2. any other member → becomes owner and is promoted to admin
      3. nobody left → the group is deleted

    The departing user's own membership row and member_count are left to the
    caller, except in case 3 where the whole group is gone.

    Returns: the successor's Membership, or None if the group was deleted.
    """
    remaining = (
        select(Membership)
        .where(
            Membership.group_id == group.id,
            Membership.user_id != departing_user_id,
        )
        .order_by(Membership.id.asc())
        .limit(1)
    )

    successor = session.execute(
        remaining.where(Membership.is_admin.is_(True))
    ).scalars().first()

    if successor is None:
        successor = session.execute(remaining).scalars().first()
        if successor is None:
            _dissolve_group(group, session)
            return None
        successor.is_admin = True
        logger.info(
            "Group %s: promoted member %s to admin for ownership transfer",
            group.id,
            successor.user_id,
        )

    group.owner_id = successor.user_id
    group.updated_at = _utcnow()
    session.flush()

    logger.info(
        "Group %s: ownership transferred from user %s to user %s",
        group.id,
        departing_user_id,
        successor.user_id,
    )
    return successor


# ── Public service functions ───────────────────────────────────────────────

def join_group(group_id: int, user_id: int, session: Session) -> dict:
    """
    Adds `user_id` to the group as a regular (non-admin) member.

    Not idempotent: a repeated join is an error, not a no-op.

    Raises:
      AppError(USER_NOT_FOUND, 404)  — user does not exist
      AppError(GROUP_NOT_FOUND, 404) — group does not exist
      AppError(ALREADY_MEMBER, 409)  — user already has a membership row

    Returns: dict with the new membership.
    """
    _get_user_or_404(user_id, session)
    group = _get_group_or_404(group_id, session)

    if _find_membership(group_id, user_id, session) is not None:
        raise AppError(
            ErrorCode.ALREADY_MEMBER,
            f"User {user_id} is already a member of group {group_id}.",
            409,
        )

    membership = add_membership(group, user_id, session)
    return _build_membership_dict(membership)


def leave_group(group_id: int, user_id: int, session: Session) -> None:
    """
    Removes `user_id` from the group. If they own it, ownership passes to a
    successor first (or the group is deleted when they were the last member).

    Must run inside a unit_of_work: the succession and the membership delete
    are only consistent together.

    Raises:
      AppError(USER_NOT_FOUND, 404)  — user does not exist
      AppError(GROUP_NOT_FOUND, 404) — group does not exist
      AppError(NOT_A_MEMBER, 404)    — user has no membership in the group
    """
    _get_user_or_404(user_id, session)
    group = _get_group_or_404(group_id, session)

    membership = _find_membership(group_id, user_id, session)
    if membership is None:
        raise AppError(
            ErrorCode.NOT_A_MEMBER,
            f"User {user_id} is not a member of group {group_id}.",
            404,
        )

    if group.owner_id == user_id:
        successor = resolve_owner_removal(group, user_id, session)
        if successor is None:
            return

    remove_membership(group, membership, session)
