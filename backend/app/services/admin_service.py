"""
services/admin_service.py — Dashboard statistics for admins.

Read-only. Counts include deactivated users.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import distinct, func, select
from sqlalchemy.orm import Session

from backend.app.models.group import Group
from backend.app.models.post import Post
from backend.app.models.user import User, UserRole


def _start_of_today_utc() -> datetime:
    now = datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def get_admin_stats(session: Session) -> dict:
    """
    Returns platform totals, users per role (every role present, zero if
    unused) and active_users_today: distinct users who posted since
    midnight UTC.
    """
    total_users = session.execute(select(func.count(User.id))).scalar_one()
    total_posts = session.execute(select(func.count(Post.id))).scalar_one()
    total_groups = session.execute(select(func.count(Group.id))).scalar_one()

    active_users_today = session.execute(
        select(func.count(distinct(Post.author_id)))
        .where(Post.created_at >= _start_of_today_utc())
    ).scalar_one()

    users_by_role = {role.value: 0 for role in UserRole}
    for role, count in session.execute(
        select(User.role, func.count(User.id)).group_by(User.role)
    ).all():
        users_by_role[UserRole(role).value] = count

    return {
        "total_users": total_users,
        "total_posts": total_posts,
        "total_groups": total_groups,
        "active_users_today": active_users_today,
        "users_by_role": users_by_role,
    }
