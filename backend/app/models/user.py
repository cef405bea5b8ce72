"""
models/user.py — User table definition.

No business logic. No imports from services or routes.

Deletion policy: users are never purged. Deactivation flips `is_active` and
leaves the row (and the posts/comments pointing at it) in place.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, Integer, String, Text, func, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db


class UserRole(str, enum.Enum):
    """user_role AS ENUM ('admin', 'student', 'teacher', 'alumni')"""
    ADMIN   = "admin"
    STUDENT = "student"
    TEACHER = "teacher"
    ALUMNI  = "alumni"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Ensure SQLAlchemy stores enum values (e.g., 'admin'), not names ('ADMIN')."""
    return [member.value for member in enum_cls]


class User(db.Model):
    __tablename__ = "users"

    __table_args__ = (
        CheckConstraint(
            "email LIKE '%@%'",
            name="ck_users_email_format",
        ),
        CheckConstraint(
            "LENGTH(TRIM(first_name)) > 0",
            name="ck_users_first_name_nonempty",
        ),
        CheckConstraint(
            "LENGTH(TRIM(last_name)) > 0",
            name="ck_users_last_name_nonempty",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", values_callable=_enum_values),
        nullable=False,
    )

    profile_picture: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Students and alumni only; teachers carry a department instead.
    graduation_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=true(),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────
    # Read-only navigation — no logic here.

    memberships: Mapped[list["Membership"]] = relationship(  # noqa: F821
        "Membership",
        back_populates="user",
        passive_deletes=True,
    )

    owned_groups: Mapped[list["Group"]] = relationship(  # noqa: F821
        "Group",
        back_populates="owner",
        foreign_keys="[Group.owner_id]",
    )

    posts: Mapped[list["Post"]] = relationship(  # noqa: F821
        "Post",
        back_populates="author",
    )

    @property
    def is_admin_role(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User id={self.id} email={self.email!r} role={self.role.value!r}>"
