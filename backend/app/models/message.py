"""
models/message.py — PrivateMessage table definition.

No business logic. No imports from services or routes.

A message is a directed edge sender → recipient. Messages are hard-deleted
when either side is deactivated (user_service.delete_user).
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Text, false, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db


class PrivateMessage(db.Model):
    __tablename__ = "private_messages"

    __table_args__ = (
        CheckConstraint(
            "LENGTH(TRIM(content)) > 0",
            name="ck_private_messages_content_nonempty",
        ),
        # Unread lookups are always (recipient, is_read).
        Index("idx_private_messages_unread", "recipient_id", "is_read"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    sender_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    recipient_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    is_read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    sender: Mapped["User"] = relationship(  # noqa: F821
        "User",
        foreign_keys=[sender_id],
    )

    recipient: Mapped["User"] = relationship(  # noqa: F821
        "User",
        foreign_keys=[recipient_id],
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<PrivateMessage id={self.id} "
            f"sender_id={self.sender_id} "
            f"recipient_id={self.recipient_id}>"
        )
