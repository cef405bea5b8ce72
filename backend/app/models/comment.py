"""
models/comment.py — Comment table definition.

No business logic. No imports from services or routes.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db


class Comment(db.Model):
    __tablename__ = "comments"

    __table_args__ = (
        CheckConstraint(
            "LENGTH(TRIM(content)) > 0",
            name="ck_comments_content_nonempty",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # ON DELETE CASCADE — comments are owned by their post.
    post_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # ON DELETE RESTRICT — comments outlive a deactivated author.
    author_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

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

    post: Mapped["Post"] = relationship(  # noqa: F821
        "Post",
        back_populates="comments",
    )

    author: Mapped["User"] = relationship(  # noqa: F821
        "User",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Comment id={self.id} post_id={self.post_id} author_id={self.author_id}>"
