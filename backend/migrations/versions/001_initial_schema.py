"""Initial schema — all tables, the user_role enum, constraints, and indexes.

Revision: 001_initial_schema
Created:  2026-10-18

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  If a schema change is required, create a NEW migration file.

Creation order:
  1. PostgreSQL enum type user_role
  2. Tables in FK dependency order (users → groups → group_memberships,
     posts → post_likes, comments; private_messages)
  3. Indexes

ON DELETE policies:
  groups.owner_id               → RESTRICT  (ownership is moved, never orphaned)
  group_memberships.*           → CASCADE   (rows never outlive either side)
  posts.author_id               → RESTRICT  (posts outlive a deactivated author)
  post_likes.*                  → CASCADE
  comments.post_id              → CASCADE
  comments.author_id            → RESTRICT
  private_messages.*            → RESTRICT  (deleted explicitly on deactivation)
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration — no parent
branch_labels: tuple | None = None
depends_on: tuple | None = None


_user_role = postgresql.ENUM(
    "admin", "student", "teacher", "alumni",
    name="user_role",
    create_type=False,
)


def upgrade() -> None:
    """
    Apply the full initial schema.

    The enum type is created via op.execute() so the exact SQL is explicit;
    the column references it with create_type=False.
    """

    # ── Step 1: enum type ─────────────────────────────────────────────────
    op.execute("CREATE TYPE user_role AS ENUM ('admin', 'student', 'teacher', 'alumni')")

    # ── Step 2: users ──────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("role", _user_role, nullable=False),
        sa.Column("profile_picture", sa.Text(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("graduation_year", sa.Integer(), nullable=True),
        sa.Column("department", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("TRUE")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("email LIKE '%@%'", name="ck_users_email_format"),
        sa.CheckConstraint("LENGTH(TRIM(first_name)) > 0", name="ck_users_first_name_nonempty"),
        sa.CheckConstraint("LENGTH(TRIM(last_name)) > 0", name="ck_users_last_name_nonempty"),
    )

    # ── Step 3: groups ─────────────────────────────────────────────────────
    op.create_table(
        "groups",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "owner_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_groups_owner"),
            nullable=False,
        ),
        sa.Column("is_private", sa.Boolean(), nullable=False, server_default=sa.text("FALSE")),
        sa.Column("member_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("id", name="pk_groups"),
        sa.CheckConstraint("LENGTH(TRIM(name)) > 0", name="ck_groups_name_nonempty"),
        sa.CheckConstraint("member_count >= 0", name="ck_groups_member_count_non_negative"),
    )

    # ── Step 4: group_memberships ──────────────────────────────────────────
    # No UNIQUE(user_id, group_id): duplicates are rejected by join_group.
    op.create_table(
        "group_memberships",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "group_id",
            sa.Integer(),
            sa.ForeignKey("groups.id", ondelete="CASCADE", name="fk_group_memberships_group"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_group_memberships_user"),
            nullable=False,
        ),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.text("FALSE")),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("id", name="pk_group_memberships"),
    )

    # ── Step 5: posts, post_likes, comments ────────────────────────────────
    op.create_table(
        "posts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "author_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_posts_author"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("video_url", sa.Text(), nullable=True),
        sa.Column("likes_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("comments_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("id", name="pk_posts"),
        sa.CheckConstraint("LENGTH(TRIM(content)) > 0", name="ck_posts_content_nonempty"),
    )

    op.create_table(
        "post_likes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "post_id",
            sa.Integer(),
            sa.ForeignKey("posts.id", ondelete="CASCADE", name="fk_post_likes_post"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_post_likes_user"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("id", name="pk_post_likes"),
    )

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "post_id",
            sa.Integer(),
            sa.ForeignKey("posts.id", ondelete="CASCADE", name="fk_comments_post"),
            nullable=False,
        ),
        sa.Column(
            "author_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_comments_author"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("id", name="pk_comments"),
        sa.CheckConstraint("LENGTH(TRIM(content)) > 0", name="ck_comments_content_nonempty"),
    )

    # ── Step 6: private_messages ───────────────────────────────────────────
    op.create_table(
        "private_messages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "sender_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_private_messages_sender"),
            nullable=False,
        ),
        sa.Column(
            "recipient_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_private_messages_recipient"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("FALSE")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("id", name="pk_private_messages"),
        sa.CheckConstraint("LENGTH(TRIM(content)) > 0", name="ck_private_messages_content_nonempty"),
    )

    # ── Step 7: indexes ────────────────────────────────────────────────────
    op.create_index("ix_groups_owner_id", "groups", ["owner_id"])
    op.create_index("ix_group_memberships_group_id", "group_memberships", ["group_id"])
    op.create_index("ix_group_memberships_user_id", "group_memberships", ["user_id"])
    op.create_index("ix_posts_author_id", "posts", ["author_id"])
    op.create_index("ix_post_likes_post_id", "post_likes", ["post_id"])
    op.create_index("ix_post_likes_user_id", "post_likes", ["user_id"])
    op.create_index("ix_comments_post_id", "comments", ["post_id"])
    op.create_index("ix_comments_author_id", "comments", ["author_id"])
    op.create_index("ix_private_messages_sender_id", "private_messages", ["sender_id"])
    op.create_index("ix_private_messages_recipient_id", "private_messages", ["recipient_id"])

    # Unread lookups are always (recipient, is_read).
    op.create_index(
        "idx_private_messages_unread",
        "private_messages",
        ["recipient_id", "is_read"],
    )


def downgrade() -> None:
    """Drop all objects created in upgrade(), in reverse dependency order."""

    op.drop_index("idx_private_messages_unread",      table_name="private_messages")
    op.drop_index("ix_private_messages_recipient_id", table_name="private_messages")
    op.drop_index("ix_private_messages_sender_id",    table_name="private_messages")
    op.drop_index("ix_comments_author_id",            table_name="comments")
    op.drop_index("ix_comments_post_id",              table_name="comments")
    op.drop_index("ix_post_likes_user_id",            table_name="post_likes")
    op.drop_index("ix_post_likes_post_id",            table_name="post_likes")
    op.drop_index("ix_posts_author_id",               table_name="posts")
    op.drop_index("ix_group_memberships_user_id",     table_name="group_memberships")
    op.drop_index("ix_group_memberships_group_id",    table_name="group_memberships")
    op.drop_index("ix_groups_owner_id",               table_name="groups")

    op.drop_table("private_messages")
    op.drop_table("comments")
    op.drop_table("post_likes")
    op.drop_table("posts")
    op.drop_table("group_memberships")
    op.drop_table("groups")
    op.drop_table("users")

    op.execute("DROP TYPE IF EXISTS user_role")
