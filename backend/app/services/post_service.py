"""
services/post_service.py — Posts, likes and comments.

Idempotence policy:
  - like_post on an already-liked post returns the existing like unchanged.
  - unlike_post on a post that is not liked is a no-op.
  (membership_service.join_group deliberately behaves differently: a repeated
  join is ALREADY_MEMBER.)

likes_count and comments_count are caches kept in step with the like/comment
rows in the same flush.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode
from backend.app.models.comment import Comment
from backend.app.models.post import Post, PostLike
from backend.app.models.user import User, UserRole


# ── Private helpers ────────────────────────────────────────────────────────

def _get_post_or_404(post_id: int, session: Session) -> Post:
    """Returns the Post (row-locked for counter updates) or raises POST_NOT_FOUND (404)."""
    post = session.execute(
        select(Post).where(Post.id == post_id).with_for_update()
    ).scalar_one_or_none()
    if post is None:
        raise AppError(
            ErrorCode.POST_NOT_FOUND,
            f"Post {post_id} does not exist.",
            404,
        )
    return post


def _get_user_or_404(user_id: int, session: Session) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} does not exist.",
            404,
        )
    return user


def _require_active_author(user_id: int, session: Session) -> User:
    """Deactivated accounts keep their old content but cannot write new content."""
    user = _get_user_or_404(user_id, session)
    if not user.is_active:
        raise AppError(
            ErrorCode.UNAUTHORIZED,
            f"User {user_id} is deactivated.",
            403,
        )
    return user


def _find_like(post_id: int, user_id: int, session: Session) -> PostLike | None:
    return session.execute(
        select(PostLike).where(
            PostLike.post_id == post_id,
            PostLike.user_id == user_id,
        )
    ).scalars().first()


def _build_post_dict(post: Post) -> dict:
    return {
        "id": post.id,
        "author_id": post.author_id,
        "content": post.content,
        "image_url": post.image_url,
        "video_url": post.video_url,
        "likes_count": post.likes_count,
        "comments_count": post.comments_count,
        "created_at": post.created_at.isoformat(),
        "updated_at": post.updated_at.isoformat(),
    }


def _build_like_dict(like: PostLike) -> dict:
    return {
        "id": like.id,
        "post_id": like.post_id,
        "user_id": like.user_id,
        "created_at": like.created_at.isoformat(),
    }


def _build_comment_dict(comment: Comment, author: User) -> dict:
    return {
        "id": comment.id,
        "post_id": comment.post_id,
        "author_id": author.id,
        "author_first_name": author.first_name,
        "author_last_name": author.last_name,
        "author_profile_picture": author.profile_picture,
        "content": comment.content,
        "created_at": comment.created_at.isoformat(),
        "updated_at": comment.updated_at.isoformat(),
    }


# ── Posts ──────────────────────────────────────────────────────────────────

def create_post(
        author_id: int,
        content: str,
        session: Session,
        image_url: str | None = None,
        video_url: str | None = None,
) -> dict:
    """
    Raises:
      AppError(USER_NOT_FOUND, 404) — author does not exist
      AppError(UNAUTHORIZED, 403)   — author is deactivated
    """
    _require_active_author(author_id, session)

    post = Post(
        author_id=author_id,
        content=content,
        image_url=image_url,
        video_url=video_url,
    )
    session.add(post)
    session.flush()
    session.refresh(post)

    return _build_post_dict(post)


def delete_post(post_id: int, acting_user_id: int, session: Session) -> None:
    """
    Hard-deletes a post with its comments and likes.

    The author may delete their own post; an active admin may delete any.

    Raises:
      AppError(POST_NOT_FOUND, 404) — post does not exist
      AppError(USER_NOT_FOUND, 404) — acting user does not exist
      AppError(FORBIDDEN, 403)      — acting user is neither author nor admin
    """
    post = _get_post_or_404(post_id, session)
    actor = _get_user_or_404(acting_user_id, session)

    is_author = post.author_id == actor.id
    is_admin = actor.role == UserRole.ADMIN and actor.is_active

    if not (is_author or is_admin):
        raise AppError(
            ErrorCode.FORBIDDEN,
            "You can only delete your own posts.",
            403,
        )

    session.execute(delete(Comment).where(Comment.post_id == post_id))
    session.execute(delete(PostLike).where(PostLike.post_id == post_id))
    session.delete(post)
    session.flush()


def get_news_feed(user_id: int, session: Session, offset: int = 0, limit: int = 20) -> list[dict]:
    """
    Returns posts newest first with author details and whether `user_id`
    has liked each one. Paging is plain offset/limit.
    """
    _get_user_or_404(user_id, session)

    liked_by_viewer = (
        select(PostLike.id)
        .where(
            PostLike.post_id == Post.id,
            PostLike.user_id == user_id,
        )
        .exists()
    )

    rows = session.execute(
        select(Post, User, liked_by_viewer.label("is_liked"))
        .join(User, Post.author_id == User.id)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset(offset)
        .limit(limit)
    ).all()

    feed = []
    for post, author, is_liked in rows:
        item = _build_post_dict(post)
        item.update({
            "author_first_name": author.first_name,
            "author_last_name": author.last_name,
            "author_profile_picture": author.profile_picture,
            "is_liked": bool(is_liked),
        })
        feed.append(item)
    return feed


# ── Likes ──────────────────────────────────────────────────────────────────

def like_post(post_id: int, user_id: int, session: Session) -> dict:
    """
    Likes a post. Idempotent: a second like returns the first one.

    Raises:
      AppError(POST_NOT_FOUND, 404) — post does not exist
      AppError(USER_NOT_FOUND, 404) — user does not exist
    """
    existing = _find_like(post_id, user_id, session)
    if existing is not None:
        return _build_like_dict(existing)

    post = _get_post_or_404(post_id, session)
    _get_user_or_404(user_id, session)

    like = PostLike(post_id=post_id, user_id=user_id)
    session.add(like)
    post.likes_count = post.likes_count + 1
    session.flush()
    session.refresh(like)

    return _build_like_dict(like)


def unlike_post(post_id: int, user_id: int, session: Session) -> None:
    """Removes a like. Unliking a post that is not liked is a no-op."""
    existing = _find_like(post_id, user_id, session)
    if existing is None:
        return

    post = _get_post_or_404(post_id, session)
    session.delete(existing)
    post.likes_count = max(post.likes_count - 1, 0)
    session.flush()


# ── Comments ───────────────────────────────────────────────────────────────

def create_comment(post_id: int, author_id: int, content: str, session: Session) -> dict:
    """
    Raises:
      AppError(POST_NOT_FOUND, 404) — post does not exist
      AppError(USER_NOT_FOUND, 404) — author does not exist
      AppError(UNAUTHORIZED, 403)   — author is deactivated
    """
    post = _get_post_or_404(post_id, session)
    author = _require_active_author(author_id, session)

    comment = Comment(post_id=post_id, author_id=author_id, content=content)
    session.add(comment)
    post.comments_count = post.comments_count + 1
    session.flush()
    session.refresh(comment)

    return _build_comment_dict(comment, author)


def get_post_comments(post_id: int, session: Session) -> list[dict]:
    """Returns the post's comments oldest first, with author details."""
    _get_post_or_404(post_id, session)

    rows = session.execute(
        select(Comment, User)
        .join(User, Comment.author_id == User.id)
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    ).all()

    return [_build_comment_dict(comment, author) for comment, author in rows]
