"""
routes/posts.py — Posts, likes, comments and the news feed.

Endpoints (url_prefix=/api/v1/posts):
  POST   /posts                          → 201  create post
  GET    /posts/feed?user_id=            → 200  news feed page
  DELETE /posts/:id                      → 200  delete post (author or admin)
  POST   /posts/:id/likes                → 201  like (idempotent)
  DELETE /posts/:id/likes/:uid           → 200  unlike (no-op if not liked)
  POST   /posts/:id/comments             → 201  add comment
  GET    /posts/:id/comments             → 200  comments, oldest first
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from backend.app.extensions import db
from backend.app.schemas.post_schema import (
    ActingUserSchema,
    CreateCommentSchema,
    CreatePostSchema,
    FeedQuerySchema,
)
from backend.app.services import post_service

posts_bp = Blueprint("posts", __name__)


@posts_bp.route("/", methods=["POST"])
def create_post():
    data = CreatePostSchema().load(request.get_json(force=True) or {})
    result = post_service.create_post(session=db.session, **data)
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@posts_bp.route("/feed", methods=["GET"])
def news_feed():
    """
    GET /posts/feed?user_id=&offset=&limit=

    limit defaults to FEED_DEFAULT_LIMIT and is clamped to FEED_MAX_LIMIT.
    A clamped request gets a warning in the envelope.
    """
    args = FeedQuerySchema().load(request.args.to_dict())
    warnings = []

    limit = args["limit"] or current_app.config["FEED_DEFAULT_LIMIT"]
    max_limit = current_app.config["FEED_MAX_LIMIT"]
    if limit > max_limit:
        warnings.append(f"limit reduced to {max_limit}.")
        limit = max_limit

    result = post_service.get_news_feed(
        user_id=args["user_id"],
        session=db.session,
        offset=args["offset"],
        limit=limit,
    )
    return jsonify({"data": result, "warnings": warnings}), 200


@posts_bp.route("/<int:post_id>", methods=["DELETE"])
def delete_post(post_id: int):
    """DELETE /posts/:id — Body: {"user_id": <id>}. Author or active admin only."""
    data = ActingUserSchema().load(request.get_json(force=True) or {})
    post_service.delete_post(
        post_id=post_id,
        acting_user_id=data["user_id"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": {"deleted": True, "post_id": post_id},
        "warnings": [],
    }), 200


@posts_bp.route("/<int:post_id>/likes", methods=["POST"])
def like_post(post_id: int):
    data = ActingUserSchema().load(request.get_json(force=True) or {})
    result = post_service.like_post(
        post_id=post_id,
        user_id=data["user_id"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@posts_bp.route("/<int:post_id>/likes/<int:user_id>", methods=["DELETE"])
def unlike_post(post_id: int, user_id: int):
    post_service.unlike_post(post_id=post_id, user_id=user_id, session=db.session)
    db.session.commit()
    return jsonify({
        "data": {"liked": False, "post_id": post_id, "user_id": user_id},
        "warnings": [],
    }), 200


@posts_bp.route("/<int:post_id>/comments", methods=["POST"])
def create_comment(post_id: int):
    data = CreateCommentSchema().load(request.get_json(force=True) or {})
    result = post_service.create_comment(
        post_id=post_id,
        author_id=data["author_id"],
        content=data["content"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@posts_bp.route("/<int:post_id>/comments", methods=["GET"])
def list_comments(post_id: int):
    result = post_service.get_post_comments(post_id=post_id, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200
