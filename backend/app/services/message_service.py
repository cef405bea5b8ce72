"""
services/message_service.py — Private messages between two users.

Messages are stored once per send and read by both parties. Delivery is
pull-only (clients poll get_messages / get_conversations).

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import and_, or_, select, update
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode
from backend.app.models.message import PrivateMessage
from backend.app.models.user import User


def _get_user_or_404(user_id: int, session: Session) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} does not exist.",
            404,
        )
    return user


def _build_message_dict(message: PrivateMessage) -> dict:
    return {
        "id": message.id,
        "sender_id": message.sender_id,
        "recipient_id": message.recipient_id,
        "content": message.content,
        "is_read": message.is_read,
        "created_at": message.created_at.isoformat(),
    }


def send_message(sender_id: int, recipient_id: int, content: str, session: Session) -> dict:
    """
    Raises:
      AppError(INVALID_FIELD, 400)  — sender and recipient are the same user
      AppError(USER_NOT_FOUND, 404) — sender or recipient does not exist
      AppError(UNAUTHORIZED, 403)   — sender or recipient is deactivated
    """
    if sender_id == recipient_id:
        raise AppError(
            ErrorCode.INVALID_FIELD,
            "You cannot send a message to yourself.",
            400,
            field="recipient_id",
        )

    sender = _get_user_or_404(sender_id, session)
    recipient = _get_user_or_404(recipient_id, session)

    if not sender.is_active or not recipient.is_active:
        raise AppError(
            ErrorCode.UNAUTHORIZED,
            "Messages can only be exchanged between active users.",
            403,
        )

    message = PrivateMessage(
        sender_id=sender_id,
        recipient_id=recipient_id,
        content=content,
    )
    session.add(message)
    session.flush()
    session.refresh(message)

    return _build_message_dict(message)


def get_messages(user_id: int, session: Session, other_user_id: int | None = None) -> list[dict]:
    """
    Returns messages newest first: every message the user sent or received,
    or only the conversation with `other_user_id` when given.
    """
    _get_user_or_404(user_id, session)

    if other_user_id is None:
        criteria = or_(
            PrivateMessage.sender_id == user_id,
            PrivateMessage.recipient_id == user_id,
        )
    else:
        criteria = or_(
            and_(PrivateMessage.sender_id == user_id, PrivateMessage.recipient_id == other_user_id),
            and_(PrivateMessage.sender_id == other_user_id, PrivateMessage.recipient_id == user_id),
        )

    messages = session.execute(
        select(PrivateMessage)
        .where(criteria)
        .order_by(PrivateMessage.created_at.desc(), PrivateMessage.id.desc())
    ).scalars().all()

    return [_build_message_dict(m) for m in messages]


def get_conversations(user_id: int, session: Session) -> list[dict]:
    """
    One summary per counterpart: the latest message exchanged and how many
    messages from that counterpart the user has not read yet. Most recent
    conversation first.
    """
    _get_user_or_404(user_id, session)

    messages = session.execute(
        select(PrivateMessage)
        .where(
            or_(
                PrivateMessage.sender_id == user_id,
                PrivateMessage.recipient_id == user_id,
            )
        )
        .order_by(PrivateMessage.created_at.desc(), PrivateMessage.id.desc())
    ).scalars().all()

    summaries: dict[int, dict] = {}
    for message in messages:
        other_id = message.recipient_id if message.sender_id == user_id else message.sender_id
        summary = summaries.get(other_id)
        if summary is None:
            # First hit per counterpart is the newest message.
            summary = {
                "user_id": other_id,
                "last_message": _build_message_dict(message),
                "unread_count": 0,
            }
            summaries[other_id] = summary
        if message.recipient_id == user_id and not message.is_read:
            summary["unread_count"] += 1

    return list(summaries.values())


def mark_message_read(message_id: int, user_id: int, session: Session) -> None:
    """
    Raises:
      AppError(MESSAGE_NOT_FOUND, 404) — message does not exist
      AppError(FORBIDDEN, 403)         — user is not the recipient
    """
    message = session.get(PrivateMessage, message_id)
    if message is None:
        raise AppError(
            ErrorCode.MESSAGE_NOT_FOUND,
            f"Message {message_id} does not exist.",
            404,
        )
    if message.recipient_id != user_id:
        raise AppError(
            ErrorCode.FORBIDDEN,
            "You can only mark your own messages as read.",
            403,
        )

    message.is_read = True
    session.flush()


def mark_all_messages_read(sender_id: int, recipient_id: int, session: Session) -> int:
    """Marks every unread sender → recipient message read. Returns how many changed."""
    result = session.execute(
        update(PrivateMessage)
        .where(
            PrivateMessage.sender_id == sender_id,
            PrivateMessage.recipient_id == recipient_id,
            PrivateMessage.is_read == False,  # noqa: E712
        )
        .values(is_read=True)
    )
    session.flush()
    return result.rowcount
