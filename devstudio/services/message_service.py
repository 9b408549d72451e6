"""Chat history between users and apps."""

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from devstudio.db.models import AppMessage

logger = logging.getLogger(__name__)


def record_message(
    db: Session,
    app_id: int,
    user_id: int,
    content: str,
    *,
    is_from_bot: bool,
) -> AppMessage:
    """Store one side of a chat turn.

    The user's own messages are stored as read; bot replies start unread.
    """
    message = AppMessage(
        app_id=app_id,
        user_id=user_id,
        content=content,
        is_from_bot=is_from_bot,
        is_read=not is_from_bot,
        message_type="text",
    )
    db.add(message)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(message)
    return message


def list_history(db: Session, app_id: int, user_id: int, limit: int) -> list[AppMessage]:
    """The last `limit` messages of a user's chat with an app, oldest first."""
    latest = db.scalars(
        select(AppMessage)
        .where(AppMessage.app_id == app_id)
        .where(AppMessage.user_id == user_id)
        .order_by(AppMessage.id.desc())
        .limit(limit)
    ).all()
    return list(reversed(latest))


def mark_read(db: Session, app_id: int, user_id: int) -> int:
    """Mark the app's unread replies to a user as read; returns how many."""
    try:
        result = db.execute(
            update(AppMessage)
            .where(AppMessage.app_id == app_id)
            .where(AppMessage.user_id == user_id)
            .where(AppMessage.is_read.is_(False))
            .values(is_read=True)
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    if result.rowcount:
        logger.debug("Marked %d messages read for user %s in app %s", result.rowcount, user_id, app_id)
    return result.rowcount
