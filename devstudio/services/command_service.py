"""Bot command storage for mini apps."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from devstudio.db.models import BotCommand

logger = logging.getLogger(__name__)


def list_commands(db: Session, app_id: int) -> list[BotCommand]:
    """All commands of an app ordered by command string."""
    return list(
        db.scalars(
            select(BotCommand)
            .where(BotCommand.app_id == app_id)
            .order_by(BotCommand.command.asc())
        ).all()
    )


def find_command(db: Session, app_id: int, command: str) -> BotCommand | None:
    return db.scalar(
        select(BotCommand)
        .where(BotCommand.app_id == app_id)
        .where(BotCommand.command == command)
    )


def create_command(
    db: Session,
    app_id: int,
    command: str,
    description: str,
    response: str,
) -> BotCommand:
    """Add an enabled command to an app."""
    bot_command = BotCommand(
        app_id=app_id,
        command=command,
        description=description,
        response=response,
        is_enabled=True,
    )
    db.add(bot_command)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(bot_command)

    logger.info("Created command %s for app %s", command, app_id)
    return bot_command


def delete_command(db: Session, app_id: int, command: str) -> bool:
    """Delete a command; returns False when the app has no such command."""
    try:
        result = db.execute(
            delete(BotCommand)
            .where(BotCommand.app_id == app_id)
            .where(BotCommand.command == command)
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    deleted = result.rowcount > 0
    if deleted:
        logger.info("Deleted command %s from app %s", command, app_id)
    return deleted
