"""Mini app storage used by Dev Studio."""

import logging
import secrets
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from devstudio.db.models import (
    MODERATION_PENDING,
    AppMessage,
    AppUser,
    BotCommand,
    MiniApp,
    WebhookLog,
)

logger = logging.getLogger(__name__)

START_COMMAND = "/start"
START_COMMAND_DESCRIPTION = "Start the app"

# Columns callers may change through update_app().
UPDATABLE_FIELDS = frozenset(
    {"title", "subtitle", "description", "icon", "webhook_url", "moderation_status"}
)


def generate_api_token() -> str:
    """Fresh 256-bit API token, hex encoded."""
    return secrets.token_hex(32)


def list_apps_by_creator(db: Session, creator_id: int) -> list[MiniApp]:
    """The creator's apps, newest first."""
    return list(
        db.scalars(
            select(MiniApp)
            .where(MiniApp.creator_id == creator_id)
            .order_by(MiniApp.created_at.desc(), MiniApp.id.desc())
        ).all()
    )


def get_app(db: Session, app_id: int, creator_id: int | None = None) -> MiniApp | None:
    query = select(MiniApp).where(MiniApp.id == app_id)
    if creator_id is not None:
        query = query.where(MiniApp.creator_id == creator_id)
    return db.scalar(query)


def get_app_by_username(db: Session, bot_username: str) -> MiniApp | None:
    return db.scalar(select(MiniApp).where(MiniApp.bot_username == bot_username))


def username_taken(db: Session, bot_username: str) -> bool:
    return get_app_by_username(db, bot_username) is not None


def create_app(
    db: Session,
    *,
    title: str,
    description: str,
    icon: str,
    category_id: int,
    creator_id: int,
    bot_username: str,
    welcome_message: str,
    api_token: str,
) -> MiniApp:
    """Create a pending app, plus a /start command when a welcome is given.

    Both rows are written in one transaction.
    """
    app = MiniApp(
        title=title,
        subtitle=description,
        description=description,
        icon=icon,
        category_id=category_id,
        creator_id=creator_id,
        bot_username=bot_username,
        welcome_message=welcome_message,
        api_token=api_token,
        moderation_status=MODERATION_PENDING,
        is_verified=False,
        users_count=0,
    )

    try:
        db.add(app)
        db.flush()

        if welcome_message:
            db.add(
                BotCommand(
                    app_id=app.id,
                    command=START_COMMAND,
                    description=START_COMMAND_DESCRIPTION,
                    response=welcome_message,
                    is_enabled=True,
                )
            )

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to create app @%s for user %s", bot_username, creator_id)
        raise

    db.refresh(app)
    logger.info("Created app %s (@%s) for user %s", app.id, bot_username, creator_id)
    return app


def update_app(db: Session, app: MiniApp, **fields: Any) -> MiniApp:
    """Update selected columns of an app."""
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

    for name, value in fields.items():
        setattr(app, name, value)

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(app)
    logger.info("Updated app %s: %s", app.id, ", ".join(sorted(fields)))
    return app


def rename_app(db: Session, app: MiniApp, title: str) -> MiniApp:
    """Change the title; content edits send the app back to moderation."""
    return update_app(db, app, title=title, moderation_status=MODERATION_PENDING)


def describe_app(db: Session, app: MiniApp, description: str) -> MiniApp:
    return update_app(
        db,
        app,
        description=description,
        subtitle=description,
        moderation_status=MODERATION_PENDING,
    )


def set_webhook(db: Session, app: MiniApp, url: str) -> MiniApp:
    """Set or (with an empty string) clear the webhook URL."""
    return update_app(db, app, webhook_url=url)


def delete_app(db: Session, app: MiniApp) -> str:
    """Delete an app with its commands, messages, usage and webhook logs.

    Returns the deleted app's title.
    """
    app_id = app.id
    title = app.title

    try:
        for model in (BotCommand, AppMessage, AppUser, WebhookLog):
            db.execute(delete(model).where(model.app_id == app_id))
        db.delete(app)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to delete app %s", app_id)
        raise

    logger.info("Deleted app %s (%s)", app_id, title)
    return title
