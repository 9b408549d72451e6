"""SQLAlchemy ORM models."""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devstudio.db.session import Base

MODERATION_PENDING = "pending"
MODERATION_APPROVED = "approved"
MODERATION_REJECTED = "rejected"


class Category(Base):
    """Catalogue category a mini app is listed under."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    icon: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    display_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    apps: Mapped[list["MiniApp"]] = relationship(back_populates="category")


class MiniApp(Base):
    """A user-created mini app with optional bot behaviour."""

    __tablename__ = "mini_apps"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subtitle: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    icon: Mapped[str] = mapped_column(String(16), nullable=False, default="")

    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"),
        nullable=False,
        index=True,
    )
    # NULL only for system apps such as Dev Studio itself.
    creator_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)

    bot_username: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
        index=True,
    )
    welcome_message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    api_token: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    webhook_url: Mapped[str] = mapped_column(Text, nullable=False, default="")

    moderation_status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=MODERATION_PENDING,
        server_default=text(f"'{MODERATION_PENDING}'"),
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("0"),
    )
    users_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
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
        onupdate=func.now(),
    )

    category: Mapped["Category"] = relationship(back_populates="apps")


class BotCommand(Base):
    """A slash command a mini app answers with a canned response."""

    __tablename__ = "bot_commands"
    __table_args__ = (
        UniqueConstraint("app_id", "command", name="uq_bot_commands_app_command"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    app_id: Mapped[int] = mapped_column(
        ForeignKey("mini_apps.id"),
        nullable=False,
        index=True,
    )
    command: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    response: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("1"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class AppMessage(Base):
    """One chat message between a user and an app."""

    __tablename__ = "app_messages"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    app_id: Mapped[int] = mapped_column(
        ForeignKey("mini_apps.id"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_from_bot: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    message_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="text",
        server_default=text("'text'"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class AppUser(Base):
    """Tracks which users have opened which apps."""

    __tablename__ = "app_users"
    __table_args__ = (
        UniqueConstraint("user_id", "app_id", name="uq_app_users_user_app"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    app_id: Mapped[int] = mapped_column(
        ForeignKey("mini_apps.id"),
        nullable=False,
        index=True,
    )
    last_used: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class WebhookLog(Base):
    """Delivery record for one outbound webhook call."""

    __tablename__ = "webhook_logs"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    app_id: Mapped[int] = mapped_column(
        ForeignKey("mini_apps.id"),
        nullable=False,
        index=True,
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    method: Mapped[str] = mapped_column(String(8), nullable=False, default="POST")
    status_code: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    request: Mapped[str] = mapped_column(Text, nullable=False, default="")
    response: Mapped[str] = mapped_column(Text, nullable=False, default="")
    duration_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class ConversationState(Base):
    """Dev Studio wizard position and collected data for one user."""

    __tablename__ = "conversation_states"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True, index=True)
    state: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default="idle",
        server_default=text("'idle'"),
    )
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
