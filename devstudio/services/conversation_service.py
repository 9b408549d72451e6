"""Database-backed conversation state for multi-step Dev Studio chats."""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from devstudio.db.models import ConversationState

logger = logging.getLogger(__name__)

IDLE_STATE = "idle"


def get_or_create_state(db: Session, user_id: int) -> ConversationState:
    """Return the user's state record, creating an idle one on first contact."""
    record = db.scalar(
        select(ConversationState).where(ConversationState.user_id == user_id)
    )
    if record is not None:
        return record

    record = ConversationState(user_id=user_id, state=IDLE_STATE, data={})
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Created conversation state for user %s", user_id)
    return record


def save_state(
    db: Session,
    record: ConversationState,
    state: str,
    data: dict[str, Any] | None = None,
) -> ConversationState:
    """Persist a new state tag and data bag in one update."""
    record.state = state
    # Always assign a fresh dict so the JSON column is flagged dirty.
    record.data = dict(data or {})
    record.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(record)
    return record


def reset_state(db: Session, record: ConversationState) -> ConversationState:
    """Back to idle with an empty data bag."""
    return save_state(db, record, IDLE_STATE, {})


def get_state(db: Session, user_id: int) -> ConversationState | None:
    """Read-only lookup; does not create a record."""
    return db.scalar(
        select(ConversationState).where(ConversationState.user_id == user_id)
    )
