import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from devstudio.conversation import DevStudioEngine
from devstudio.core.config import settings
from devstudio.core.domain_exceptions import DomainException
from devstudio.core.error_codes import ErrorCode
from devstudio.db.bootstrap import get_devstudio_app
from devstudio.db.models import MiniApp
from devstudio.db.session import get_db
from devstudio.routes.deps import get_current_user_id
from devstudio.schemas.common import APIResponse
from devstudio.schemas.devstudio import ChatExchange, ChatMessage, DevStudioMessageIn
from devstudio.services import message_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/apps/devstudio", tags=["devstudio"])


def _require_devstudio_app(db: Session) -> MiniApp:
    app = get_devstudio_app(db)
    if app is None:
        raise DomainException(
            code=ErrorCode.NOT_FOUND,
            message="Dev Studio app is not installed.",
            status_code=404,
        )
    return app


@router.post("/message", response_model=APIResponse[ChatExchange])
def send_message(
    payload: DevStudioMessageIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    content = payload.content.strip()
    if not content:
        raise DomainException(message="Message content is required.")

    app = _require_devstudio_app(db)

    user_message = message_service.record_message(
        db, app.id, user_id, content, is_from_bot=False
    )
    reply = DevStudioEngine(db).process(user_id, content)
    bot_message = message_service.record_message(
        db, app.id, user_id, reply, is_from_bot=True
    )

    return APIResponse.ok(
        ChatExchange(
            user_message=ChatMessage.model_validate(user_message),
            bot_message=ChatMessage.model_validate(bot_message),
        )
    )


@router.get("/messages", response_model=APIResponse[list[ChatMessage]])
def list_messages(
    limit: int | None = Query(default=None, ge=1),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    app = _require_devstudio_app(db)

    history = message_service.list_history(
        db, app.id, user_id, min(limit or settings.HISTORY_LIMIT, settings.HISTORY_LIMIT)
    )
    # Serialize before marking read so the caller sees which replies were new.
    items = [ChatMessage.model_validate(message) for message in history]
    message_service.mark_read(db, app.id, user_id)

    return APIResponse.ok(items)
