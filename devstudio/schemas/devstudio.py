from datetime import datetime

from pydantic import BaseModel, ConfigDict


class DevStudioMessageIn(BaseModel):
    content: str


class ChatMessage(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str
    is_from_bot: bool
    is_read: bool
    message_type: str
    created_at: datetime


class ChatExchange(BaseModel):
    user_message: ChatMessage
    bot_message: ChatMessage
