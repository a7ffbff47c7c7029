"""Request and response bodies for the chat HTTP API."""

from typing import Optional

from pydantic import BaseModel, Field

from .conversation import Stage


class StartChatRequest(BaseModel):
    locale: Optional[str] = None


class StartChatResponse(BaseModel):
    session_id: str
    response_text: str
    next_step: Stage
    locale: str


class ChatMessageRequest(BaseModel):
    text: str = Field(min_length=1, max_length=2000)
    locale: Optional[str] = None
